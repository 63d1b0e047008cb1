"""Provisioning steps run against the storage service.

Each function here is safe to re-run after a partial earlier run: existing
buckets are left alone, creations are retried only where repeating them is
harmless, and the two liveness waits (server readiness, user enablement)
poll until the condition holds.
"""

import logging
from typing import Optional

from minio_bootstrap.credentials import validate_credentials
from minio_bootstrap.models import BootstrapConfig, Credentials, Session
from minio_bootstrap.policy import build_public_read_policy, policy_file
from minio_bootstrap.retry import poll_until, retry
from minio_bootstrap.storage import StorageService

logger = logging.getLogger(__name__)

USER_ENABLED = "enabled"


class VerificationError(Exception):
    """Raised when freshly created credentials cannot list the bucket."""

    pass


def _unbind_quietly(storage: StorageService, session: Session) -> None:
    """Remove a session alias, ignoring failures."""
    try:
        storage.unbind(session)
    except Exception as e:
        logger.debug("Ignoring failure to remove alias '%s': %s", session.alias, e)


def wait_for_ready(storage: StorageService, config: BootstrapConfig) -> int:
    """Block until MinIO accepts the root credentials and reports healthy.

    Each check binds a throwaway alias, queries health and removes the
    alias again.

    Returns:
        The number of checks it took.
    """
    logger.info("Waiting for MinIO at %s ...", config.endpoint)

    def check() -> bool:
        session = storage.bind(
            config.healthcheck_alias,
            config.endpoint,
            config.root_user,
            config.root_password,
        )
        storage.health(session)
        _unbind_quietly(storage, session)
        return True

    checks = poll_until(
        check,
        interval=config.ready_interval,
        timeout=config.wait_timeout,
        description=f"MinIO at {config.endpoint}",
    )
    logger.info("MinIO is healthy.")
    return checks


def bind_alias(
    storage: StorageService,
    alias: str,
    endpoint: str,
    access_key: str,
    secret_key: str,
    attempts: int = 5,
    delay: float = 2.0,
) -> Session:
    """Bind a named session, retrying on failure."""
    return retry(
        storage.bind,
        max_attempts=attempts,
        delay=delay,
        args=(alias, endpoint, access_key, secret_key),
        description=f"Setting alias '{alias}'",
    )


def ensure_bucket(
    storage: StorageService,
    session: Session,
    bucket: str,
    attempts: int = 5,
    delay: float = 2.0,
) -> bool:
    """Create the bucket unless it already exists.

    Returns:
        True if the bucket was created, False if it was already there.
    """
    exists = retry(
        storage.bucket_exists,
        max_attempts=attempts,
        delay=delay,
        args=(session, bucket),
        description=f"Checking bucket '{bucket}'",
    )
    if exists:
        logger.warning("Bucket '%s' already exists.", bucket)
        return False

    logger.info("Creating bucket '%s' ...", bucket)
    retry(
        storage.make_bucket,
        max_attempts=attempts,
        delay=delay,
        args=(session, bucket),
        description=f"Creating bucket '{bucket}'",
    )
    logger.info("Bucket created.")
    return True


def create_user(
    storage: StorageService,
    session: Session,
    credentials: Credentials,
    attempts: int = 5,
    delay: float = 2.0,
) -> None:
    """Create a user after checking the pair against MinIO's length limits.

    Raises:
        CredentialValidationError: Before any remote call, if the pair is
            out of range.
        RetryExhausted: If the user could not be created.
    """
    validate_credentials(credentials.access_key, credentials.secret_key)

    logger.info("Creating user '%s' ...", credentials.access_key)
    retry(
        storage.user_add,
        max_attempts=attempts,
        delay=delay,
        args=(session, credentials.access_key, credentials.secret_key),
        description=f"Creating user '{credentials.access_key}'",
    )


def user_is_enabled(storage: StorageService, session: Session, access_key: str) -> bool:
    info = storage.user_info(session, access_key)
    return info.get("userStatus") == USER_ENABLED


def wait_for_user_enabled(
    storage: StorageService,
    session: Session,
    access_key: str,
    interval: float = 3.0,
    timeout: Optional[float] = None,
) -> int:
    """Poll the user's status until MinIO reports it enabled.

    Any other status, or a failed status query, means "not yet".
    """
    logger.info("Waiting for user '%s' to be enabled ...", access_key)
    checks = poll_until(
        lambda: user_is_enabled(storage, session, access_key),
        interval=interval,
        timeout=timeout,
        description=f"user '{access_key}' to be enabled",
    )
    logger.info("User '%s' is ready.", access_key)
    return checks


def apply_public_read_policy(
    storage: StorageService,
    session: Session,
    access_key: str,
    bucket: str,
    policy_name: str = "publicread",
    attempts: int = 5,
    delay: float = 2.0,
) -> None:
    """Upload the public-read policy, attach it to the user and the bucket.

    The bucket also gets the policy as its anonymous policy, so
    unauthenticated reads work regardless of the user's attachment.
    """
    with policy_file(build_public_read_policy()) as path:
        logger.info("Uploading policy '%s' ...", policy_name)
        retry(
            storage.policy_create,
            max_attempts=attempts,
            delay=delay,
            args=(session, policy_name, path),
            description=f"Creating policy '{policy_name}'",
        )

        logger.info("Attaching policy to user '%s' ...", access_key)
        retry(
            storage.policy_attach,
            max_attempts=attempts,
            delay=delay,
            args=(session, policy_name, access_key),
            description=f"Attaching policy '{policy_name}'",
        )

        logger.info("Making bucket '%s' publicly readable ...", bucket)
        retry(
            storage.anonymous_set_json,
            max_attempts=attempts,
            delay=delay,
            args=(session, path, bucket),
            description=f"Setting anonymous policy on '{bucket}'",
        )

    logger.info("Policy applied.")


def verify_credentials(
    storage: StorageService,
    config: BootstrapConfig,
    credentials: Credentials,
) -> list[str]:
    """List the bucket from a separate session using the new credentials.

    Returns:
        The object keys seen in the bucket.

    Raises:
        RetryExhausted: If the session cannot be bound.
        VerificationError: If the bucket cannot be listed.
    """
    logger.info("Testing new credentials ...")
    session = bind_alias(
        storage,
        config.verify_alias,
        config.endpoint,
        credentials.access_key,
        credentials.secret_key,
        attempts=config.verify_attempts,
        delay=config.retry_delay,
    )

    try:
        keys = storage.list_bucket(session, config.bucket)
    except Exception as e:
        raise VerificationError(
            f"New credentials failed to list bucket '{config.bucket}': {e}"
        ) from e

    logger.info("New credentials verified.")
    _unbind_quietly(storage, session)
    return keys
