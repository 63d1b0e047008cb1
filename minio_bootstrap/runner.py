"""Bootstrap orchestrator.

Runs the provisioning steps in dependency order:

1. wait for MinIO to become healthy
2. bind the admin alias
3. ensure the bucket exists
4. generate a credential pair not used by an existing user
5. create the user and wait until it is enabled
6. apply the public-read policy
7. verify the new credentials against the bucket

The first failing step stops the run. Nothing is rolled back; every step
tolerates state left behind by an earlier, interrupted run.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from minio_bootstrap.credentials import generate_credentials, validate_credentials
from minio_bootstrap.models import (
    BootstrapConfig,
    BootstrapResult,
    Credentials,
    Session,
    StepResult,
    StepStatus,
)
from minio_bootstrap.provisioning import (
    apply_public_read_policy,
    bind_alias,
    create_user,
    ensure_bucket,
    verify_credentials,
    wait_for_ready,
    wait_for_user_enabled,
)
from minio_bootstrap.retry import retry
from minio_bootstrap.storage import StorageService

logger = logging.getLogger(__name__)

# Regenerations allowed when a generated access key is already taken
MAX_CREDENTIAL_ATTEMPTS = 5


class CredentialCollisionError(Exception):
    """Raised when every generated access key collided with an existing user."""

    pass


@dataclass
class BootstrapContext:
    """State shared between steps.

    ``admin_session`` and ``credentials`` are written once by the step that
    produces them and only read afterwards.
    """

    config: BootstrapConfig
    storage: StorageService
    credential_factory: Callable[[int, int], Credentials] = generate_credentials
    admin_session: Optional[Session] = None
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class Step:
    """A named provisioning step."""

    name: str
    action: Callable[[BootstrapContext], Any]


def _wait_for_minio(ctx: BootstrapContext) -> None:
    wait_for_ready(ctx.storage, ctx.config)


def _ensure_admin_alias(ctx: BootstrapContext) -> None:
    config = ctx.config
    ctx.admin_session = bind_alias(
        ctx.storage,
        config.admin_alias,
        config.endpoint,
        config.root_user,
        config.root_password,
        attempts=config.retry_attempts,
        delay=config.retry_delay,
    )


def _ensure_bucket(ctx: BootstrapContext) -> None:
    ensure_bucket(
        ctx.storage,
        ctx.admin_session,
        ctx.config.bucket,
        attempts=ctx.config.retry_attempts,
        delay=ctx.config.retry_delay,
    )


def _generate_credentials(ctx: BootstrapContext) -> None:
    config = ctx.config
    for _ in range(MAX_CREDENTIAL_ATTEMPTS):
        credentials = ctx.credential_factory(
            config.access_key_length, config.secret_key_length
        )
        # Out-of-range lengths are rejected before any remote call
        validate_credentials(credentials.access_key, credentials.secret_key)
        taken = retry(
            ctx.storage.user_exists,
            max_attempts=config.retry_attempts,
            delay=config.retry_delay,
            args=(ctx.admin_session, credentials.access_key),
            description=f"Looking up user '{credentials.access_key}'",
        )
        if not taken:
            ctx.credentials = credentials
            logger.info("Access Key: %s", credentials.access_key)
            return
        logger.warning(
            "Generated access key '%s' is already taken, regenerating.",
            credentials.access_key,
        )
    raise CredentialCollisionError(
        f"Every one of {MAX_CREDENTIAL_ATTEMPTS} generated access keys "
        "belongs to an existing user"
    )


def _create_user(ctx: BootstrapContext) -> None:
    config = ctx.config
    create_user(
        ctx.storage,
        ctx.admin_session,
        ctx.credentials,
        attempts=config.retry_attempts,
        delay=config.retry_delay,
    )
    wait_for_user_enabled(
        ctx.storage,
        ctx.admin_session,
        ctx.credentials.access_key,
        interval=config.user_poll_interval,
        timeout=config.wait_timeout,
    )


def _apply_policy(ctx: BootstrapContext) -> None:
    config = ctx.config
    apply_public_read_policy(
        ctx.storage,
        ctx.admin_session,
        ctx.credentials.access_key,
        config.bucket,
        policy_name=config.policy_name,
        attempts=config.retry_attempts,
        delay=config.retry_delay,
    )


def _verify_credentials(ctx: BootstrapContext) -> None:
    verify_credentials(ctx.storage, ctx.config, ctx.credentials)


DEFAULT_STEPS: tuple[Step, ...] = (
    Step("wait_for_minio", _wait_for_minio),
    Step("ensure_admin_alias", _ensure_admin_alias),
    Step("ensure_bucket", _ensure_bucket),
    Step("generate_credentials", _generate_credentials),
    Step("create_user", _create_user),
    Step("apply_policy", _apply_policy),
    Step("verify_credentials", _verify_credentials),
)


class BootstrapRunner:
    """Runs the provisioning steps and reports progress.

    Args:
        config: Bootstrap configuration.
        storage: Storage service the steps talk to.
        reporter: Optional reporter for progress callbacks.
        steps: Ordered steps to run.
        credential_factory: Produces a credential pair from the configured
            access and secret key lengths.
    """

    def __init__(
        self,
        config: BootstrapConfig,
        storage: StorageService,
        reporter: Optional[Any] = None,
        steps: Sequence[Step] = DEFAULT_STEPS,
        credential_factory: Callable[[int, int], Credentials] = generate_credentials,
    ):
        self.config = config
        self.storage = storage
        self.reporter = reporter
        self.steps = tuple(steps)
        self.credential_factory = credential_factory

    def run(self) -> BootstrapResult:
        """Run every step in order, stopping at the first failure."""
        start_time = time.time()
        ctx = BootstrapContext(
            config=self.config,
            storage=self.storage,
            credential_factory=self.credential_factory,
        )
        result = BootstrapResult(endpoint=self.config.endpoint, bucket=self.config.bucket)

        for step in self.steps:
            logger.info("Running step: %s", step.name)
            if self.reporter:
                self.reporter.on_step_start(step.name)

            step_start = time.time()
            try:
                step.action(ctx)
            except Exception as e:
                logger.error("Step '%s' failed. Check logs above for details.", step.name)
                step_result = StepResult(
                    name=step.name,
                    status=StepStatus.FAIL,
                    duration_seconds=time.time() - step_start,
                    error_message=str(e),
                )
            else:
                step_result = StepResult(
                    name=step.name,
                    status=StepStatus.PASS,
                    duration_seconds=time.time() - step_start,
                )

            result.steps.append(step_result)
            if self.reporter:
                self.reporter.on_step_complete(step_result)

            if step_result.status == StepStatus.FAIL:
                break

        result.credentials = ctx.credentials
        result.total_duration = time.time() - start_time

        if result.succeeded:
            logger.info("MinIO bootstrap completed successfully.")

        if self.reporter:
            self.reporter.on_run_complete(result)

        return result
