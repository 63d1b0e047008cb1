"""Storage service interface and its MinIO implementation.

The provisioning steps only talk to ``StorageService``. ``MinioStorageService``
implements it with three transports:

- ``mc`` for session aliases and the MinIO admin API (server info, users,
  IAM policies, anonymous bucket policies),
- ``httpx`` for the unauthenticated liveness endpoint,
- boto3 for bucket listing and creation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import httpx
from botocore.exceptions import ClientError

from minio_bootstrap.mc import McClient, McError
from minio_bootstrap.models import Session
from minio_bootstrap.s3_client import build_s3_client

logger = logging.getLogger(__name__)

LIVENESS_PATH = "/minio/health/live"
MISSING_BUCKET_CODES = {"NoSuchBucket", "404"}
MISSING_USER_MARKERS = ("does not exist", "not found", "xminioadminnosuchuser")


class StorageService(ABC):
    """Operations the bootstrapper needs from the object-storage service."""

    @abstractmethod
    def bind(self, alias: str, endpoint: str, access_key: str, secret_key: str) -> Session:
        """Authenticate a named session against the endpoint."""
        pass

    @abstractmethod
    def unbind(self, session: Session) -> None:
        """Forget a named session."""
        pass

    @abstractmethod
    def health(self, session: Session) -> dict:
        """Query server health; raises if the service is not ready."""
        pass

    @abstractmethod
    def list_bucket(self, session: Session, bucket: str) -> list[str]:
        """List object keys in a bucket; raises if it cannot be listed."""
        pass

    @abstractmethod
    def bucket_exists(self, session: Session, bucket: str) -> bool:
        """Probe bucket existence with a listing call."""
        pass

    @abstractmethod
    def make_bucket(self, session: Session, bucket: str) -> None:
        """Create a bucket."""
        pass

    @abstractmethod
    def user_add(self, session: Session, access_key: str, secret_key: str) -> None:
        """Create a user with the given credential pair."""
        pass

    @abstractmethod
    def user_info(self, session: Session, access_key: str) -> dict:
        """Return the user's info document, including ``userStatus``."""
        pass

    @abstractmethod
    def user_exists(self, session: Session, access_key: str) -> bool:
        """True if a user with this access key already exists."""
        pass

    @abstractmethod
    def policy_create(self, session: Session, policy_name: str, policy_path: str) -> None:
        """Upload a policy document under a name."""
        pass

    @abstractmethod
    def policy_attach(self, session: Session, policy_name: str, access_key: str) -> None:
        """Attach a named policy to a user."""
        pass

    @abstractmethod
    def anonymous_set_json(self, session: Session, policy_path: str, bucket: str) -> None:
        """Apply a policy document anonymously to a bucket."""
        pass


class MinioStorageService(StorageService):
    """``StorageService`` backed by ``mc``, httpx and boto3.

    Args:
        mc: MinIO client CLI wrapper.
        http_client: httpx client for the liveness probe.
        client_factory: Builds an S3 client for a session.
    """

    def __init__(
        self,
        mc: Optional[McClient] = None,
        http_client: Optional[httpx.Client] = None,
        client_factory: Callable[[Session], Any] = build_s3_client,
    ):
        self.mc = mc or McClient()
        self.http_client = http_client or httpx.Client(timeout=5.0)
        self._client_factory = client_factory
        self._s3_clients: dict[Session, Any] = {}

    def __enter__(self) -> "MinioStorageService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.http_client.close()
        self._s3_clients.clear()

    def _s3(self, session: Session):
        client = self._s3_clients.get(session)
        if client is None:
            client = self._client_factory(session)
            self._s3_clients[session] = client
        return client

    def bind(self, alias: str, endpoint: str, access_key: str, secret_key: str) -> Session:
        self.mc.alias_set(alias, endpoint, access_key, secret_key)
        return Session(
            alias=alias,
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
        )

    def unbind(self, session: Session) -> None:
        self._s3_clients.pop(session, None)
        self.mc.alias_remove(session.alias)

    def health(self, session: Session) -> dict:
        response = self.http_client.get(session.endpoint.rstrip("/") + LIVENESS_PATH)
        response.raise_for_status()
        return self.mc.admin_info(session.alias)

    def list_bucket(self, session: Session, bucket: str) -> list[str]:
        response = self._s3(session).list_objects_v2(Bucket=bucket)
        return [obj["Key"] for obj in response.get("Contents", [])]

    def bucket_exists(self, session: Session, bucket: str) -> bool:
        try:
            self.list_bucket(session, bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_BUCKET_CODES:
                return False
            raise
        return True

    def make_bucket(self, session: Session, bucket: str) -> None:
        try:
            self._s3(session).create_bucket(Bucket=bucket)
        except ClientError as e:
            # A previous attempt may have succeeded before the error surfaced
            if e.response.get("Error", {}).get("Code") == "BucketAlreadyOwnedByYou":
                logger.debug("Bucket '%s' is already owned by %s", bucket, session.access_key)
                return
            raise

    def user_add(self, session: Session, access_key: str, secret_key: str) -> None:
        self.mc.user_add(session.alias, access_key, secret_key)

    def user_info(self, session: Session, access_key: str) -> dict:
        return self.mc.user_info(session.alias, access_key)

    def user_exists(self, session: Session, access_key: str) -> bool:
        try:
            self.user_info(session, access_key)
        except McError as e:
            if any(marker in str(e).lower() for marker in MISSING_USER_MARKERS):
                return False
            raise
        return True

    def policy_create(self, session: Session, policy_name: str, policy_path: str) -> None:
        self.mc.policy_create(session.alias, policy_name, policy_path)

    def policy_attach(self, session: Session, policy_name: str, access_key: str) -> None:
        self.mc.policy_attach(session.alias, policy_name, access_key)

    def anonymous_set_json(self, session: Session, policy_path: str, bucket: str) -> None:
        self.mc.anonymous_set_json(policy_path, f"{session.alias}/{bucket}")
