"""Shared fixtures: an in-memory storage service and a fast configuration."""

import json
from collections import defaultdict

import pytest

from minio_bootstrap.mc import McError
from minio_bootstrap.models import BootstrapConfig, Session
from minio_bootstrap.storage import StorageService


class FakeStorageService(StorageService):
    """In-memory MinIO stand-in.

    Users start out pending and report "enabled" after ``pending_checks``
    status queries. Failures are injected per method name: ``fail_next``
    raises queued exceptions one call at a time, ``fail_always`` raises on
    every call.
    """

    def __init__(
        self,
        root_user: str = "admin",
        root_password: str = "adminpass123",
        pending_checks: int = 1,
    ):
        self.root_user = root_user
        self.root_password = root_password
        self.pending_checks = pending_checks

        self.aliases: dict[str, Session] = {}
        self.buckets: dict[str, list[str]] = {}
        self.users: dict[str, dict] = {}
        self.policies: dict[str, dict] = {}
        self.attachments: dict[str, list[str]] = defaultdict(list)
        self.anonymous_policies: dict[str, dict] = {}
        self.policy_paths: list[str] = []

        self.calls: list[tuple] = []
        self.fail_next: dict[str, list[Exception]] = defaultdict(list)
        self.fail_always: dict[str, Exception] = {}

    def call_count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_always:
            raise self.fail_always[name]
        if self.fail_next[name]:
            raise self.fail_next[name].pop(0)

    def _check_session(self, session: Session) -> None:
        if self.aliases.get(session.alias) != session:
            raise McError(f"Alias '{session.alias}' is not configured")

    def bind(self, alias: str, endpoint: str, access_key: str, secret_key: str) -> Session:
        self._record("bind", alias, endpoint, access_key)
        is_root = (access_key, secret_key) == (self.root_user, self.root_password)
        user = self.users.get(access_key)
        if not is_root and (user is None or user["secretKey"] != secret_key):
            raise McError("The Access Key Id you provided does not exist in our records.")
        session = Session(alias, endpoint, access_key, secret_key)
        self.aliases[alias] = session
        return session

    def unbind(self, session: Session) -> None:
        self._record("unbind", session.alias)
        self.aliases.pop(session.alias, None)

    def health(self, session: Session) -> dict:
        self._record("health", session.alias)
        self._check_session(session)
        return {"status": "success", "info": {"mode": "online"}}

    def list_bucket(self, session: Session, bucket: str) -> list[str]:
        self._record("list_bucket", session.alias, bucket)
        self._check_session(session)
        if bucket not in self.buckets:
            raise McError(f"Bucket '{bucket}' does not exist")
        if session.access_key != self.root_user and not self.attachments.get(session.access_key):
            raise McError("Access Denied.")
        return list(self.buckets[bucket])

    def bucket_exists(self, session: Session, bucket: str) -> bool:
        self._record("bucket_exists", session.alias, bucket)
        self._check_session(session)
        return bucket in self.buckets

    def make_bucket(self, session: Session, bucket: str) -> None:
        self._record("make_bucket", session.alias, bucket)
        self._check_session(session)
        self.buckets.setdefault(bucket, [])

    def user_add(self, session: Session, access_key: str, secret_key: str) -> None:
        self._record("user_add", session.alias, access_key)
        self._check_session(session)
        self.users[access_key] = {
            "secretKey": secret_key,
            "userStatus": "pending",
            "checks": 0,
        }

    def user_info(self, session: Session, access_key: str) -> dict:
        self._record("user_info", session.alias, access_key)
        self._check_session(session)
        user = self.users.get(access_key)
        if user is None:
            raise McError("The specified user does not exist. (Specified user does not exist)")
        user["checks"] += 1
        if user["checks"] > self.pending_checks:
            user["userStatus"] = "enabled"
        return {
            "status": "success",
            "accessKey": access_key,
            "userStatus": user["userStatus"],
            "policyName": ",".join(self.attachments.get(access_key, [])),
        }

    def user_exists(self, session: Session, access_key: str) -> bool:
        self._record("user_exists", session.alias, access_key)
        self._check_session(session)
        return access_key in self.users

    def policy_create(self, session: Session, policy_name: str, policy_path: str) -> None:
        self._record("policy_create", session.alias, policy_name)
        self._check_session(session)
        with open(policy_path, encoding="utf-8") as f:
            self.policies[policy_name] = json.load(f)
        self.policy_paths.append(policy_path)

    def policy_attach(self, session: Session, policy_name: str, access_key: str) -> None:
        self._record("policy_attach", session.alias, policy_name, access_key)
        self._check_session(session)
        if policy_name not in self.policies:
            raise McError(f"Policy '{policy_name}' does not exist")
        if access_key not in self.users:
            raise McError("The specified user does not exist.")
        if policy_name not in self.attachments[access_key]:
            self.attachments[access_key].append(policy_name)

    def anonymous_set_json(self, session: Session, policy_path: str, bucket: str) -> None:
        self._record("anonymous_set_json", session.alias, bucket)
        self._check_session(session)
        if bucket not in self.buckets:
            raise McError(f"Bucket '{bucket}' does not exist")
        with open(policy_path, encoding="utf-8") as f:
            self.anonymous_policies[bucket] = json.load(f)
        self.policy_paths.append(policy_path)


def make_config(**overrides) -> BootstrapConfig:
    """Bootstrap configuration with zero delays."""
    values = dict(
        root_user="admin",
        root_password="adminpass123",
        bucket="docs",
        endpoint="http://minio:9000",
        retry_delay=0,
        ready_interval=0,
        user_poll_interval=0,
    )
    values.update(overrides)
    return BootstrapConfig(**values)


@pytest.fixture
def config() -> BootstrapConfig:
    return make_config()


@pytest.fixture
def storage() -> FakeStorageService:
    return FakeStorageService()


@pytest.fixture
def admin_session(storage: FakeStorageService, config: BootstrapConfig) -> Session:
    """Admin alias already bound on the fake service."""
    session = storage.bind(config.admin_alias, config.endpoint, config.root_user, config.root_password)
    storage.calls.clear()
    return session


@pytest.fixture
def config_factory():
    """Build configurations with zero delays and custom overrides."""
    return make_config
