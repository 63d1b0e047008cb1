"""Data models for the MinIO bootstrapper."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DEFAULT_ENDPOINT = "http://minio:9000"
DEFAULT_POLICY_NAME = "publicread"


class StepStatus(Enum):
    """Outcome of a provisioning step."""

    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class BootstrapConfig:
    """Configuration record built once at startup and passed to every step."""

    root_user: str
    root_password: str = field(repr=False)
    bucket: str
    endpoint: str = DEFAULT_ENDPOINT
    admin_alias: str = "admin"
    verify_alias: str = "myminio"
    healthcheck_alias: str = "healthcheck"
    access_key_length: int = 16
    secret_key_length: int = 20
    retry_attempts: int = 5
    verify_attempts: int = 3
    retry_delay: float = 2.0
    ready_interval: float = 2.0
    user_poll_interval: float = 3.0
    wait_timeout: Optional[float] = None
    policy_name: str = DEFAULT_POLICY_NAME


@dataclass(frozen=True)
class Credentials:
    """An access-key/secret-key pair."""

    access_key: str
    secret_key: str = field(repr=False)


@dataclass(frozen=True)
class Session:
    """A named binding of an endpoint and a credential pair (an mc alias)."""

    alias: str
    endpoint: str
    access_key: str
    secret_key: str = field(repr=False)


@dataclass
class StepResult:
    """Result of a single provisioning step."""

    name: str
    status: StepStatus
    duration_seconds: float = 0.0
    error_message: Optional[str] = None


@dataclass
class BootstrapResult:
    """Aggregated result of a bootstrap run."""

    endpoint: str
    bucket: str
    steps: list[StepResult] = field(default_factory=list)
    credentials: Optional[Credentials] = None
    total_duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        """True when every step ran and passed."""
        return bool(self.steps) and all(
            s.status == StepStatus.PASS for s in self.steps
        )

    @property
    def failed_step(self) -> Optional[StepResult]:
        """The step that stopped the run, if any."""
        for step in self.steps:
            if step.status == StepStatus.FAIL:
                return step
        return None
