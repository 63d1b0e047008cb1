"""Configuration loading for the MinIO bootstrapper.

Settings come from environment variables, read once at startup into a
``BootstrapConfig`` that is passed to every step.

Environment Variables:
    MINIO_ROOT_USER       admin user (required)
    MINIO_ROOT_PASSWORD   admin password (required)
    MINIO_BUCKET          bucket to provision (required)
    MINIO_ENDPOINT        server URL (default: http://minio:9000)
    MC_ALIAS              admin alias name (default: admin)
    MC_ALIAS_TMP          verification alias name (default: myminio)
    ACCESS_LEN            generated access key length (default: 16)
    SECRET_LEN            generated secret key length (default: 20)
    MINIO_WAIT_TIMEOUT    seconds before readiness/user waits give up
                          (default: wait forever)
"""

import os
from typing import Mapping, Optional

from minio_bootstrap.credentials import (
    DEFAULT_ACCESS_KEY_LENGTH,
    DEFAULT_SECRET_KEY_LENGTH,
)
from minio_bootstrap.models import DEFAULT_ENDPOINT, BootstrapConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


REQUIRED_VARIABLES = [
    "MINIO_ROOT_USER",
    "MINIO_ROOT_PASSWORD",
    "MINIO_BUCKET",
]


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (was {value!r})") from None
    if number <= 0:
        raise ConfigError(f"{name} must be positive (was {number})")
    return number


def _get_timeout(environ: Mapping[str, str], name: str) -> Optional[float]:
    value = environ.get(name)
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds (was {value!r})") from None
    if timeout <= 0:
        raise ConfigError(f"{name} must be positive (was {value})")
    return timeout


def load_from_env(environ: Optional[Mapping[str, str]] = None) -> BootstrapConfig:
    """Build the bootstrap configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``).

    Returns:
        The configuration record.

    Raises:
        ConfigError: If a required variable is missing or empty, or a
                    numeric variable cannot be parsed.
    """
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
    if missing:
        raise ConfigError(f"Missing environment variable: {', '.join(missing)}")

    admin_alias = environ.get("MC_ALIAS") or "admin"
    verify_alias = environ.get("MC_ALIAS_TMP") or "myminio"
    if admin_alias == verify_alias:
        raise ConfigError(
            f"MC_ALIAS and MC_ALIAS_TMP must differ (both are {admin_alias!r})"
        )

    return BootstrapConfig(
        root_user=environ["MINIO_ROOT_USER"],
        root_password=environ["MINIO_ROOT_PASSWORD"],
        bucket=environ["MINIO_BUCKET"],
        endpoint=environ.get("MINIO_ENDPOINT") or DEFAULT_ENDPOINT,
        admin_alias=admin_alias,
        verify_alias=verify_alias,
        access_key_length=_get_int(environ, "ACCESS_LEN", DEFAULT_ACCESS_KEY_LENGTH),
        secret_key_length=_get_int(environ, "SECRET_LEN", DEFAULT_SECRET_KEY_LENGTH),
        wait_timeout=_get_timeout(environ, "MINIO_WAIT_TIMEOUT"),
    )
