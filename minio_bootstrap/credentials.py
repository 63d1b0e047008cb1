"""Access/secret key generation and MinIO length constraints."""

import secrets
import string

from minio_bootstrap.models import Credentials

ACCESS_KEY_MIN_LENGTH = 3
ACCESS_KEY_MAX_LENGTH = 20
SECRET_KEY_MIN_LENGTH = 8
SECRET_KEY_MAX_LENGTH = 40

DEFAULT_ACCESS_KEY_LENGTH = 16
DEFAULT_SECRET_KEY_LENGTH = 20

ALPHABET = string.ascii_letters + string.digits


class CredentialValidationError(ValueError):
    """Raised when a credential pair violates MinIO's length limits."""

    pass


def generate_random_string(length: int) -> str:
    """Return a cryptographically random alphanumeric string."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_credentials(
    access_length: int = DEFAULT_ACCESS_KEY_LENGTH,
    secret_length: int = DEFAULT_SECRET_KEY_LENGTH,
) -> Credentials:
    """Generate a fresh access-key/secret-key pair.

    No uniqueness check is made against existing users.
    """
    return Credentials(
        access_key=generate_random_string(access_length),
        secret_key=generate_random_string(secret_length),
    )


def validate_credentials(access_key: str, secret_key: str) -> None:
    """Check a credential pair against MinIO's length limits.

    Args:
        access_key: Access key, 3-20 characters.
        secret_key: Secret key, 8-40 characters.

    Raises:
        CredentialValidationError: If either key is out of range.
    """
    if not ACCESS_KEY_MIN_LENGTH <= len(access_key) <= ACCESS_KEY_MAX_LENGTH:
        raise CredentialValidationError(
            f"Access key must be {ACCESS_KEY_MIN_LENGTH}-{ACCESS_KEY_MAX_LENGTH} "
            f"chars (was {len(access_key)})"
        )
    if not SECRET_KEY_MIN_LENGTH <= len(secret_key) <= SECRET_KEY_MAX_LENGTH:
        raise CredentialValidationError(
            f"Secret key must be {SECRET_KEY_MIN_LENGTH}-{SECRET_KEY_MAX_LENGTH} "
            f"chars (was {len(secret_key)})"
        )
