"""Fixed-delay retry and liveness polling.

Two waiting strategies are used while provisioning:

- ``retry`` runs an operation up to N times with a fixed delay between
  attempts and gives up with ``RetryExhausted``. Every wrapped operation is
  idempotent or create-if-absent, so repeating it is safe.
- ``poll_until`` is a liveness barrier: it keeps checking a condition at a
  fixed interval and, unless a timeout is given, never gives up.

Errors that retrying cannot fix (a missing ``mc`` binary, credentials that
violate MinIO's length limits) are raised immediately by both.
"""

import logging
import time
from typing import Any, Callable, Optional

from minio_bootstrap.credentials import CredentialValidationError
from minio_bootstrap.mc import McNotFoundError

logger = logging.getLogger(__name__)

# Errors that will fail identically on every attempt
NON_RETRYABLE_ERRORS = (CredentialValidationError, McNotFoundError)


class RetryExhausted(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class WaitTimeout(Exception):
    """Raised when a bounded liveness wait passes its deadline."""

    def __init__(self, message: str, attempts: int, timeout: float):
        super().__init__(message)
        self.attempts = attempts
        self.timeout = timeout


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is worth another attempt.

    Args:
        error: The exception that was raised.

    Returns:
        False for errors that would fail the same way on every attempt,
        True for everything else (remote and transport failures).
    """
    return not isinstance(error, NON_RETRYABLE_ERRORS)


def retry(
    func: Callable[..., Any],
    max_attempts: int = 5,
    delay: float = 2.0,
    args: tuple = (),
    kwargs: Optional[dict] = None,
    description: Optional[str] = None,
) -> Any:
    """Execute a function up to ``max_attempts`` times with a fixed delay.

    Args:
        func: The function to execute.
        max_attempts: Maximum number of attempts (including first try).
        delay: Seconds to sleep between attempts.
        args: Positional arguments to pass to func.
        kwargs: Keyword arguments to pass to func.
        description: Human-readable name of the operation for log output.

    Returns:
        The return value of func if successful.

    Raises:
        RetryExhausted: If every attempt fails with a retryable error.
        Exception: If a non-retryable error occurs, it's raised immediately.

    Example:
        >>> retry(storage.make_bucket, max_attempts=5, delay=2, args=(session, "docs"))
    """
    if kwargs is None:
        kwargs = {}
    name = description or getattr(func, "__name__", "operation")

    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            last_error = e

            if not is_retryable_error(e):
                raise

            if attempt >= max_attempts:
                break

            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %ss",
                name,
                attempt,
                max_attempts,
                e,
                delay,
            )
            time.sleep(delay)

    logger.error("%s failed after %d attempts: %s", name, max_attempts, last_error)
    raise RetryExhausted(
        f"{name} failed after {max_attempts} attempts: {last_error}",
        attempts=max_attempts,
        last_error=last_error,
    ) from last_error


def poll_until(
    check: Callable[[], Any],
    interval: float,
    timeout: Optional[float] = None,
    description: str = "condition",
) -> int:
    """Call ``check`` until it returns a truthy value.

    A falsy result or a retryable exception counts as "not ready yet" and is
    logged on every iteration. With ``timeout=None`` the wait is unbounded.

    Args:
        check: Zero-argument callable probing the condition.
        interval: Seconds to sleep between checks.
        timeout: Optional overall deadline in seconds.
        description: What is being waited for, for log output.

    Returns:
        The number of checks performed.

    Raises:
        WaitTimeout: If ``timeout`` is set and the deadline passes.
        Exception: Non-retryable errors raised by ``check``.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    attempt = 0

    while True:
        attempt += 1
        try:
            if check():
                return attempt
            reason = "not ready"
        except Exception as e:
            if not is_retryable_error(e):
                raise
            reason = str(e) or type(e).__name__

        if deadline is not None and time.monotonic() >= deadline:
            raise WaitTimeout(
                f"Timed out after {timeout}s waiting for {description}",
                attempts=attempt,
                timeout=timeout,
            )

        logger.info("Still waiting for %s (check %d): %s", description, attempt, reason)
        time.sleep(interval)
