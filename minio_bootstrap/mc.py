"""Thin wrapper around the MinIO client CLI (``mc``).

MinIO's administrative API (users, IAM policies, anonymous bucket policies,
server info) is not part of the S3 API, so these operations are executed
through ``mc`` with ``--json`` output. Every command is run to completion
and either returns the decoded JSON document or raises ``McError``.
"""

import json
import logging
import subprocess
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

MASK = "*****"


class McError(Exception):
    """Raised when an ``mc`` command exits non-zero."""

    def __init__(self, message: str, command: Sequence[str] = (), returncode: Optional[int] = None):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode


class McNotFoundError(McError):
    """Raised when the ``mc`` binary cannot be executed."""

    pass


def parse_mc_output(stdout: str) -> Any:
    """Decode ``mc --json`` output.

    Most commands print one JSON document; some print one document per line.
    Multi-line output is returned as a list.
    """
    lines = [line for line in stdout.splitlines() if line.strip()]
    if not lines:
        return None
    if len(lines) == 1:
        return json.loads(lines[0])

    documents = []
    for line in lines:
        try:
            documents.append(json.loads(line))
        except json.JSONDecodeError:
            documents.append(line)
    return documents


def _format_error(error: dict) -> str:
    """Join an ``mc`` error's message with its cause and server error code.

    ``mc`` wraps server errors, e.g. ``{"message": "Unable to get user info",
    "cause": {"message": "The specified user does not exist.", "error":
    {"Code": "XMinioAdminNoSuchUser", ...}}}``.
    """
    cause = error.get("cause")
    if not isinstance(cause, dict):
        cause = {}
    server_error = cause.get("error")
    if not isinstance(server_error, dict):
        server_error = {}

    message = ": ".join(m for m in (error.get("message"), cause.get("message")) if m)
    if server_error.get("Code"):
        message = f"{message} ({server_error['Code']})"
    return message or json.dumps(error)


def extract_error_message(stdout: str, stderr: str) -> str:
    """Pull the most useful error message out of a failed command."""
    for text in (stdout, stderr):
        for line in text.splitlines():
            try:
                doc = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(doc, dict) and doc.get("status") == "error":
                return _format_error(doc.get("error") or {})
    return stderr.strip() or stdout.strip() or "Unspecified error: empty response from mc"


class McClient:
    """Runs ``mc`` commands.

    Args:
        binary: Name or path of the ``mc`` executable.
        config_dir: Optional ``mc`` configuration directory (``-C``), keeping
            alias definitions out of the user's home directory.
        timeout: Seconds before a single command is abandoned.
    """

    def __init__(
        self,
        binary: str = "mc",
        config_dir: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.binary = binary
        self.config_dir = config_dir
        self.timeout = timeout

    def _command(self, args: list[str], secrets: Sequence[str] = ()) -> Any:
        """Run ``mc <args> --json`` and return the decoded output.

        Args:
            args: Command arguments after the binary.
            secrets: Argument values that must never appear in logs.

        Raises:
            McNotFoundError: If the binary is missing.
            McError: If the command fails or times out.
        """
        cmd = [self.binary]
        if self.config_dir:
            cmd += ["-C", self.config_dir]
        cmd += args + ["--json"]

        printable = [MASK if arg in secrets else arg for arg in cmd]
        logger.debug("Running %s", " ".join(printable))

        try:
            ret = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise McNotFoundError(
                f"Unable to find the MinIO client '{self.binary}'. Install it from "
                "<https://min.io/docs/minio/linux/reference/minio-mc.html>.",
                command=printable,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise McError(
                f"mc {args[0]} timed out after {self.timeout}s", command=printable
            ) from e

        if ret.returncode != 0:
            msg = extract_error_message(ret.stdout, ret.stderr)
            raise McError(msg, command=printable, returncode=ret.returncode)

        try:
            return parse_mc_output(ret.stdout)
        except json.JSONDecodeError as e:
            raise McError(f"Invalid JSON from mc: {e}", command=printable) from e

    def alias_set(self, alias: str, url: str, access_key: str, secret_key: str) -> Any:
        return self._command(
            ["alias", "set", alias, url, access_key, secret_key],
            secrets=(secret_key,),
        )

    def alias_remove(self, alias: str) -> Any:
        return self._command(["alias", "remove", alias])

    def admin_info(self, alias: str) -> dict:
        return self._command(["admin", "info", alias])

    def user_add(self, alias: str, access_key: str, secret_key: str) -> Any:
        return self._command(
            ["admin", "user", "add", alias, access_key, secret_key],
            secrets=(secret_key,),
        )

    def user_info(self, alias: str, access_key: str) -> dict:
        return self._command(["admin", "user", "info", alias, access_key])

    def policy_create(self, alias: str, policy_name: str, policy_path: str) -> Any:
        return self._command(["admin", "policy", "create", alias, policy_name, policy_path])

    def policy_attach(self, alias: str, policy_name: str, username: str) -> Any:
        return self._command(
            ["admin", "policy", "attach", alias, policy_name, "--user", username]
        )

    def anonymous_set_json(self, policy_path: str, target: str) -> Any:
        return self._command(["anonymous", "set-json", policy_path, target])
