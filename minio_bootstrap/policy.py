"""The public-read access policy and its temporary file."""

import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Iterator

PUBLIC_READ_ACTIONS = [
    "s3:GetBucketLocation",
    "s3:ListBucket",
    "s3:PutObject",
    "s3:DeleteObject",
]


def build_public_read_policy() -> dict[str, Any]:
    """Return the fixed policy document attached to the generated user."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": list(PUBLIC_READ_ACTIONS),
                "Resource": ["arn:aws:s3:::*", "arn:aws:s3:::*/*"],
            }
        ],
    }


@contextmanager
def policy_file(policy: dict[str, Any]) -> Iterator[str]:
    """Write a policy document to a temporary file.

    Yields the file path. The file is removed on exit, including when the
    body raises.
    """
    fd, file_path = tempfile.mkstemp(prefix="public-read-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(policy, f, indent=2)
        yield file_path
    finally:
        if os.path.exists(file_path):
            os.remove(file_path)
