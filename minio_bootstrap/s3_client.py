"""S3 client factory for bucket operations.

Creates boto3 S3 clients bound to a session's endpoint and credentials.
MinIO serves buckets path-style, and the signature version is pinned to
's3v4' which MinIO requires.
"""

import boto3
from botocore.client import Config

from minio_bootstrap.models import Session

# MinIO ignores the region, but botocore needs one to sign requests
DEFAULT_REGION = "us-east-1"


def build_s3_client(session: Session, region_name: str = DEFAULT_REGION):
    """Build a boto3 S3 client for the given session.

    Args:
        session: Session holding endpoint and credentials.
        region_name: Region used for request signing.

    Returns:
        A boto3 S3 client authenticated as the session's user.
    """
    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
        retries={"max_attempts": 1, "mode": "standard"},
    )

    return boto3.client(
        "s3",
        endpoint_url=session.endpoint,
        aws_access_key_id=session.access_key,
        aws_secret_access_key=session.secret_key,
        region_name=region_name,
        config=boto_config,
    )
