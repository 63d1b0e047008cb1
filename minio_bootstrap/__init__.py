"""
MinIO bootstrapper.

Provisions a bucket, a scoped-access user with freshly generated
credentials and a public-read policy on a MinIO server, then verifies the
new credentials before handing off to the application.
"""

__version__ = "1.0.0"

from minio_bootstrap.cli import main

__all__ = ["main", "__version__"]
