#!/usr/bin/env python3
"""
MinIO bootstrapper

Run this script at container startup to provision the application's bucket,
user and access policy on MinIO.

Usage:
    python run.py                     # Configure from environment variables
    python run.py -q                  # Quiet mode (summary only)
    python run.py --log-format json   # Structured log lines
    python run.py --wait-timeout 300  # Give up waiting after 5 minutes
"""

import sys
from minio_bootstrap.cli import main

if __name__ == "__main__":
    sys.exit(main())
