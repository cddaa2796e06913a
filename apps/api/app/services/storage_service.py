"""File storage for uploaded RFPs and company documents (local disk or S3)."""

import logging
import os
import secrets
import time
from uuid import UUID

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamFailureError
from app.utils.normalization import sanitize_filename

logger = logging.getLogger(__name__)


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client() -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=settings.S3_ENDPOINT_URL.rstrip("/") or None,
    )


def _local_path(storage_key: str) -> str:
    root = os.path.abspath(settings.LOCAL_STORAGE_PATH)
    path = os.path.abspath(os.path.join(root, storage_key))
    if not path.startswith(root + os.sep):
        raise NotFoundError("File not found")
    return path


def build_storage_key(user_id: UUID, file_name: str, folder: str | None = None) -> str:
    """`{folder/}{user_id}/{timestamp}_{random}_{sanitized name}`."""
    key = f"{user_id}/{int(time.time() * 1000)}_{secrets.token_hex(4)}_{sanitize_filename(file_name)}"
    return f"{folder}/{key}" if folder else key


# =============================================================================
# File Operations
# =============================================================================

def store_file(storage_key: str, content: bytes, content_type: str) -> None:
    """Store bytes to the configured backend."""
    if settings.STORAGE_BACKEND == "s3":
        try:
            _get_s3_client().put_object(
                Bucket=settings.S3_BUCKET, Key=storage_key, Body=content, ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", storage_key, e)
            raise UpstreamFailureError("Failed to upload file to storage") from e
        return

    path = _local_path(storage_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)


def read_file(storage_key: str) -> bytes:
    if settings.STORAGE_BACKEND == "s3":
        try:
            response = _get_s3_client().get_object(Bucket=settings.S3_BUCKET, Key=storage_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("File not found in storage") from e
            raise UpstreamFailureError("Failed to download file from storage") from e
        except BotoCoreError as e:
            raise UpstreamFailureError("Failed to download file from storage") from e
        return response["Body"].read()

    path = _local_path(storage_key)
    if not os.path.exists(path):
        raise NotFoundError("File not found in storage")
    with open(path, "rb") as f:
        return f.read()


def delete_file(storage_key: str) -> None:
    """Delete a stored object; a missing object is not an error."""
    if settings.STORAGE_BACKEND == "s3":
        try:
            _get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=storage_key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", storage_key, e)
            raise UpstreamFailureError("Failed to delete file from storage") from e
        return

    path = _local_path(storage_key)
    if os.path.exists(path):
        os.remove(path)
