"""
Object storage utilities for owner documents and statement PDFs.
Objects live in private buckets and are served through presigned URLs.
"""

import logging
import uuid
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    STORAGE_ACCESS_KEY_ID,
    STORAGE_ENDPOINT_URL,
    STORAGE_REGION,
    STORAGE_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600

MAX_DOCUMENT_SIZE_BYTES = 20 * 1024 * 1024  # 20MB


def get_storage_client():
    """Get configured boto3 client for the S3-compatible storage endpoint"""
    return boto3.client(
        "s3",
        endpoint_url=STORAGE_ENDPOINT_URL,
        aws_access_key_id=STORAGE_ACCESS_KEY_ID,
        aws_secret_access_key=STORAGE_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name=STORAGE_REGION,
    )


def build_document_key(user_id: str, filename: str) -> str:
    """
    Generate a unique storage key for an owner document.

    Format: {user_id}/{uuid}.{extension}
    """
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{user_id}/{uuid.uuid4()}.{extension}"


def upload_object(bucket: str, key: str, content: bytes, content_type: Optional[str]) -> bool:
    """Upload bytes to a private bucket. Returns True on success."""
    try:
        get_storage_client().put_object(
            Bucket=bucket,
            Key=key,
            Body=content,
            ContentType=content_type or "application/octet-stream",
        )
        logger.info(f"📤 Uploaded {key} to {bucket} ({len(content)} bytes)")
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to upload {key} to {bucket}: {e}")
        return False


def delete_object(bucket: str, key: str) -> bool:
    """Delete an object. Returns True on success."""
    try:
        get_storage_client().delete_object(Bucket=bucket, Key=key)
        logger.info(f"🗑️ Deleted {key} from {bucket}")
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to delete {key} from {bucket}: {e}")
        return False


def generate_presigned_url(
    bucket: str, key: str, expiration: int = PRESIGNED_URL_EXPIRATION
) -> Optional[str]:
    """Generate a presigned GET URL for a private object"""
    try:
        return get_storage_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expiration,
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to presign {key} in {bucket}: {e}")
        return None
