"""
Blob storage for uploaded source documents.

Two backends selected by ``settings.storage_provider``:
- ``local``: files under ``settings.storage_local_root`` (development, tests)
- anything else: an S3-compatible bucket (Backblaze B2, AWS S3, MinIO, ...) via boto3
"""
import logging
from pathlib import Path
from typing import Any, Dict

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from transgrid.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Raised when storage connection fails."""
    pass


class StorageUploadError(StorageError):
    """Raised when file upload fails."""
    pass


class StorageDownloadError(StorageError):
    """Raised when file download fails."""
    pass


class StorageObjectNotFound(StorageDownloadError):
    """Raised when the requested object does not exist."""
    pass


def _uses_local_storage() -> bool:
    return settings.storage_provider.strip().lower() == "local"


def _local_path(storage_path: str) -> Path:
    root = Path(settings.storage_local_root).resolve()
    candidate = (root / storage_path).resolve()
    if root != candidate and root not in candidate.parents:
        raise StorageError(f"Storage path escapes the storage root: {storage_path}")
    return candidate


def get_storage_client():
    """
    Get an S3-compatible storage client.

    Raises:
        StorageConnectionError: If the configuration is incomplete or the client cannot be built
    """
    if not all([settings.storage_access_key_id, settings.storage_secret_access_key, settings.storage_bucket_name]):
        raise StorageConnectionError(
            "Storage configuration is incomplete. Please set STORAGE_ACCESS_KEY_ID, "
            "STORAGE_SECRET_ACCESS_KEY, and STORAGE_BUCKET_NAME in your environment."
        )

    config = Config(
        signature_version='s3v4',
        retries={'max_attempts': 3, 'mode': 'standard'}
    )

    client_kwargs = {
        'service_name': 's3',
        'aws_access_key_id': settings.storage_access_key_id,
        'aws_secret_access_key': settings.storage_secret_access_key,
        'config': config,
    }
    if settings.storage_endpoint_url:
        client_kwargs['endpoint_url'] = settings.storage_endpoint_url
    if settings.storage_region:
        client_kwargs['region_name'] = settings.storage_region

    try:
        return boto3.client(**client_kwargs)
    except (BotoCoreError, ValueError) as e:
        logger.error("Failed to create storage client: %s", e)
        raise StorageConnectionError(f"Failed to connect to storage: {e}") from e


def upload_file(file_content: bytes, storage_path: str) -> Dict[str, Any]:
    """
    Store ``file_content`` under ``storage_path``.

    Returns:
        Dictionary with ``file_path`` and ``size``.

    Raises:
        StorageUploadError: If the write fails
    """
    if _uses_local_storage():
        try:
            path = _local_path(storage_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(file_content)
        except OSError as e:
            logger.error("Local storage write failed for %s: %s", storage_path, e)
            raise StorageUploadError(f"Upload failed: {e}") from e
        return {"file_path": storage_path, "size": len(file_content)}

    client = get_storage_client()
    try:
        client.put_object(
            Bucket=settings.storage_bucket_name,
            Key=storage_path,
            Body=file_content
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Storage upload failed for %s: %s", storage_path, e)
        raise StorageUploadError(f"Upload failed: {e}") from e

    return {"file_path": storage_path, "size": len(file_content)}


def download_file(storage_path: str) -> bytes:
    """
    Read a stored file.

    Raises:
        StorageObjectNotFound: If nothing is stored under ``storage_path``
        StorageDownloadError: If the read fails for any other reason
    """
    if _uses_local_storage():
        path = _local_path(storage_path)
        if not path.is_file():
            raise StorageObjectNotFound(f"File not found: {storage_path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageDownloadError(f"Download failed: {e}") from e

    client = get_storage_client()
    try:
        response = client.get_object(
            Bucket=settings.storage_bucket_name,
            Key=storage_path
        )
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        if error_code in ('NoSuchKey', '404'):
            raise StorageObjectNotFound(f"File not found: {storage_path}") from e
        logger.error("Storage download failed: %s - %s", error_code, e)
        raise StorageDownloadError(f"Download failed: {e}") from e
    except BotoCoreError as e:
        logger.error("Unexpected error during download: %s", e)
        raise StorageDownloadError(f"Download failed: {e}") from e
