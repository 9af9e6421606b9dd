"""Storage service with provider interface (GCS/S3/local filesystem)."""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from uuid import UUID

from app.core.config import get_settings, StorageProvider

logger = logging.getLogger(__name__)
settings = get_settings()


class FileTooLargeError(ValueError):
    """Upload exceeds the configured size limit."""


class UnsupportedFileTypeError(ValueError):
    """Upload MIME type is not on the allow-list."""


class InvalidFileDataError(ValueError):
    """Upload payload is not valid base64."""


class StorageProviderInterface(ABC):
    """Abstract interface for storage providers."""

    @abstractmethod
    async def put_object(self, object_path: str, data: bytes, content_type: str) -> str:
        """Store bytes at `object_path` and return the stored key."""
        pass

    @abstractmethod
    async def get_object(self, object_path: str) -> bytes:
        """Read an object's bytes. Raises FileNotFoundError when absent."""
        pass

    @abstractmethod
    async def delete_object(self, object_path: str) -> bool:
        """Delete an object from storage."""
        pass


class GCSStorageProvider(StorageProviderInterface):
    """Google Cloud Storage provider."""

    def __init__(self, bucket_name: str, project_id: Optional[str] = None):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    async def put_object(self, object_path: str, data: bytes, content_type: str) -> str:
        blob = self.bucket.blob(object_path)
        blob.upload_from_string(data, content_type=content_type)
        return object_path

    async def get_object(self, object_path: str) -> bytes:
        blob = self.bucket.blob(object_path)
        if not blob.exists():
            raise FileNotFoundError(object_path)
        return blob.download_as_bytes()

    async def delete_object(self, object_path: str) -> bool:
        blob = self.bucket.blob(object_path)
        if blob.exists():
            blob.delete()
            return True
        return False


class S3StorageProvider(StorageProviderInterface):
    """AWS S3 storage provider."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self._client = None
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    async def put_object(self, object_path: str, data: bytes, content_type: str) -> str:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=object_path,
            Body=data,
            ContentType=content_type,
        )
        return object_path

    async def get_object(self, object_path: str) -> bytes:
        from botocore.exceptions import ClientError

        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=object_path)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise FileNotFoundError(object_path) from e
            raise
        return response["Body"].read()

    async def delete_object(self, object_path: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=object_path)
            return True
        except ClientError as e:
            logger.error(f"[STORAGE] S3 delete failed for {object_path}: {e}")
            return False


class LocalStorageProvider(StorageProviderInterface):
    """Filesystem provider for development and tests."""

    def __init__(self, root: str):
        self.root = Path(root)

    def _resolve(self, object_path: str) -> Path:
        path = (self.root / object_path).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object path escapes storage root: {object_path}")
        return path

    async def put_object(self, object_path: str, data: bytes, content_type: str) -> str:
        path = self._resolve(object_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return object_path

    async def get_object(self, object_path: str) -> bytes:
        path = self._resolve(object_path)
        if not path.is_file():
            raise FileNotFoundError(object_path)
        return path.read_bytes()

    async def delete_object(self, object_path: str) -> bool:
        path = self._resolve(object_path)
        if path.is_file():
            path.unlink()
            return True
        return False


def decode_base64_payload(file_data: str) -> bytes:
    """Decode a base64 upload, stripping any `data:<mime>;base64,` prefix."""
    if file_data.startswith("data:") and "," in file_data:
        file_data = file_data.split(",", 1)[1]
    try:
        return base64.b64decode(file_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidFileDataError("File data is not valid base64") from e


class StorageService:
    """High-level storage service wrapping provider interface."""

    ALLOWED_MIME_TYPES = {
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/heic",
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }

    def __init__(self, provider: StorageProviderInterface, max_size_bytes: Optional[int] = None):
        self.provider = provider
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    def generate_object_path(self, project_id: UUID, document_id: UUID, file_name: str) -> str:
        """Object key for a project document."""
        safe_name = Path(file_name).name or "file"
        return f"projects/{project_id}/documents/{document_id}/{safe_name}"

    def validate_upload(self, mime_type: str, file_size_bytes: int) -> None:
        """Raise if the upload breaks the MIME allow-list or size limit."""
        if mime_type not in self.ALLOWED_MIME_TYPES:
            raise UnsupportedFileTypeError(
                "File type not supported. Please upload images, PDFs, or documents."
            )
        if file_size_bytes > self.max_size_bytes:
            max_mb = self.max_size_bytes // (1024 * 1024)
            raise FileTooLargeError(f"File size must be under {max_mb}MB")

    async def upload_document(
        self,
        project_id: UUID,
        document_id: UUID,
        file_name: str,
        mime_type: str,
        file_data: str,
    ) -> tuple[str, int]:
        """Validate and store a base64 upload.

        Returns:
            Tuple of (object_path, file_size_bytes)
        """
        data = decode_base64_payload(file_data)
        self.validate_upload(mime_type, len(data))

        object_path = self.generate_object_path(project_id, document_id, file_name)
        await self.provider.put_object(object_path, data, mime_type)
        return object_path, len(data)

    async def download(self, object_path: str) -> bytes:
        return await self.provider.get_object(object_path)

    async def delete(self, object_path: str) -> bool:
        """Best-effort blob removal; failures are logged, not raised."""
        try:
            return await self.provider.delete_object(object_path)
        except Exception as e:
            logger.error(f"[STORAGE] Failed to delete {object_path}: {e}")
            return False


def get_storage_service() -> StorageService:
    """Factory function to get storage service based on config."""
    if settings.storage_provider == StorageProvider.GCS:
        provider = GCSStorageProvider(
            bucket_name=settings.bucket_name,
            project_id=settings.gcs_project_id,
        )
    elif settings.storage_provider == StorageProvider.S3:
        provider = S3StorageProvider(
            bucket_name=settings.bucket_name,
            region=settings.aws_region or "ap-southeast-2",
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    else:
        provider = LocalStorageProvider(settings.local_storage_path)

    return StorageService(provider)
