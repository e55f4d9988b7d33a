"""Firebase Storage service for course images and lecture videos.

Handles media uploads to Firebase Storage with:
- Magic bytes validation for content type verification
- Per-kind size limits and allowed types
- Storage path generation and public URL creation

The Firebase SDK is synchronous; blob calls run in a worker thread.
"""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote
from uuid import uuid4

import structlog

from coursemarket.config.settings import Settings
from coursemarket.core.exceptions import (
    InvalidInputError,
    ServiceUnavailableError,
    UpstreamError,
)
from coursemarket.storage.schemas import MediaKind, UploadedMedia
from coursemarket.utils.magic_bytes import validate_content_type


if TYPE_CHECKING:
    from google.cloud.storage import Bucket


logger = structlog.get_logger(__name__)


class StorageNotConfiguredError(ServiceUnavailableError):
    """Firebase Storage is not configured."""

    def __init__(self, message: str = "Firebase Storage is not configured") -> None:
        super().__init__(message, "storage_not_configured")


class StorageUploadError(UpstreamError):
    """Upload or delete call failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "storage_error")


class StorageValidationError(InvalidInputError):
    """File content failed validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "validation_error")


class FileTooLargeError(InvalidInputError):
    """File exceeds size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class InvalidContentTypeError(InvalidInputError):
    """Declared content type is not allowed."""

    def __init__(self, content_type: str, allowed: list[str]) -> None:
        message = f"Content type '{content_type}' is not allowed. Allowed: {', '.join(allowed)}"
        super().__init__(message, "invalid_content_type")


# Firebase app singleton
_firebase_app = None


def _init_firebase(settings: Settings) -> "Bucket":
    """Initialize Firebase Admin SDK and get storage bucket.

    Raises:
        StorageNotConfiguredError: If Firebase is not configured.
    """
    global _firebase_app  # noqa: PLW0603

    if not settings.firebase_configured:
        raise StorageNotConfiguredError

    # Lazy import to avoid loading Firebase SDK unless needed
    import firebase_admin  # noqa: PLC0415
    from firebase_admin import credentials, storage  # noqa: PLC0415

    creds_path = settings.firebase_credentials_path
    if not creds_path or not Path(creds_path).exists():
        raise StorageNotConfiguredError(
            f"Firebase credentials file not found: {creds_path}"
        )

    try:
        if _firebase_app is None:
            cred = credentials.Certificate(creds_path)
            _firebase_app = firebase_admin.initialize_app(
                cred,
                {
                    "storageBucket": settings.firebase_storage_bucket,
                    "projectId": settings.firebase_project_id,
                },
            )
            logger.info(
                "firebase_initialized",
                project_id=settings.firebase_project_id,
                bucket=settings.firebase_storage_bucket,
            )

        return storage.bucket()

    except Exception as e:
        logger.exception("firebase_init_failed", error=str(e))
        raise StorageNotConfiguredError(f"Failed to initialize Firebase: {e}") from e


class FirebaseStorageService:
    """Media blob store backed by Firebase Storage."""

    EXTENSION_MAP: dict[str, str] = {
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/webp": ".webp",
        "image/gif": ".gif",
        "image/avif": ".avif",
        "image/heic": ".heic",
        "video/mp4": ".mp4",
        "video/webm": ".webm",
        "video/quicktime": ".mov",
    }

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._bucket: Bucket | None = None

    @property
    def is_configured(self) -> bool:
        """Check if Firebase Storage is configured."""
        return self.settings.firebase_configured

    def max_size(self, kind: MediaKind) -> int:
        """Maximum file size in bytes for the media kind."""
        if kind == MediaKind.VIDEO:
            return self.settings.upload_max_video_size_mb * 1024 * 1024
        return self.settings.upload_max_file_size_mb * 1024 * 1024

    def allowed_types(self, kind: MediaKind) -> list[str]:
        """Allowed MIME types for the media kind."""
        if kind == MediaKind.VIDEO:
            return self.settings.upload_allowed_video_types
        return self.settings.upload_allowed_image_types

    def _get_bucket(self) -> "Bucket":
        """Get Firebase Storage bucket (lazy initialization)."""
        if self._bucket is None:
            self._bucket = _init_firebase(self.settings)
        return self._bucket

    def build_storage_path(
        self,
        kind: MediaKind,
        content_type: str,
        original_filename: str | None = None,
    ) -> str:
        """Build a unique storage path.

        Format: {storage_folder}/{kind}s/{uuid}{ext}
        """
        ext = self.EXTENSION_MAP.get(content_type, "")
        if not ext and original_filename:
            ext = Path(original_filename).suffix.lower()

        return f"{self.settings.storage_folder}/{kind.value}s/{uuid4()}{ext}"

    def public_url(self, storage_path: str) -> str:
        """Public URL for a stored file."""
        bucket_name = self.settings.firebase_storage_bucket
        encoded_path = "/".join(
            quote(part, safe="") for part in storage_path.split("/")
        )
        return f"https://storage.googleapis.com/{bucket_name}/{encoded_path}"

    def validate(self, content: bytes, content_type: str, kind: MediaKind) -> str:
        """Validate size, declared type and magic bytes.

        Returns:
            The detected content type.

        Raises:
            FileTooLargeError: If file exceeds size limit.
            InvalidContentTypeError: If content type is not allowed.
            StorageValidationError: If magic bytes validation fails.
        """
        max_size = self.max_size(kind)
        if len(content) > max_size:
            raise FileTooLargeError(len(content), max_size)

        allowed = self.allowed_types(kind)
        if content_type not in allowed:
            raise InvalidContentTypeError(content_type, allowed)

        is_valid, detected_type, error_msg = validate_content_type(
            content[:64],
            content_type,
            allowed_types=frozenset(allowed),
        )
        if not is_valid:
            logger.warning(
                "magic_bytes_validation_failed",
                declared_type=content_type,
                detected_type=detected_type,
                error=error_msg,
            )
            raise StorageValidationError(error_msg or "Invalid file content")

        return detected_type or content_type

    def _put_blob(self, storage_path: str, content: bytes, content_type: str) -> None:
        blob = self._get_bucket().blob(storage_path)
        blob.cache_control = "public, max-age=31536000, immutable"
        blob.upload_from_string(content, content_type=content_type)
        blob.make_public()

    def _remove_blob(self, storage_path: str) -> bool:
        blob = self._get_bucket().blob(storage_path)
        if not blob.exists():
            return False
        blob.delete()
        return True

    async def upload_media(
        self,
        content: bytes,
        content_type: str,
        kind: MediaKind,
        filename: str | None = None,
    ) -> UploadedMedia:
        """Upload an image or video.

        Raises:
            StorageNotConfiguredError: If Firebase is not configured.
            FileTooLargeError, InvalidContentTypeError, StorageValidationError:
                If the file is rejected.
            StorageUploadError: If the upload fails.
        """
        if not self.is_configured:
            raise StorageNotConfiguredError

        actual_type = self.validate(content, content_type, kind)
        storage_path = self.build_storage_path(kind, actual_type, filename)

        try:
            await asyncio.to_thread(self._put_blob, storage_path, content, actual_type)
        except StorageNotConfiguredError:
            raise
        except Exception as e:
            logger.exception("upload_failed", storage_path=storage_path, error=str(e))
            raise StorageUploadError(f"Failed to upload file: {e}") from e

        logger.info(
            "media_uploaded",
            storage_path=storage_path,
            kind=kind.value,
            content_type=actual_type,
            file_size=len(content),
        )
        return UploadedMedia(url=self.public_url(storage_path), handle=storage_path)

    async def delete_media(self, handle: str) -> bool:
        """Delete a stored file by its handle.

        Returns:
            True if deleted, False if not found.

        Raises:
            StorageNotConfiguredError: If Firebase is not configured.
            StorageUploadError: If the delete call fails.
        """
        if not self.is_configured:
            raise StorageNotConfiguredError

        try:
            deleted = await asyncio.to_thread(self._remove_blob, handle)
        except StorageNotConfiguredError:
            raise
        except Exception as e:
            logger.exception("delete_failed", storage_path=handle, error=str(e))
            raise StorageUploadError(f"Failed to delete file: {e}") from e

        if deleted:
            logger.info("media_deleted", storage_path=handle)
        else:
            logger.warning("delete_file_not_found", storage_path=handle)
        return deleted
