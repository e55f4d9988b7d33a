"""Tests for FirebaseStorageService with a mocked bucket."""

from unittest.mock import MagicMock

import pytest

from coursemarket.config.settings import Settings
from coursemarket.storage.schemas import MediaKind
from coursemarket.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    InvalidContentTypeError,
    StorageNotConfiguredError,
    StorageUploadError,
    StorageValidationError,
)


PNG = b"\x89PNG\r\n\x1a\n" + bytes(32)
MP4 = b"\x00\x00\x00\x18ftypmp42" + bytes(32)


@pytest.fixture
def storage_settings() -> Settings:
    return Settings(
        firebase_enabled=True,
        firebase_credentials_path="/secrets/firebase.json",
        firebase_storage_bucket="coursemarket.appspot.com",
        upload_max_file_size_mb=1,
    )


@pytest.fixture
def bucket() -> MagicMock:
    return MagicMock()


@pytest.fixture
def storage_service(storage_settings, bucket) -> FirebaseStorageService:
    service = FirebaseStorageService(storage_settings)
    service._bucket = bucket
    return service


class TestPaths:
    """Tests for path and URL building."""

    def test_storage_path_by_kind(self, storage_service) -> None:
        image_path = storage_service.build_storage_path(MediaKind.IMAGE, "image/png")
        video_path = storage_service.build_storage_path(MediaKind.VIDEO, "video/mp4")

        assert image_path.startswith("course_uploads/images/")
        assert image_path.endswith(".png")
        assert video_path.startswith("course_uploads/videos/")
        assert video_path.endswith(".mp4")

    def test_extension_from_filename_fallback(self, storage_service) -> None:
        path = storage_service.build_storage_path(
            MediaKind.VIDEO, "video/x-unknown", "Lesson.MKV"
        )

        assert path.endswith(".mkv")

    def test_public_url(self, storage_service) -> None:
        url = storage_service.public_url("course_uploads/images/a b.png")

        assert url == (
            "https://storage.googleapis.com/coursemarket.appspot.com/"
            "course_uploads/images/a%20b.png"
        )


class TestValidate:
    """Tests for FirebaseStorageService.validate."""

    def test_too_large(self, storage_service) -> None:
        with pytest.raises(FileTooLargeError):
            storage_service.validate(PNG + bytes(1024 * 1024), "image/png", MediaKind.IMAGE)

    def test_video_limit_is_separate(self, storage_service) -> None:
        content = MP4 + bytes(2 * 1024 * 1024)

        assert storage_service.validate(content, "video/mp4", MediaKind.VIDEO) == "video/mp4"

    def test_type_not_allowed_for_kind(self, storage_service) -> None:
        with pytest.raises(InvalidContentTypeError):
            storage_service.validate(MP4, "video/mp4", MediaKind.IMAGE)

    def test_spoofed_content(self, storage_service) -> None:
        with pytest.raises(StorageValidationError):
            storage_service.validate(b"<html>not an image</html>", "image/png", MediaKind.IMAGE)


class TestUploadAndDelete:
    """Tests for upload_media and delete_media."""

    @pytest.mark.asyncio
    async def test_upload(self, storage_service, bucket) -> None:
        media = await storage_service.upload_media(PNG, "image/png", MediaKind.IMAGE)

        bucket.blob.assert_called_once_with(media.handle)
        blob = bucket.blob.return_value
        blob.upload_from_string.assert_called_once_with(PNG, content_type="image/png")
        blob.make_public.assert_called_once()
        assert media.url.endswith(media.handle)

    @pytest.mark.asyncio
    async def test_upload_failure_wrapped(self, storage_service, bucket) -> None:
        bucket.blob.return_value.upload_from_string.side_effect = RuntimeError("boom")

        with pytest.raises(StorageUploadError) as exc_info:
            await storage_service.upload_media(MP4, "video/mp4", MediaKind.VIDEO)
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_delete(self, storage_service, bucket) -> None:
        bucket.blob.return_value.exists.return_value = True

        assert await storage_service.delete_media("course_uploads/images/x.png") is True
        bucket.blob.return_value.delete.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_missing_blob(self, storage_service, bucket) -> None:
        bucket.blob.return_value.exists.return_value = False

        assert await storage_service.delete_media("course_uploads/images/x.png") is False
        bucket.blob.return_value.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_configured(self) -> None:
        service = FirebaseStorageService(Settings(firebase_enabled=False))

        with pytest.raises(StorageNotConfiguredError):
            await service.upload_media(PNG, "image/png", MediaKind.IMAGE)
        with pytest.raises(StorageNotConfiguredError):
            await service.delete_media("course_uploads/images/x.png")
