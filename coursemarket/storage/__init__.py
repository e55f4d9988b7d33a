"""Storage module for media uploads to Firebase Storage."""

from coursemarket.storage.schemas import MediaFile, MediaKind, UploadedMedia
from coursemarket.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    InvalidContentTypeError,
    StorageNotConfiguredError,
    StorageUploadError,
    StorageValidationError,
)


__all__ = [
    "FileTooLargeError",
    "FirebaseStorageService",
    "InvalidContentTypeError",
    "MediaFile",
    "MediaKind",
    "StorageNotConfiguredError",
    "StorageUploadError",
    "StorageValidationError",
    "UploadedMedia",
]
