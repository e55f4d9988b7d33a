"""Value types for uploaded media."""

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    """Kind of media object; selects size limit, allowed types and folder."""

    IMAGE = "image"
    VIDEO = "video"


class UploadedMedia(BaseModel):
    """A stored media object."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Public URL of the uploaded file")
    handle: str = Field(..., description="Storage path, used to delete the file")


class MediaFile(NamedTuple):
    """Raw upload handed from a route to a service."""

    content: bytes
    content_type: str
    filename: str | None = None
