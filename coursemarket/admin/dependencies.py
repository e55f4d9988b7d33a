"""FastAPI dependencies for admin operations."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, UploadFile, status

from coursemarket.admin.service import AdminService
from coursemarket.storage.schemas import MediaFile


async def get_admin_service(request: Request) -> AdminService:
    """Get admin service from app state."""
    service = getattr(request.app.state, "admin_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin service not available",
        )
    return service


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]


async def read_upload(upload: UploadFile | None) -> MediaFile | None:
    """Read a multipart file into memory; an empty file field counts as absent."""
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    if not content:
        return None
    return MediaFile(
        content=content,
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename,
    )
