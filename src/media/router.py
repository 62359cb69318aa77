"""Media library endpoints.

Provides routes for:
- Single and batch uploads (multipart)
- Browsing the library
- Metadata updates and deletes by the uploader or an editor
"""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, File, Form, Query, UploadFile, status

from src.auth.dependencies import CurrentUser
from src.core.responses import build_pagination, success_response

from .dependencies import MediaServiceDep
from .schemas import MediaUpdateRequest
from .service import NoFileUploadedError, read_upload


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/media", tags=["media"])


@router.post("/upload", status_code=status.HTTP_201_CREATED, summary="Upload file")
async def upload_file(
    media_service: MediaServiceDep,
    user: CurrentUser,
    file: Annotated[UploadFile | None, File()] = None,
    alt_text: Annotated[str | None, Form(alias="altText", max_length=200)] = None,
    caption: Annotated[str | None, Form(max_length=500)] = None,
    folder: Annotated[str | None, Form(max_length=100)] = None,
) -> dict[str, Any]:
    """Store one file; images also get width variants."""
    if file is None:
        raise NoFileUploadedError

    logger.info(
        "media_upload_request",
        filename=file.filename,
        content_type=file.content_type,
    )
    media = await media_service.ingest(
        await read_upload("file", file),
        user,
        alt_text=alt_text,
        caption=caption,
        folder=folder,
    )
    return success_response(
        {"media": media.to_dict(), "imageData": media_service.image_data(media)},
        message="File uploaded successfully",
    )


@router.post(
    "/upload-multiple",
    status_code=status.HTTP_201_CREATED,
    summary="Upload several files",
)
async def upload_files(
    media_service: MediaServiceDep,
    user: CurrentUser,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> dict[str, Any]:
    """All or nothing: one bad file rejects the whole batch."""
    if not files:
        raise NoFileUploadedError("No files uploaded")

    uploads = [await read_upload("files", f) for f in files]
    stored = await media_service.ingest_many(uploads, user)
    return success_response(
        {"media": [m.to_dict() for m in stored]},
        message=f"{len(stored)} files uploaded successfully",
    )


@router.get("", summary="List media")
async def list_media(
    media_service: MediaServiceDep,
    user: CurrentUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: str | None = None,
    mime_type: Annotated[str | None, Query(alias="mimeType")] = None,
    folder: str | None = None,
) -> dict[str, Any]:
    items, total = await media_service.list_media(
        user,
        page=page,
        limit=limit,
        search=search,
        mime_type=mime_type,
        folder=folder,
    )
    return success_response(
        {
            "media": [m.to_dict() for m in items],
            "pagination": build_pagination(page, limit, total, "Media"),
        }
    )


@router.get("/{media_id}", summary="Get media")
async def get_media(
    media_id: UUID,
    media_service: MediaServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    media = await media_service.get_media(media_id, user)
    return success_response(
        {"media": media.to_dict(), "imageData": media_service.image_data(media)}
    )


@router.put("/{media_id}", summary="Update media metadata")
async def update_media(
    media_id: UUID,
    data: MediaUpdateRequest,
    media_service: MediaServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    media = await media_service.update_media(media_id, data, user)
    return success_response(
        {"media": media.to_dict()}, message="Media updated successfully"
    )


@router.delete("/{media_id}", summary="Delete media")
async def delete_media(
    media_id: UUID,
    media_service: MediaServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    await media_service.delete_media(media_id, user)
    return success_response(message="Media deleted successfully")
