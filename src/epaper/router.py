"""E-paper endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse

from src.auth.dependencies import OptionalUser, require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.exceptions import ValidationError
from src.core.responses import build_pagination, success_response
from src.media.service import read_upload

from .dependencies import EpaperServiceDep
from .models import EpaperStatus


router = APIRouter(prefix="/api/epaper", tags=["epaper"])

EpaperManager = Annotated[
    AuthenticatedUser, Depends(require_action(Action.MANAGE_EPAPER))
]


def parse_status(value: str | None) -> EpaperStatus | None:
    if not value:
        return None
    try:
        return EpaperStatus(value.upper())
    except ValueError as e:
        raise ValidationError("Invalid e-paper status") from e


@router.get("", summary="List e-paper issues")
async def list_issues(
    epaper_service: EpaperServiceDep,
    user: OptionalUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
    year: Annotated[int | None, Query(ge=1900, le=9999)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict[str, Any]:
    """Published issues for visitors; editors may filter by any status."""
    issues, total = await epaper_service.list_issues(
        user,
        page=page,
        limit=limit,
        year=year,
        month=month,
        status=parse_status(status_filter),
    )
    return success_response(
        {
            "issues": [i.to_dict() for i in issues],
            "pagination": build_pagination(page, limit, total, "Issues"),
        }
    )


@router.get("/date-range", summary="Issues within a date range")
async def issues_by_date_range(
    epaper_service: EpaperServiceDep,
    user: OptionalUser,
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
) -> dict[str, Any]:
    issues = await epaper_service.by_date_range(start_date, end_date, user)
    return success_response({"issues": [i.to_dict() for i in issues]})


@router.get("/{issue_id}/download", summary="Download issue PDF")
async def download_issue(
    issue_id: UUID,
    epaper_service: EpaperServiceDep,
    user: OptionalUser,
) -> FileResponse:
    """Serve the PDF inline so it can be embedded in a viewer."""
    issue, path = await epaper_service.open_pdf(issue_id, user)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=issue.download_name,
        content_disposition_type="inline",
    )


@router.get("/{issue_id}", summary="Get e-paper issue")
async def get_issue(
    issue_id: UUID,
    epaper_service: EpaperServiceDep,
    user: OptionalUser,
) -> dict[str, Any]:
    issue = await epaper_service.get_issue(issue_id, user)
    return success_response({"issue": issue.to_dict()})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create e-paper issue")
async def create_issue(
    epaper_service: EpaperServiceDep,
    user: EpaperManager,
    issue_date: Annotated[str, Form(alias="issueDate")],
    pdf: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str | None, Form(max_length=200)] = None,
    description: Annotated[str | None, Form(max_length=1000)] = None,
    page_count: Annotated[int, Form(alias="pageCount", ge=1)] = 1,
    issue_status: Annotated[str | None, Form(alias="status")] = None,
) -> dict[str, Any]:
    """Multipart upload of the edition PDF plus its metadata."""
    issue = await epaper_service.create_issue(
        await read_upload("pdf", pdf) if pdf is not None else None,
        issue_date,
        user,
        title=title,
        description=description,
        page_count=page_count,
        status=parse_status(issue_status) or EpaperStatus.PUBLISHED,
    )
    return success_response(
        {"issue": issue.to_dict()},
        message="E-paper issue created successfully",
    )


@router.delete("/{issue_id}", summary="Delete e-paper issue")
async def delete_issue(
    issue_id: UUID,
    epaper_service: EpaperServiceDep,
    user: EpaperManager,
) -> dict[str, Any]:
    await epaper_service.delete_issue(issue_id, user)
    return success_response(message="E-paper issue deleted successfully")
