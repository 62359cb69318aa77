"""E-paper service layer.

Business logic for:
- Issue listing by year/month and by date range
- One issue per calendar day
- PDF storage with removal when the record cannot be created
- View and download counters (atomic COUNTER columns)
"""

from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.auth.permissions import Action, authorize, can
from src.config.settings import Settings
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.core.responses import paginate
from src.media.service import FileTooLargeError, IncomingFile
from src.media.storage import LocalStorage
from src.utils.dates import sort_key
from src.utils.magic_bytes import is_pdf, normalize_mime

from .models import EpaperIssue, EpaperStatus
from .schemas import parse_issue_date


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)

EPAPER_SUBDIR = "epapers"


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EpaperNotFoundError(NotFoundError):
    def __init__(self, message: str = "E-paper issue not found"):
        super().__init__(message, "epaper_not_found")


class PdfMissingError(NotFoundError):
    def __init__(self, message: str = "PDF file not found on server"):
        super().__init__(message, "pdf_missing")


class PdfRequiredError(ValidationError):
    def __init__(self, message: str = "PDF file is required"):
        super().__init__(message, "pdf_required")


class InvalidPdfError(ValidationError):
    def __init__(self, message: str = "Only PDF files are allowed for e-papers"):
        super().__init__(message, "invalid_pdf")


class EpaperDateTakenError(ConflictError):
    def __init__(self, message: str = "An e-paper issue for this date already exists"):
        super().__init__(message, "epaper_date_taken")


# ==============================================================================
# E-paper Service
# ==============================================================================


class EpaperService:
    """Service for e-paper issues."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        settings: Settings,
        storage: LocalStorage | None = None,
    ):
        self.session = session
        self.keyspace = keyspace
        self.settings = settings
        self.storage = storage or LocalStorage.from_settings(settings)
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._insert_issue = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.epaper_issues
            (id, issue_date, issue_day, pdf_url, pdf_path, page_count, title,
             description, cover_image, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_issue = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.epaper_issues WHERE id = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.epaper_issues
        """)

        self._select_by_day = self.session.prepare(f"""
            SELECT id FROM {self.keyspace}.epaper_issues WHERE issue_day = ?
        """)

        self._delete_issue = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.epaper_issues WHERE id = ?
        """)

        self._select_all_counters = self.session.prepare(f"""
            SELECT issue_id, view_count, download_count
            FROM {self.keyspace}.epaper_counters
        """)

        self._select_counters = self.session.prepare(f"""
            SELECT view_count, download_count
            FROM {self.keyspace}.epaper_counters WHERE issue_id = ?
        """)

        self._increment_views = self.session.prepare(f"""
            UPDATE {self.keyspace}.epaper_counters
            SET view_count = view_count + 1
            WHERE issue_id = ?
        """)

        self._increment_downloads = self.session.prepare(f"""
            UPDATE {self.keyspace}.epaper_counters
            SET download_count = download_count + 1
            WHERE issue_id = ?
        """)

        self._delete_counters = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.epaper_counters WHERE issue_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def _counters(self) -> dict[UUID, tuple[int, int]]:
        rows = await self.session.aexecute(self._select_all_counters, [])
        return {
            row.issue_id: (row.view_count or 0, row.download_count or 0)
            for row in rows
        }

    async def find_by_id(self, issue_id: UUID) -> EpaperIssue | None:
        result = await self.session.aexecute(self._select_issue, [issue_id])
        row = result[0] if result else None
        if not row:
            return None

        counters = await self.session.aexecute(self._select_counters, [issue_id])
        counter = counters[0] if counters else None
        return EpaperIssue.from_row(
            row,
            view_count=(counter.view_count or 0) if counter else 0,
            download_count=(counter.download_count or 0) if counter else 0,
        )

    async def _visible_issue(
        self,
        issue_id: UUID,
        viewer: "AuthenticatedUser | None",
    ) -> EpaperIssue:
        """Unpublished issues are reported missing to non-privileged viewers."""
        issue = await self.find_by_id(issue_id)
        if issue is None:
            raise EpaperNotFoundError
        if not issue.is_published and not can(viewer, Action.VIEW_UNPUBLISHED):
            raise EpaperNotFoundError
        return issue

    async def all_issues(self) -> list[EpaperIssue]:
        rows = await self.session.aexecute(self._select_all, [])
        counters = await self._counters()
        return [
            EpaperIssue.from_row(row, *counters.get(row.id, (0, 0))) for row in rows
        ]

    async def _visible_issues(
        self,
        viewer: "AuthenticatedUser | None",
        status: EpaperStatus | None = None,
    ) -> list[EpaperIssue]:
        issues = await self.all_issues()
        if not can(viewer, Action.VIEW_UNPUBLISHED):
            status = EpaperStatus.PUBLISHED
        if status is not None:
            issues = [i for i in issues if i.status == status.value]
        return issues

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_issues(
        self,
        viewer: "AuthenticatedUser | None",
        page: int = 1,
        limit: int = 12,
        year: int | None = None,
        month: int | None = None,
        status: EpaperStatus | None = None,
    ) -> tuple[list[EpaperIssue], int]:
        """Issues newest first, optionally within a year or a year/month.

        A month without a year is ignored.
        """
        issues = await self._visible_issues(viewer, status)

        if year is not None:
            issues = [
                i
                for i in issues
                if i.issue_date.year == year
                and (month is None or i.issue_date.month == month)
            ]

        issues.sort(key=lambda i: sort_key(i.issue_date), reverse=True)
        return paginate(issues, page, limit), len(issues)

    async def by_date_range(
        self,
        start_date: str | None,
        end_date: str | None,
        viewer: "AuthenticatedUser | None" = None,
    ) -> list[EpaperIssue]:
        """Issues whose day falls within [start_date, end_date], both inclusive."""
        if not start_date or not end_date:
            raise ValidationError("Start date and end date are required")

        first = parse_issue_date(start_date)
        last = parse_issue_date(end_date)

        visible = await self._visible_issues(viewer)
        issues = [i for i in visible if first <= i.issue_date.date() <= last]
        issues.sort(key=lambda i: sort_key(i.issue_date), reverse=True)
        return issues

    async def get_issue(
        self,
        issue_id: UUID,
        viewer: "AuthenticatedUser | None" = None,
    ) -> EpaperIssue:
        """Fetch an issue and count the view.

        The returned issue carries the counts as they were read.
        """
        issue = await self._visible_issue(issue_id, viewer)
        await self.session.aexecute(self._increment_views, [issue.id])
        return issue

    async def open_pdf(
        self,
        issue_id: UUID,
        viewer: "AuthenticatedUser | None" = None,
    ) -> tuple[EpaperIssue, Path]:
        """Count a download and resolve the PDF on disk.

        Raises:
            EpaperNotFoundError: Unknown or hidden issue.
            PdfMissingError: The record exists but the file is gone.
        """
        issue = await self._visible_issue(issue_id, viewer)
        await self.session.aexecute(self._increment_downloads, [issue.id])

        if not issue.pdf_path or not self.storage.exists(issue.pdf_path):
            logger.error(
                "epaper_pdf_missing", issue_id=str(issue.id), path=issue.pdf_path
            )
            raise PdfMissingError

        return issue, self.storage.path_for(issue.pdf_path)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def _validate_pdf(self, pdf: IncomingFile | None) -> None:
        if pdf is None or not pdf.content:
            raise PdfRequiredError

        max_size = self.settings.max_epaper_bytes
        if len(pdf.content) > max_size:
            raise FileTooLargeError(len(pdf.content), max_size)

        if normalize_mime(pdf.content_type) != "application/pdf" or not is_pdf(
            pdf.content[:64]
        ):
            raise InvalidPdfError

    async def day_taken(self, day: date) -> bool:
        result = await self.session.aexecute(self._select_by_day, [day.isoformat()])
        return bool(result)

    async def create_issue(
        self,
        pdf: IncomingFile | None,
        issue_date: str | date,
        actor: "AuthenticatedUser",
        title: str | None = None,
        description: str | None = None,
        page_count: int = 1,
        status: EpaperStatus = EpaperStatus.PUBLISHED,
    ) -> EpaperIssue:
        """Store the PDF and record the issue.

        Raises:
            PdfRequiredError, InvalidPdfError, FileTooLargeError: Bad upload.
            EpaperDateTakenError: Another issue exists for the same day.
        """
        authorize(actor, Action.MANAGE_EPAPER)
        self._validate_pdf(pdf)
        day = parse_issue_date(issue_date)

        if await self.day_taken(day):
            raise EpaperDateTakenError

        filename = self.storage.build_filename("epaper", "issue.pdf")
        relative = f"{EPAPER_SUBDIR}/{filename}"
        await self.storage.write(relative, pdf.content)

        issue = EpaperIssue.for_day(
            day,
            pdf_url=self.storage.url_for(relative),
            pdf_path=relative,
            page_count=page_count,
            title=title,
            description=description,
            status=status.value,
        )
        try:
            await self.session.aexecute(
                self._insert_issue,
                [
                    issue.id,
                    issue.issue_date,
                    issue.issue_day,
                    issue.pdf_url,
                    issue.pdf_path,
                    issue.page_count,
                    issue.title,
                    issue.description,
                    issue.cover_image,
                    issue.status,
                    issue.created_at,
                    issue.updated_at,
                ],
            )
        except Exception:
            await self.storage.remove_quietly([relative])
            logger.exception("epaper_create_failed", path=relative)
            raise

        logger.info(
            "epaper_created",
            issue_id=str(issue.id),
            issue_day=issue.issue_day,
            size=len(pdf.content),
        )
        return issue

    async def delete_issue(self, issue_id: UUID, actor: "AuthenticatedUser") -> None:
        """Remove the PDF (failures are only logged) and the record."""
        authorize(actor, Action.MANAGE_EPAPER)
        issue = await self.find_by_id(issue_id)
        if issue is None:
            raise EpaperNotFoundError

        if issue.pdf_path:
            await self.storage.remove_quietly([issue.pdf_path])

        await self.session.aexecute(self._delete_issue, [issue.id])
        await self.session.aexecute(self._delete_counters, [issue.id])
        logger.info("epaper_deleted", issue_id=str(issue.id))
