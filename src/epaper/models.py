"""Database models for e-paper issues.

Cassandra table definitions for:
- Issues: keyed by id; ``issue_day`` (``YYYY-MM-DD``) is indexed for the
  one-issue-per-day check
- Counters: COUNTER table holding view and download counts
"""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import day_start, ensure_utc_aware, utc_now


class EpaperStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

EPAPER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.epaper_issues (
    id UUID PRIMARY KEY,
    issue_date TIMESTAMP,
    issue_day TEXT,
    pdf_url TEXT,
    pdf_path TEXT,
    page_count INT,
    title TEXT,
    description TEXT,
    cover_image TEXT,
    status TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

EPAPER_DAY_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS epaper_issue_day_idx ON {keyspace}.epaper_issues (issue_day)
"""

EPAPER_COUNTERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.epaper_counters (
    issue_id UUID PRIMARY KEY,
    view_count COUNTER,
    download_count COUNTER
)
"""

EPAPER_TABLES_CQL = [
    EPAPER_TABLE_CQL,
    EPAPER_DAY_INDEX_CQL,
    EPAPER_COUNTERS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class EpaperIssue:
    """One printed edition, stored as a PDF.

    Attributes:
        issue_date: Midnight UTC of the edition's calendar day
        pdf_url: Public URL of the PDF
        pdf_path: PDF location relative to the uploads root
        view_count: Detail reads, from the counters table
        download_count: PDF downloads, from the counters table
    """

    def __init__(
        self,
        issue_date: datetime,
        pdf_url: str,
        pdf_path: str,
        id: UUID | None = None,
        page_count: int = 1,
        title: str | None = None,
        description: str | None = None,
        cover_image: str | None = None,
        status: str = EpaperStatus.PUBLISHED.value,
        view_count: int = 0,
        download_count: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.issue_date = ensure_utc_aware(issue_date)
        self.pdf_url = pdf_url
        self.pdf_path = pdf_path
        self.page_count = page_count or 1
        self.title = title
        self.description = description
        self.cover_image = cover_image
        self.status = status
        self.view_count = view_count or 0
        self.download_count = download_count or 0
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def issue_day(self) -> str:
        return self.issue_date.date().isoformat()

    @property
    def is_published(self) -> bool:
        return self.status == EpaperStatus.PUBLISHED.value

    @property
    def download_name(self) -> str:
        return f"{self.title or 'epaper'}.pdf"

    @classmethod
    def for_day(cls, day: date, **kwargs: Any) -> "EpaperIssue":
        return cls(issue_date=day_start(day), **kwargs)

    @classmethod
    def from_row(
        cls,
        row: Any,
        view_count: int = 0,
        download_count: int = 0,
    ) -> "EpaperIssue":
        return cls(
            id=row.id,
            issue_date=row.issue_date,
            pdf_url=row.pdf_url or "",
            pdf_path=row.pdf_path or "",
            page_count=row.page_count,
            title=row.title,
            description=row.description,
            cover_image=row.cover_image,
            status=row.status or EpaperStatus.PUBLISHED.value,
            view_count=view_count,
            download_count=download_count,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "issueDate": self.issue_date,
            "pdfUrl": self.pdf_url,
            "pageCount": self.page_count,
            "title": self.title,
            "description": self.description,
            "coverImage": self.cover_image,
            "status": self.status,
            "viewCount": self.view_count,
            "downloadCount": self.download_count,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<EpaperIssue {self.issue_day} ({self.status})>"
