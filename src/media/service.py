"""Media ingestion service.

Handles uploads to local storage with:
- MIME allow-list, size ceiling and magic-bytes validation
- Width variants for resizable images (Pillow, in a worker thread)
- Rollback of every written file when a later step fails
- Ownership-checked metadata updates and deletes
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from starlette.concurrency import run_in_threadpool

from src.auth.permissions import Action, authorize
from src.config.settings import Settings
from src.core.exceptions import NotFoundError, ValidationError
from src.core.responses import paginate
from src.utils.dates import utc_now
from src.utils.magic_bytes import (
    RESIZABLE_MIME_TYPES,
    normalize_mime,
    validate_content_type,
)

from .images import render_variants, variant_name
from .models import Media
from .schemas import MediaUpdateRequest
from .storage import LocalStorage


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from fastapi import UploadFile

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class MediaNotFoundError(NotFoundError):
    def __init__(self, message: str = "Media not found"):
        super().__init__(message, "media_not_found")


class NoFileUploadedError(ValidationError):
    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message, "no_file")


class FileTooLargeError(ValidationError):
    def __init__(self, size: int, max_size: int):
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class InvalidContentTypeError(ValidationError):
    def __init__(self, content_type: str | None):
        super().__init__(
            f"File type {content_type or 'unknown'} is not allowed",
            "invalid_content_type",
        )


class ContentMismatchError(ValidationError):
    """Bytes on the wire disagree with the declared type."""

    def __init__(self, message: str = "Invalid file content"):
        super().__init__(message, "content_mismatch")


class TooManyFilesError(ValidationError):
    def __init__(self, max_files: int):
        super().__init__(f"Too many files. Maximum is {max_files}", "too_many_files")


@dataclass
class IncomingFile:
    """An upload already read into memory."""

    field: str
    filename: str | None
    content_type: str | None
    content: bytes


async def read_upload(field: str, upload: "UploadFile") -> IncomingFile:
    """Read a multipart upload into memory."""
    return IncomingFile(
        field=field,
        filename=upload.filename,
        content_type=upload.content_type,
        content=await upload.read(),
    )


# ==============================================================================
# Media Service
# ==============================================================================


class MediaService:
    """Service for the media library."""

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
        self._upsert_media = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.media
            (id, filename, original_name, mime_type, size, path, url, variants,
             alt_text, caption, folder, uploaded_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_media = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.media WHERE id = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.media
        """)

        self._delete_media = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.media WHERE id = ?
        """)

    @property
    def max_file_size(self) -> int:
        return self.settings.max_upload_bytes

    @property
    def allowed_types(self) -> frozenset[str]:
        return frozenset(
            normalize_mime(t) for t in self.settings.upload_allowed_types if t
        )

    async def _save(self, media: Media) -> None:
        await self.session.aexecute(
            self._upsert_media,
            [
                media.id,
                media.filename,
                media.original_name,
                media.mime_type,
                media.size,
                media.path,
                media.url,
                media.variants,
                media.alt_text,
                media.caption,
                media.folder,
                media.uploaded_by,
                media.created_at,
                media.updated_at,
            ],
        )

    # ==========================================================================
    # Validation
    # ==========================================================================

    def validate(self, upload: IncomingFile) -> str:
        """Check size, allow-list and magic bytes.

        Returns:
            The detected MIME type.

        Raises:
            FileTooLargeError, InvalidContentTypeError, ContentMismatchError
        """
        size = len(upload.content)
        if size == 0:
            raise NoFileUploadedError
        if size > self.max_file_size:
            raise FileTooLargeError(size, self.max_file_size)

        declared = normalize_mime(upload.content_type)
        if declared not in self.allowed_types:
            raise InvalidContentTypeError(upload.content_type)

        is_valid, detected, error = validate_content_type(
            upload.content[:64],
            declared,
            strict=False,
            allowed_types=self.allowed_types,
        )
        if not is_valid:
            logger.warning(
                "magic_bytes_validation_failed",
                declared_type=declared,
                detected_type=detected,
                error=error,
            )
            raise ContentMismatchError(error or "Invalid file content")

        return detected or declared

    # ==========================================================================
    # Ingestion
    # ==========================================================================

    def _candidate_paths(self, relative: str, mime_type: str) -> list[str]:
        if mime_type not in RESIZABLE_MIME_TYPES:
            return [relative]
        widths = self.settings.image_variant_widths
        return [relative, *(variant_name(relative, size) for size in widths)]

    async def _write_variants(self, relative: str, mime_type: str) -> dict[str, str]:
        if mime_type not in RESIZABLE_MIME_TYPES:
            return {}
        await run_in_threadpool(
            render_variants,
            self.storage.path_for(relative),
            mime_type,
            self.settings.image_variant_widths,
            self.settings.image_variant_quality,
        )
        return {
            size: variant_name(relative, size)
            for size in self.settings.image_variant_widths
        }

    async def ingest(
        self,
        upload: IncomingFile,
        actor: "AuthenticatedUser",
        alt_text: str | None = None,
        caption: str | None = None,
        folder: str | None = None,
    ) -> Media:
        """Validate, store and record one upload.

        Any failure after the original is written removes the original and
        whatever variants were produced before re-raising.
        """
        authorize(actor, Action.UPLOAD_MEDIA)
        mime_type = self.validate(upload)

        filename = self.storage.build_filename(upload.field, upload.filename, mime_type)
        relative = f"{self.storage.subdir_for(mime_type)}/{filename}"

        await self.storage.write(relative, upload.content)
        try:
            variants = await self._write_variants(relative, mime_type)

            media = Media(
                filename=filename,
                original_name=upload.filename or filename,
                mime_type=mime_type,
                size=len(upload.content),
                path=relative,
                url=self.storage.url_for(relative),
                variants=variants,
                alt_text=alt_text,
                caption=caption,
                folder=folder,
                uploaded_by=actor.id,
            )
            await self._save(media)
        except Exception:
            # Variants may be partially written
            await self.storage.remove_quietly(self._candidate_paths(relative, mime_type))
            logger.exception("media_ingest_failed", path=relative)
            raise

        logger.info(
            "media_ingested",
            media_id=str(media.id),
            path=relative,
            mime_type=mime_type,
            size=media.size,
            variants=len(variants),
        )
        return media

    async def ingest_many(
        self,
        uploads: list[IncomingFile],
        actor: "AuthenticatedUser",
    ) -> list[Media]:
        """Ingest a batch; any failure rolls back every file of the batch."""
        authorize(actor, Action.UPLOAD_MEDIA)
        if not uploads:
            raise NoFileUploadedError("No files uploaded")
        if len(uploads) > self.settings.upload_max_files:
            raise TooManyFilesError(self.settings.upload_max_files)

        # Validate everything before touching the disk
        for upload in uploads:
            self.validate(upload)

        stored: list[Media] = []
        try:
            for upload in uploads:
                stored.append(await self.ingest(upload, actor))
        except Exception:
            for media in stored:
                await self.storage.remove_quietly(media.stored_paths)
                await self.session.aexecute(self._delete_media, [media.id])
            logger.warning("media_batch_rolled_back", removed=len(stored))
            raise

        return stored

    # ==========================================================================
    # Library
    # ==========================================================================

    async def find_by_id(self, media_id: UUID) -> Media | None:
        result = await self.session.aexecute(self._select_media, [media_id])
        row = result[0] if result else None
        return Media.from_row(row) if row else None

    async def get_media(self, media_id: UUID, actor: "AuthenticatedUser") -> Media:
        authorize(actor, Action.BROWSE_MEDIA)
        media = await self.find_by_id(media_id)
        if media is None:
            raise MediaNotFoundError
        return media

    async def list_media(
        self,
        actor: "AuthenticatedUser",
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        mime_type: str | None = None,
        folder: str | None = None,
    ) -> tuple[list[Media], int]:
        """Newest first, filtered by text, MIME prefix and folder."""
        authorize(actor, Action.BROWSE_MEDIA)
        rows = await self.session.aexecute(self._select_all, [])
        items = [Media.from_row(row) for row in rows]

        if search:
            items = [m for m in items if m.matches(search)]
        if mime_type:
            items = [m for m in items if m.mime_type.startswith(mime_type)]
        if folder:
            items = [m for m in items if m.folder == folder]

        items.sort(key=lambda m: m.created_at, reverse=True)
        return paginate(items, page, limit), len(items)

    async def update_media(
        self,
        media_id: UUID,
        data: MediaUpdateRequest,
        actor: "AuthenticatedUser",
    ) -> Media:
        media = await self.get_media(media_id, actor)
        authorize(
            actor,
            Action.MANAGE_MEDIA,
            media,
            message="Not authorized to update this media",
        )

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(media, field, value)
        media.updated_at = utc_now()
        await self._save(media)

        logger.info("media_updated", media_id=str(media.id))
        return media

    async def delete_media(self, media_id: UUID, actor: "AuthenticatedUser") -> None:
        """Remove files (errors are logged, not raised) then the record."""
        media = await self.get_media(media_id, actor)
        authorize(
            actor,
            Action.MANAGE_MEDIA,
            media,
            message="Not authorized to delete this media",
        )

        await self.storage.remove_quietly(media.stored_paths)
        await self.session.aexecute(self._delete_media, [media.id])
        logger.info("media_deleted", media_id=str(media.id), path=media.path)

    def image_data(self, media: Media) -> dict[str, str]:
        """Public URLs of the variants, keyed by size name."""
        return {
            size: self.storage.url_for(path) for size, path in media.variants.items()
        }
