"""Tests for media ingestion against a temporary uploads directory."""

import io
from pathlib import Path
from unittest.mock import Mock
from uuid import uuid4

import pytest
from PIL import Image

from src.auth.permissions import UserRole
from src.config import get_settings
from src.core.exceptions import ForbiddenError
from src.media.images import variant_name
from src.media.models import Media
from src.media.schemas import MediaUpdateRequest
from src.media.service import (
    ContentMismatchError,
    FileTooLargeError,
    IncomingFile,
    InvalidContentTypeError,
    MediaService,
    NoFileUploadedError,
    TooManyFilesError,
)
from src.media.storage import LocalStorage
from tests.factories import KEYSPACE, CqlRouter, make_user, row, ts


MEDIA_INSERT = f"INSERT INTO {KEYSPACE}.media"
MEDIA_BY_ID = f"SELECT * FROM {KEYSPACE}.media WHERE id"
MEDIA_DELETE = f"DELETE FROM {KEYSPACE}.media"

PDF = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def png_bytes(width: int = 1000, height: int = 500) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, "PNG")
    return buffer.getvalue()


def upload(content: bytes, content_type: str, filename: str = "photo.png") -> IncomingFile:
    return IncomingFile(
        field="file", filename=filename, content_type=content_type, content=content
    )


def stored_files(root: Path) -> list[Path]:
    return [p for p in root.rglob("*") if p.is_file()]


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path, "/uploads")


@pytest.fixture
def settings():
    return get_settings().model_copy(
        update={"upload_max_file_size_mb": 1, "upload_max_files": 3}
    )


@pytest.fixture
def service(mock_session: Mock, settings, storage: LocalStorage) -> MediaService:
    return MediaService(mock_session, KEYSPACE, settings, storage=storage)


class TestValidation:
    def test_empty_file(self, service: MediaService):
        with pytest.raises(NoFileUploadedError):
            service.validate(upload(b"", "image/png"))

    def test_size_ceiling(self, service: MediaService):
        with pytest.raises(FileTooLargeError, match="exceeds maximum allowed"):
            service.validate(upload(b"\x89PNG\r\n\x1a\n" + b"\x00" * 1024 * 1024, "image/png"))

    def test_type_outside_allow_list(self, service: MediaService):
        with pytest.raises(InvalidContentTypeError, match="text/plain"):
            service.validate(upload(b"hello world", "text/plain", "notes.txt"))

    def test_declared_image_carrying_pdf_bytes(self, service: MediaService):
        with pytest.raises(ContentMismatchError):
            service.validate(upload(PDF, "image/png", "invoice.png"))

    def test_jpg_alias_is_accepted(self, service: MediaService):
        buffer = io.BytesIO()
        Image.new("RGB", (10, 10)).save(buffer, "JPEG")
        assert service.validate(upload(buffer.getvalue(), "image/jpg")) == "image/jpeg"


class TestIngest:
    @pytest.mark.asyncio
    async def test_image_stored_with_variants(
        self, service: MediaService, storage: LocalStorage, cql: CqlRouter, author_user
    ):
        media = await service.ingest(upload(png_bytes(), "image/png"), author_user, alt_text="Red")

        assert media.path.startswith("images/file-")
        assert media.url == f"/uploads/{media.path}"
        assert media.uploaded_by == author_user.id
        assert media.alt_text == "Red"
        assert set(media.variants) == {"thumbnail", "small", "medium", "large"}
        assert media.variants["small"] == variant_name(media.path, "small")

        with Image.open(storage.path_for(media.variants["thumbnail"])) as thumb:
            assert thumb.size == (150, 75)
        # Never enlarged past the original width
        with Image.open(storage.path_for(media.variants["large"])) as large:
            assert large.width == 1000

        [params] = cql.executed(MEDIA_INSERT)
        assert params[0] == media.id
        assert params[7] == media.variants

    @pytest.mark.asyncio
    async def test_pdf_has_no_variants(
        self, service: MediaService, storage: LocalStorage, author_user
    ):
        media = await service.ingest(upload(PDF, "application/pdf", "report.pdf"), author_user)

        assert media.path.startswith("pdfs/")
        assert media.path.endswith(".pdf")
        assert media.variants == {}
        assert storage.exists(media.path)

    @pytest.mark.asyncio
    async def test_reporters_cannot_upload(self, service: MediaService, tmp_path: Path):
        with pytest.raises(ForbiddenError):
            await service.ingest(
                upload(png_bytes(), "image/png"), make_user(UserRole.REPORTER)
            )
        assert stored_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_files_removed_when_record_fails(
        self, service: MediaService, cql: CqlRouter, tmp_path: Path, author_user
    ):
        def fail(params):
            raise RuntimeError("write timeout")

        cql.on(MEDIA_INSERT, fail)

        with pytest.raises(RuntimeError, match="write timeout"):
            await service.ingest(upload(png_bytes(), "image/png"), author_user)

        assert stored_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_rejected_upload_writes_nothing(
        self, service: MediaService, tmp_path: Path, author_user
    ):
        with pytest.raises(ContentMismatchError):
            await service.ingest(upload(PDF, "image/jpeg", "fake.jpg"), author_user)
        assert stored_files(tmp_path) == []


class TestBatch:
    @pytest.mark.asyncio
    async def test_batch_rolled_back_on_failure(
        self, service: MediaService, cql: CqlRouter, tmp_path: Path, author_user
    ):
        inserts = []

        def second_insert_fails(params):
            inserts.append(params[0])
            if len(inserts) == 2:
                raise RuntimeError("node down")
            return []

        cql.on(MEDIA_INSERT, second_insert_fails)

        with pytest.raises(RuntimeError):
            await service.ingest_many(
                [upload(png_bytes(), "image/png"), upload(PDF, "application/pdf", "a.pdf")],
                author_user,
            )

        assert stored_files(tmp_path) == []
        assert cql.executed(MEDIA_DELETE) == [[inserts[0]]]

    @pytest.mark.asyncio
    async def test_batch_validated_before_writing(
        self, service: MediaService, tmp_path: Path, author_user
    ):
        with pytest.raises(InvalidContentTypeError):
            await service.ingest_many(
                [upload(png_bytes(), "image/png"), upload(b"MZ\x90\x00", "application/x-msdownload")],
                author_user,
            )
        assert stored_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_batch_limits(self, service: MediaService, author_user):
        with pytest.raises(NoFileUploadedError):
            await service.ingest_many([], author_user)

        with pytest.raises(TooManyFilesError, match="Maximum is 3"):
            await service.ingest_many([upload(PDF, "application/pdf")] * 4, author_user)

    @pytest.mark.asyncio
    async def test_batch_success(self, service: MediaService, author_user):
        items = await service.ingest_many(
            [upload(PDF, "application/pdf", "a.pdf"), upload(PDF, "application/pdf", "b.pdf")],
            author_user,
        )
        assert [m.original_name for m in items] == ["a.pdf", "b.pdf"]
        assert items[0].filename != items[1].filename


def media_row(**overrides):
    fields = {
        "id": uuid4(),
        "filename": "file-1-2.png",
        "original_name": "harbour.png",
        "mime_type": "image/png",
        "size": 2048,
        "path": "images/file-1-2.png",
        "url": "/uploads/images/file-1-2.png",
        "variants": {"small": "images/file-1-2_small.png"},
        "alt_text": None,
        "caption": None,
        "folder": None,
        "uploaded_by": "uploader-id",
        "created_at": ts(1),
        "updated_at": ts(1),
    }
    fields.update(overrides)
    return row(**fields)


class TestLibrary:
    @pytest.mark.asyncio
    async def test_only_uploader_or_privileged_may_edit(
        self, service: MediaService, cql: CqlRouter
    ):
        item = media_row()
        cql.on(MEDIA_BY_ID, [item])
        uploader = make_user(UserRole.AUTHOR, user_id="uploader-id")

        with pytest.raises(ForbiddenError, match="Not authorized to update this media"):
            await service.update_media(
                item.id, MediaUpdateRequest(caption="x"), make_user(UserRole.AUTHOR)
            )

        updated = await service.update_media(
            item.id, MediaUpdateRequest(caption="Harbour at dawn"), uploader
        )
        assert updated.caption == "Harbour at dawn"

        edited = await service.update_media(
            item.id, MediaUpdateRequest(folder="archive"), make_user(UserRole.EDITOR)
        )
        assert edited.folder == "archive"

    @pytest.mark.asyncio
    async def test_delete_tolerates_missing_files(
        self, service: MediaService, cql: CqlRouter, storage: LocalStorage, admin
    ):
        item = media_row()
        cql.on(MEDIA_BY_ID, [item])
        await storage.write(item.path, b"original")

        await service.delete_media(item.id, admin)

        assert not storage.exists(item.path)
        assert cql.executed(MEDIA_DELETE) == [[item.id]]

    @pytest.mark.asyncio
    async def test_list_filters(self, service: MediaService, cql: CqlRouter, author_user):
        photo = media_row(original_name="Harbour.png", created_at=ts(2))
        pdf = media_row(
            original_name="report.pdf", mime_type="application/pdf", folder="docs"
        )
        cql.on(f"SELECT * FROM {KEYSPACE}.media", [pdf, photo])

        items, total = await service.list_media(author_user)
        assert (total, items[0].id) == (2, photo.id)

        items, _ = await service.list_media(author_user, mime_type="image/")
        assert [m.id for m in items] == [photo.id]

        items, _ = await service.list_media(author_user, search="HARBOUR")
        assert [m.id for m in items] == [photo.id]

        items, _ = await service.list_media(author_user, folder="docs")
        assert [m.id for m in items] == [pdf.id]

    def test_image_data_urls(self, service: MediaService):
        media = Media.from_row(media_row())
        assert service.image_data(media) == {
            "small": "/uploads/images/file-1-2_small.png"
        }
