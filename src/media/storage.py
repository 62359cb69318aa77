"""Local disk storage for uploaded files.

Files live under ``settings.upload_dir`` and are served read-only under
``settings.upload_url_prefix``. Names are generated as
``{field}-{epochMillis}-{random}{ext}`` so concurrent uploads never collide.
"""

import secrets
import time
from pathlib import Path

import structlog
from starlette.concurrency import run_in_threadpool

from src.config.settings import Settings


logger = structlog.get_logger(__name__)


class LocalStorage:
    """Writes, resolves and removes files below the uploads root."""

    EXTENSION_MAP: dict[str, str] = {
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/webp": ".webp",
        "image/gif": ".gif",
        "image/avif": ".avif",
        "application/pdf": ".pdf",
        "video/mp4": ".mp4",
        "video/webm": ".webm",
    }

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalStorage":
        return cls(settings.upload_dir, settings.upload_url_prefix)

    @staticmethod
    def subdir_for(mime_type: str) -> str:
        """Directory bucket by media class."""
        if mime_type.startswith("image/"):
            return "images"
        if mime_type == "application/pdf":
            return "pdfs"
        if mime_type.startswith("video/"):
            return "videos"
        return "general"

    def build_filename(
        self,
        prefix: str,
        original_name: str | None,
        mime_type: str | None = None,
    ) -> str:
        """``{prefix}-{epochMillis}-{random}{ext}``.

        The extension comes from the original name, falling back to the
        detected MIME type.
        """
        ext = Path(original_name).suffix.lower() if original_name else ""
        if not ext and mime_type:
            ext = self.EXTENSION_MAP.get(mime_type, "")
        millis = int(time.time() * 1000)
        return f"{prefix}-{millis}-{secrets.randbelow(10**9)}{ext}"

    def path_for(self, relative: str) -> Path:
        return self.root / relative

    def url_for(self, relative: str) -> str:
        posix = relative.replace("\\", "/")
        return f"{self.url_prefix}/{posix}"

    def relative_from_url(self, url: str) -> str | None:
        """Inverse of :meth:`url_for`, or None for foreign URLs."""
        prefix = self.url_prefix + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix) :]

    def _write_sync(self, relative: str, content: bytes) -> Path:
        path = self.path_for(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    async def write(self, relative: str, content: bytes) -> Path:
        """Write ``content`` to ``root/relative``, creating directories."""
        path = await run_in_threadpool(self._write_sync, relative, content)
        logger.debug("file_written", path=relative, size=len(content))
        return path

    def exists(self, relative: str) -> bool:
        return self.path_for(relative).is_file()

    async def remove(self, relative: str) -> bool:
        """Delete a stored file.

        Returns:
            True if deleted, False if it was already gone.

        Raises:
            OSError: On any other filesystem failure.
        """
        try:
            await run_in_threadpool(self.path_for(relative).unlink)
        except FileNotFoundError:
            logger.warning("delete_file_not_found", path=relative)
            return False
        logger.info("file_deleted", path=relative)
        return True

    async def remove_quietly(self, relatives: list[str]) -> None:
        """Best-effort removal used when rolling back a failed upload."""
        for relative in relatives:
            try:
                await self.remove(relative)
            except OSError as e:
                logger.warning("media_cleanup_failed", path=relative, error=str(e))
