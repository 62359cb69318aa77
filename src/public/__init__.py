"""Reader-facing endpoints for the public site (published content only)."""

from .router import router


__all__ = ["router"]
