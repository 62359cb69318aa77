"""Utility modules for the newsdesk API."""

from src.utils.magic_bytes import detect_content_type, validate_content_type
from src.utils.slug import generate_slug


__all__ = ["detect_content_type", "generate_slug", "validate_content_type"]
