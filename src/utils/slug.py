"""URL slug generation."""

import re
import unicodedata


def generate_slug(text: str) -> str:
    """Generate a URL-friendly slug from text.

    Accents are folded to ASCII, everything outside ``[a-z0-9]`` becomes a
    hyphen separator and leading/trailing hyphens are dropped.

    Example:
        >>> generate_slug("Coimbatore Vizha 2025!")
        'coimbatore-vizha-2025'
    """
    slug = unicodedata.normalize("NFKD", text)
    slug = slug.encode("ascii", "ignore").decode("ascii")
    slug = slug.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")
