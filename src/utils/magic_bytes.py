"""Magic-byte sniffing for uploaded media.

Uploads are only accepted when the bytes on the wire agree with the declared
Content-Type, so a script renamed to ``photo.jpg`` is rejected before it
reaches the uploads directory.
"""

from typing import NamedTuple


MIN_BYTES_FOR_DETECTION = 4
WEBP_HEADER_LENGTH = 12

# Browsers still send the non-standard alias for JPEG
MIME_ALIASES = {"image/jpg": "image/jpeg"}


class MagicSignature(NamedTuple):
    bytes_pattern: bytes
    mime_type: str
    offset: int = 0


# Reference: https://en.wikipedia.org/wiki/List_of_file_signatures
MAGIC_SIGNATURES: list[MagicSignature] = [
    MagicSignature(b"\xff\xd8\xff", "image/jpeg"),
    MagicSignature(b"\x89PNG\r\n\x1a\n", "image/png"),
    MagicSignature(b"GIF87a", "image/gif"),
    MagicSignature(b"GIF89a", "image/gif"),
    MagicSignature(b"ftypavif", "image/avif", offset=4),
    MagicSignature(b"ftypavis", "image/avif", offset=4),
    MagicSignature(b"%PDF", "application/pdf"),
    MagicSignature(b"ftypisom", "video/mp4", offset=4),
    MagicSignature(b"ftypmp42", "video/mp4", offset=4),
    MagicSignature(b"\x1aE\xdf\xa3", "video/webm"),
]

IMAGE_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp", "image/avif"}
)

# Formats Pillow can re-encode into width variants
RESIZABLE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})

DOCUMENT_MIME_TYPES = frozenset({"application/pdf"})


def normalize_mime(mime_type: str | None) -> str | None:
    """Lower-case, strip parameters and resolve aliases."""
    if not mime_type:
        return None
    base = mime_type.split(";")[0].strip().lower()
    return MIME_ALIASES.get(base, base)


def detect_content_type(data: bytes) -> str | None:
    """Detect the MIME type from the first bytes of a file.

    Args:
        data: First 64+ bytes of file content.

    Returns:
        Detected MIME type or None if unknown.
    """
    if len(data) < MIN_BYTES_FOR_DETECTION:
        return None

    # RIFF container with WEBP at offset 8
    if (
        data[:4] == b"RIFF"
        and len(data) >= WEBP_HEADER_LENGTH
        and data[8:12] == b"WEBP"
    ):
        return "image/webp"

    for sig in MAGIC_SIGNATURES:
        if sig.offset > 0:
            end_offset = sig.offset + len(sig.bytes_pattern)
            if (
                len(data) >= end_offset
                and data[sig.offset : end_offset] == sig.bytes_pattern
            ):
                return sig.mime_type
        elif data.startswith(sig.bytes_pattern):
            return sig.mime_type

    return None


def validate_content_type(  # noqa: PLR0911
    data: bytes,
    declared_type: str | None,
    *,
    strict: bool = False,
    allowed_types: frozenset[str] | None = None,
) -> tuple[bool, str | None, str | None]:
    """Validate file content against the declared Content-Type.

    Args:
        data: First 64+ bytes of file content.
        declared_type: Content-Type sent by the client.
        strict: Require an exact MIME match instead of the same media class.
        allowed_types: Accepted MIME types. None accepts any detected type.

    Returns:
        Tuple of (is_valid, detected_type, error_message).
    """
    detected_type = detect_content_type(data)

    if detected_type is None:
        return (False, None, "Unable to detect file type from content")

    if allowed_types is not None:
        normalized_allowed = {normalize_mime(t) for t in allowed_types}
        if detected_type not in normalized_allowed:
            return (
                False,
                detected_type,
                f"File type '{detected_type}' is not allowed",
            )

    declared_base = normalize_mime(declared_type)
    if not declared_base:
        return (True, detected_type, None)

    if strict:
        if detected_type != declared_base:
            return (
                False,
                detected_type,
                f"Content-Type mismatch: declared '{declared_base}', "
                f"detected '{detected_type}'",
            )
        return (True, detected_type, None)

    detected_class = detected_type.split("/")[0]
    declared_class = declared_base.split("/")[0]

    if detected_class != declared_class:
        return (
            False,
            detected_type,
            f"Media class mismatch: declared '{declared_class}', "
            f"detected '{detected_class}'",
        )

    return (True, detected_type, None)


def is_valid_image(data: bytes) -> bool:
    detected = detect_content_type(data)
    return detected is not None and detected in IMAGE_MIME_TYPES


def is_pdf(data: bytes) -> bool:
    return detect_content_type(data) == "application/pdf"
