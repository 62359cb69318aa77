"""Width variants for uploaded images (Pillow).

Each variant keeps the aspect ratio, is never enlarged past the original
width and is written next to the original as ``{base}_{name}{ext}``.
"""

from pathlib import Path

from PIL import Image


SAVE_FORMATS = {"image/jpeg": "JPEG", "image/png": "PNG", "image/webp": "WEBP"}


def variant_name(relative: str, size: str) -> str:
    """``images/file-1-2.jpg`` -> ``images/file-1-2_small.jpg``."""
    path = Path(relative)
    return str(path.with_name(f"{path.stem}_{size}{path.suffix}")).replace("\\", "/")


def render_variants(
    source: Path,
    mime_type: str,
    widths: dict[str, int],
    quality: int = 85,
) -> dict[str, Path]:
    """Write one resized copy per entry of ``widths``.

    Blocking; callers run it in a worker thread.

    Returns:
        Mapping of variant name to written path.
    """
    fmt = SAVE_FORMATS[mime_type]
    written: dict[str, Path] = {}

    with Image.open(source) as original:
        original.load()
        for size, width in widths.items():
            target = source.with_name(f"{source.stem}_{size}{source.suffix}")
            image = original.copy()
            if image.width > width:
                height = max(1, round(image.height * width / image.width))
                image = image.resize((width, height), Image.Resampling.LANCZOS)

            options: dict[str, int | bool] = {}
            if fmt == "JPEG":
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                options = {"quality": quality, "optimize": True}
            elif fmt == "WEBP":
                options = {"quality": quality}

            image.save(target, fmt, **options)
            written[size] = target

    return written
