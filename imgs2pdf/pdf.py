from __future__ import annotations

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from .errors import FilesystemError, PdfBuildError
from .model import ScaledImage

log = logging.getLogger(__name__)

POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4


def page_size_mm(width_px: int, height_px: int, dpi: float) -> tuple[float, float]:
    return width_px * MM_PER_INCH / dpi, height_px * MM_PER_INCH / dpi


def render_page(scaled: ScaledImage, *, dpi: float) -> bytes:
    """Render one image as a single-page PDF sized from its pixels and ``dpi``."""

    buf = io.BytesIO()
    try:
        scaled.image.save(buf, format="PDF", resolution=dpi)
    except (OSError, ValueError, KeyError) as e:
        raise PdfBuildError(f"Could not render page for `{scaled.source.path}`: {e}") from e
    return buf.getvalue()


def compose_document(
    images: Iterable[ScaledImage],
    *,
    dpi: float,
    title: str = "",
    on_page=None,
) -> PdfWriter:
    """Build a document with one page per image, in iteration order.

    ``on_page(index, scaled)`` is called after each page is appended.
    """

    writer = PdfWriter()
    for idx, scaled in enumerate(images):
        page_pdf = render_page(scaled, dpi=dpi)
        try:
            reader = PdfReader(io.BytesIO(page_pdf))
            writer.add_page(reader.pages[0])
        except (PyPdfError, IndexError) as e:
            raise PdfBuildError(f"Could not add page for `{scaled.source.path}`: {e}") from e

        w_mm, h_mm = page_size_mm(scaled.width, scaled.height, dpi)
        log.debug("Page %d: %s (%.1f x %.1f mm)", idx + 1, scaled.source.path, w_mm, h_mm)
        if on_page is not None:
            on_page(idx, scaled)

    if len(writer.pages) == 0:
        raise PdfBuildError("Refusing to build a PDF without pages")

    if title:
        writer.add_metadata({"/Title": title})
    return writer


def normalize_output_path(output_pdf: str | Path) -> Path:
    out_path = Path(output_pdf)
    if out_path.name in ("", ".", ".."):
        raise ValueError(f"{str(output_pdf)!r} does not name a file")
    if out_path.suffix.lower() != ".pdf":
        out_path = out_path.with_suffix(".pdf")
    return out_path


def _target_mode(out_path: Path) -> int:
    # NamedTemporaryFile creates 0600 files; give the PDF the mode a plain open() would.
    try:
        return out_path.stat().st_mode & 0o7777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_pdf(writer: PdfWriter, output_pdf: str | Path) -> Path:
    """Write the document, replacing any existing file at the target.

    The bytes land in a temporary sibling first so a failed write never
    leaves a truncated PDF behind. The target keeps its permissions when it
    already exists, otherwise it follows the umask.
    """

    out_path = Path(output_pdf)
    tmp_name = None
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb", dir=out_path.parent, prefix=f".{out_path.stem}.", suffix=".part", delete=False
        ) as f:
            tmp_name = f.name
            writer.write(f)
        os.chmod(tmp_name, _target_mode(out_path))
        os.replace(tmp_name, out_path)
        tmp_name = None
    except OSError as e:
        raise FilesystemError(out_path, f"Could not write PDF ({e.strerror or e})") from e
    except PyPdfError as e:
        raise PdfBuildError(f"Could not serialize PDF `{out_path}`: {e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    log.debug("Wrote %d pages to %s", len(writer.pages), out_path)
    return out_path
