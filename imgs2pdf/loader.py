from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EmptyInputError, FilesystemError
from .model import DecodedImage, ImageSource, MergeConfig

log = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"(\d+)")

# Modes Pillow's PDF encoder embeds as-is; everything else is converted to RGB.
_PDF_MODES = {"1", "L", "RGB", "CMYK"}


def readable_extensions() -> dict[str, str]:
    """Map lower-case file extensions to the Pillow formats that can open them."""

    return {ext: fmt for ext, fmt in Image.registered_extensions().items() if fmt in Image.OPEN}


def natural_sort_key(path: Path) -> tuple[list[str | int], str]:
    """Sort key that orders ``page2.png`` before ``page10.png``.

    ``re.split`` with a capturing group alternates text and digit runs, so
    every position holds the same type across keys.
    """

    text = path.as_posix()
    parts = _DIGITS_RE.split(text.lower())
    return [int(p) if i % 2 else p for i, p in enumerate(parts)], text


def _list_directory(directory: Path, extensions: dict[str, str]) -> list[Path]:
    if not directory.is_dir():
        raise FilesystemError(directory, "Could not read <dir>")

    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise FilesystemError(directory, f"Could not read <dir> ({e.strerror})") from e

    paths = []
    for entry in entries:
        if not entry.is_file():
            continue
        if entry.suffix.lower() not in extensions:
            log.debug("Skipping non-image file %s", entry)
            continue
        paths.append(entry)
    return paths


def _dedupe(paths: Iterable[Path]) -> list[Path]:
    seen: set[Path] = set()
    unique = []
    for p in paths:
        key = p.resolve()
        if key in seen:
            log.warning("Ignoring duplicate image %s", p)
            continue
        seen.add(key)
        unique.append(p)
    return unique


def resolve_sources(config: MergeConfig) -> list[ImageSource]:
    """Work out which images go into the PDF, in page order."""

    extensions = readable_extensions()
    if config.dir is not None:
        paths = _list_directory(config.dir, extensions)
    else:
        paths = list(config.imgs or [])

    paths = _dedupe(paths)
    if config.auto_sort:
        paths.sort(key=natural_sort_key)

    if not paths:
        where = f"directory `{config.dir}`" if config.dir is not None else "--imgs"
        raise EmptyInputError(f"No images found in {where}")

    return [ImageSource(path=p, format=extensions.get(p.suffix.lower())) for p in paths]


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")

    if image.mode in ("RGBA", "LA", "PA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    if image.mode not in _PDF_MODES:
        return image.convert("RGB")
    return image.copy()


def decode_image(source: ImageSource) -> DecodedImage:
    path = source.path
    formats = [source.format] if source.format else None
    try:
        with Image.open(path, formats=formats) as im:
            im.load()
            image = _flatten(im)
    except UnidentifiedImageError as e:
        if formats is not None:
            # Extension lied about the format; let Pillow sniff the content.
            return decode_image(ImageSource(path=path))
        raise DecodeError(path, "unsupported or unrecognized image format") from e
    except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
        raise FilesystemError(path, f"Could not open image ({e.strerror})") from e
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(path, str(e) or type(e).__name__) from e

    log.debug("Decoded %s (%s %dx%d)", path, image.mode, image.width, image.height)
    return DecodedImage(source=source, image=image, width=image.width, height=image.height, mode=image.mode)


def load_images(sources: Iterable[ImageSource]) -> Iterator[DecodedImage]:
    """Decode images lazily, one at a time, in the order given."""

    for source in sources:
        yield decode_image(source)
