from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PIL import Image


@dataclass(frozen=True)
class MergeConfig:
    out: Path
    dir: Path | None = None
    imgs: list[Path] | None = None
    dpi: float = 100.0
    scale_width: int = 1080
    scale_height: int = 1920
    pdf_title: str = ""
    auto_sort: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class ImageSource:
    path: Path
    # Pillow format name guessed from the extension; None means "sniff the content".
    format: str | None = None


@dataclass(frozen=True)
class DecodedImage:
    source: ImageSource
    image: Image.Image
    width: int
    height: int
    mode: str


@dataclass(frozen=True)
class ScaledImage:
    source: ImageSource
    image: Image.Image
    width: int
    height: int
    original_size: tuple[int, int]
