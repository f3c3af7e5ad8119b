"""Shared test fixtures for imgs2pdf."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from imgs2pdf.model import DecodedImage, ImageSource, ScaledImage

# ── Helpers ────────────────────────────────────────────────────────────


def make_image(
    path: Path,
    size: tuple[int, int] = (40, 20),
    color=(200, 30, 30),
    mode: str = "RGB",
) -> Path:
    """Write a solid-colour image; the format follows the file extension."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path)
    return path


def make_scaled(width: int, height: int, name: str = "img.png") -> ScaledImage:
    image = Image.new("RGB", (width, height), (0, 120, 255))
    return ScaledImage(
        source=ImageSource(path=Path(name), format="PNG"),
        image=image,
        width=width,
        height=height,
        original_size=(width, height),
    )


def make_decoded(width: int, height: int, name: str = "img.png") -> DecodedImage:
    image = Image.new("RGB", (width, height), (0, 120, 255))
    return DecodedImage(
        source=ImageSource(path=Path(name), format="PNG"),
        image=image,
        width=width,
        height=height,
        mode="RGB",
    )


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """A directory with three images of distinct widths plus a non-image file."""
    d = tmp_path / "images"
    make_image(d / "page10.png", size=(30, 10))
    make_image(d / "page2.jpg", size=(20, 10))
    make_image(d / "Page1.bmp", size=(10, 10))
    (d / "notes.txt").write_text("not an image", encoding="utf-8")
    return d
