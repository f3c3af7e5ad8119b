from __future__ import annotations

import logging

from PIL import Image

from .model import DecodedImage, ScaledImage

log = logging.getLogger(__name__)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Return the largest size with the same aspect ratio that fits the bounds.

    Sizes already inside the bounds are returned unchanged (no upscaling).
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"invalid image size {width}x{height}")
    if width <= max_width and height <= max_height:
        return width, height

    ratio = min(max_width / width, max_height / height)
    new_w = min(max_width, max(1, round(width * ratio)))
    new_h = min(max_height, max(1, round(height * ratio)))
    return new_w, new_h


def scale_image(decoded: DecodedImage, *, max_width: int, max_height: int) -> ScaledImage:
    size = fit_within(decoded.width, decoded.height, max_width, max_height)
    if size == (decoded.width, decoded.height):
        image = decoded.image
    else:
        image = decoded.image.resize(size, Image.Resampling.LANCZOS)
        log.debug("Scaled %s from %dx%d to %dx%d", decoded.source.path, decoded.width, decoded.height, *size)

    return ScaledImage(
        source=decoded.source,
        image=image,
        width=size[0],
        height=size[1],
        original_size=(decoded.width, decoded.height),
    )
