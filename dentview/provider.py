"""Serves the current version of a registered picture, full size or as a thumbnail."""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from .image_store import ImageFactory

_logger = logging.getLogger("dentview.provider")

SMALL_SUFFIX = "#small"
THUMBNAIL_DIVISOR = 8.0
MISSING_WIDTH = 640
MISSING_HEIGHT = 320


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _keep_aspect(width: int, height: int, target_w: int, target_h: int) -> tuple[int, int]:
    """Largest size with the source's aspect ratio that fits the target."""
    if width <= 0 or height <= 0:
        return target_w, target_h
    scaled_w = target_h * width // height
    if scaled_w <= target_w:
        return scaled_w, target_h
    return target_w, target_w * height // width


def _resize(image: np.ndarray, width: int, height: int) -> np.ndarray:
    data = np.asarray(image)
    if width <= 0 or height <= 0:
        return np.zeros((max(height, 0), max(width, 0)) + data.shape[2:], dtype=data.dtype)
    planes = data[..., None] if data.ndim == 2 else data
    resized = [
        np.asarray(
            Image.fromarray(np.ascontiguousarray(plane, dtype=np.float32)).resize(
                (width, height), Image.Resampling.BILINEAR
            )
        )
        for plane in np.moveaxis(planes, -1, 0)
    ]
    out = np.stack(resized, axis=-1)
    if data.ndim == 2:
        out = out[..., 0]
    if np.issubdtype(data.dtype, np.integer):
        limits = np.iinfo(data.dtype)
        out = np.clip(np.rint(out), limits.min, limits.max)
    return out.astype(data.dtype)


def request_image(factory: ImageFactory, request: str) -> np.ndarray:
    """Answer an image request of the form ``id/...``, optionally ending in ``#small``.

    A thumbnail is an eighth of the size, keeping the aspect ratio. An unknown
    id yields a black 640x320 16-bit image.
    """
    image_id = request.split("/")[0]
    small = request.endswith(SMALL_SUFFIX)
    picture = factory.current_image(image_id)
    if picture is None:
        _logger.warning("image not found: id=%s", image_id)
        return np.zeros((MISSING_HEIGHT, MISSING_WIDTH), dtype=np.uint16)
    _logger.debug("found image id: %s", image_id)
    if not small:
        return picture
    height, width = picture.shape[:2]
    target_w = _round_half_up(width / THUMBNAIL_DIVISOR)
    target_h = _round_half_up(height / THUMBNAIL_DIVISOR)
    new_w, new_h = _keep_aspect(width, height, target_w, target_h)
    return _resize(picture, new_w, new_h)