"""Pixel operations that turn a stored radiograph into the image that is shown."""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np

from .configure import VisibleProperties, properties_from_dict

PI = 3.1415926
TEX_SIZE = 100.0
GRAY16_MAX = 65535.0
GRAY8_MAX = 255.0


def _contrast_slope(contrast: float) -> float:
    return math.tan((45.0 + 44.0 * contrast) / 180.0 * PI)


def adjust_brightness_contrast8(image: Any, brightness: int, contrast: int) -> np.ndarray:
    """Apply the brightness/contrast curve to an 8-bit image.

    ``brightness`` and ``contrast`` are clipped to [-255, 255].
    """
    data = np.asarray(image)
    if data.size == 0:
        raise ValueError("cannot adjust an empty image")
    if data.dtype != np.uint8:
        raise ValueError(f"expected an 8-bit image, got {data.dtype}")
    brightness = max(-255, min(255, int(brightness)))
    contrast = max(-255, min(255, int(contrast)))
    b = brightness / 255.0
    k = _contrast_slope(contrast / 255.0)
    levels = np.arange(256, dtype=np.float64)
    curve = (levels - 127.5 * (1.0 - b)) * k + 127.5 * (1.0 + b)
    table = np.clip(curve, 0.0, 255.0).astype(np.uint8)
    return table[data]


def brightness_and_contrast(pix: float, luminance: float, contrast: float) -> float:
    """Apply the brightness/contrast curve to one pixel value in [0, 1]."""
    k = _contrast_slope(contrast)
    value = ((pix * 255.0 - 127.5 * (1.0 - luminance)) * k + 127.5 * (1.0 + luminance)) / 255.0
    return min(1.0, max(0.0, value))


def window_levels(image: Any, begin: float, end: float, max_value: float) -> np.ndarray:
    """Stretch the window [begin, end] over [0, max_value]; returns floats."""
    pix = np.asarray(image, dtype=np.float64)
    span = end - begin
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (pix - begin) / span * max_value
    result = np.where(pix < begin, 0.0, np.where(pix > end, float(max_value), scaled))
    return np.nan_to_num(result, nan=0.0, posinf=float(max_value), neginf=0.0)


def emboss(image: Any, amount: float, max_value: float) -> np.ndarray:
    """Relief effect: each pixel minus its up-left neighbour, centred on half range."""
    data = np.asarray(image)
    h, w = data.shape[:2]
    shift = 1.0 / TEX_SIZE * (amount + 0.1)
    norm_x = (np.arange(w, dtype=np.float32) / np.float32(w)).astype(np.float64)
    norm_y = (np.arange(h, dtype=np.float32) / np.float32(h)).astype(np.float64)
    xs = np.trunc((norm_x - shift) * w).astype(np.int64)
    ys = np.trunc((norm_y - shift) * h).astype(np.int64)
    inside = ((ys >= 0) & (ys < h))[:, None] & ((xs >= 0) & (xs < w))[None, :]
    neighbour = data[np.clip(ys, 0, h - 1)[:, None], np.clip(xs, 0, w - 1)[None, :]]
    extra = (None,) * (data.ndim - 2)
    neighbour = np.where(inside[(...,) + extra], neighbour, data)
    result = data.astype(np.float64) - neighbour.astype(np.float64) + max_value / 2.0
    return np.clip(result, 0.0, max_value).astype(data.dtype)


def _gamma_exponent(gamma: float) -> float:
    if gamma == 0:
        return math.copysign(math.inf, gamma)
    return 1.0 / gamma


def _apply_power(values: np.ndarray, gamma: float, max_value: float) -> np.ndarray:
    with np.errstate(all="ignore"):
        out = np.power(values / max_value, _gamma_exponent(gamma)) * max_value
    out = np.nan_to_num(out, nan=0.0, posinf=float(max_value), neginf=0.0)
    return np.clip(out, 0.0, max_value)


def apply_gamma(image: Any, gamma: float, invert: bool, max_value: float) -> np.ndarray:
    """Optionally invert, then gamma-correct; keeps the input's dtype."""
    data = np.asarray(image)
    pix = data.astype(np.float64)
    if invert:
        pix = max_value - pix
    return _apply_power(pix, gamma, max_value).astype(data.dtype)


def fake_color(gray: Any, invert: bool, gamma: float) -> np.ndarray:
    """Map an 8-bit gray image onto a blue-green-yellow-red scale (RGB, uint8)."""
    temp = np.asarray(gray, dtype=np.float64) / 255.0
    if invert:
        temp = 1.0 - temp
    v = 4.0 * temp * 255.0
    first = temp < 63.0 / 255.0
    second = temp < 127.0 / 255.0
    third = temp < 191.0 / 255.0
    red = np.where(first, 0.0, np.where(second, 0.0, np.where(third, (-510.0 + v) / 255.0, 1.0)))
    green = np.where(
        first,
        (254.0 - v) / 255.0,
        np.where(second, (-254.0 + v) / 255.0, np.where(third, 1.0, (1022.0 - v) / 255.0)),
    )
    blue = np.where(first, 1.0, np.where(second, (510.0 - v) / 255.0, 0.0))
    rgb = np.clip(np.stack([red, green, blue], axis=-1) * GRAY8_MAX, 0.0, GRAY8_MAX)
    return _apply_power(rgb, gamma, GRAY8_MAX).astype(np.uint8)


def normalize_rotation(degrees: int) -> int:
    """Turn the negative right angles into their positive equivalents."""
    degrees = int(degrees)
    return {-90: 270, -180: 180, -270: 90, -360: 0}.get(degrees, degrees)


def rotate(image: Any, degrees: int) -> np.ndarray:
    """Rotate clockwise by 90, 180 or 270 degrees; other angles leave it as is."""
    data = np.asarray(image)
    turn = normalize_rotation(degrees)
    if turn == 90:
        return np.swapaxes(data, 0, 1)[:, ::-1].copy()
    if turn == 180:
        return data[::-1, ::-1].copy()
    if turn == 270:
        return np.swapaxes(data, 0, 1)[::-1].copy()
    return data.copy()


def mirror(image: Any, horizontal: bool, vertical: bool) -> np.ndarray:
    """Flip left-right and/or top-bottom."""
    out = np.asarray(image)
    if horizontal:
        out = out[:, ::-1]
    if vertical:
        out = out[::-1]
    return out.copy()


def _props(props: VisibleProperties | Mapping[str, Any]) -> VisibleProperties:
    if isinstance(props, VisibleProperties):
        return props
    return properties_from_dict(props)


def _to_gray8(image: np.ndarray) -> np.ndarray:
    wide = image.astype(np.uint32)
    return ((wide - (wide >> 8) + 128) >> 8).astype(np.uint8)


def _tone_offsets(p: VisibleProperties) -> tuple[int, int]:
    return int((p.luminance - 1.0) * 255), int((p.contrast - 1.0) * 255)


def _orient(image: np.ndarray, p: VisibleProperties) -> np.ndarray:
    return mirror(rotate(image, int(p.rotate)), p.mirror_horizontal, p.mirror_vertical)


def render_gray(image: Any, props: VisibleProperties | Mapping[str, Any]) -> np.ndarray:
    """Render a 16-bit gray image with the given display settings."""
    p = _props(props)
    data = np.asarray(image)
    if data.ndim != 2:
        raise ValueError("expected a single-channel image")
    windowed = window_levels(data, float(p.window_begin), float(p.window_end), GRAY16_MAX)
    eight = _to_gray8(windowed.astype(np.uint16))
    eight = adjust_brightness_contrast8(eight, *_tone_offsets(p))
    sixteen = eight.astype(np.uint16) * np.uint16(257)
    if p.emboss > 0.05:
        sixteen = emboss(sixteen, p.emboss, GRAY16_MAX)
    sixteen = apply_gamma(sixteen, p.gamma, p.invert, GRAY16_MAX)
    return _orient(sixteen, p)


def render_fake_color(image: Any, props: VisibleProperties | Mapping[str, Any]) -> np.ndarray:
    """Render an image as RGB (uint8), in false colour when the settings ask for it."""
    p = _props(props)
    data = np.asarray(image)
    if data.ndim == 3:
        channel = data[..., 0]
    elif data.ndim == 2:
        channel = data
    else:
        raise ValueError("expected a gray or RGB image")
    if channel.dtype != np.uint8:
        channel = _to_gray8(channel.astype(np.uint16))
    begin = p.window_begin / GRAY16_MAX * GRAY8_MAX
    end = p.window_end / GRAY16_MAX * GRAY8_MAX
    gray = window_levels(channel, begin, end, GRAY8_MAX).astype(np.uint8)
    gray = adjust_brightness_contrast8(gray, *_tone_offsets(p))
    if p.emboss > 0.05:
        gray = emboss(gray, p.emboss, GRAY8_MAX)
    if p.fake_color:
        rgb = fake_color(gray, p.invert, p.gamma)
    else:
        toned = apply_gamma(gray, p.gamma, p.invert, GRAY8_MAX)
        rgb = np.stack([toned, toned, toned], axis=-1)
    return _orient(rgb, p)