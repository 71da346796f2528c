"""Registry of captured images with lazy loading from disk and final rendering."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import numpy as np
from PIL import Image

from .configure import Field, ImageState, _to_bool, _to_int
from .log import Log
from .processing import render_fake_color, render_gray

TAG = "image factory"

Sharpener = Callable[[np.ndarray, float], np.ndarray]
PathLike = "str | os.PathLike[str]"

_SIXTEEN_BIT_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


def _load(path: str | os.PathLike[str] | None) -> np.ndarray | None:
    """Read an image file into an array; None when it cannot be read."""
    if not path:
        return None
    try:
        with Image.open(path) as picture:
            picture.load()
            if picture.mode in _SIXTEEN_BIT_MODES:
                return np.asarray(picture).astype(np.uint16)
            if picture.mode == "L":
                return np.asarray(picture).astype(np.uint8)
            return np.asarray(picture.convert("RGB")).astype(np.uint8)
    except (OSError, ValueError):
        return None


def _save(path: str | os.PathLike[str], image: np.ndarray) -> None:
    Image.fromarray(np.ascontiguousarray(image)).save(path, format="PNG")


def _as_gray16(image: np.ndarray) -> np.ndarray:
    data = np.asarray(image)
    if data.ndim == 3:
        data = data[..., 0]
    if data.dtype == np.uint8:
        return data.astype(np.uint16) * np.uint16(257)
    return data.astype(np.uint16)


@dataclass
class ImageData:
    """One registered picture: where its versions live and how it is shown."""

    origin_path: str | os.PathLike[str] = ""
    last_path: str | os.PathLike[str] = ""
    origin: np.ndarray | None = None
    last: np.ndarray | None = None
    state: ImageState = ImageState.ORIGIN
    sharpen: int = 0


class ImageFactory:
    """Thread-safe store of pictures keyed by id."""

    def __init__(self, sharpener: Sharpener | None = None, log: Log | None = None) -> None:
        self._lock = threading.RLock()
        self._pictures: dict[str, ImageData] = {}
        self._sharpener = sharpener
        self._log = log

    def __contains__(self, image_id: object) -> bool:
        with self._lock:
            return image_id in self._pictures

    def __len__(self) -> int:
        with self._lock:
            return len(self._pictures)

    def _entry(self, image_id: str) -> ImageData:
        try:
            return self._pictures[image_id]
        except KeyError:
            raise KeyError(f"no image registered with id {image_id!r}") from None

    def add_image(self, image_id: str, image: ImageData) -> None:
        """Register a picture, replacing any with the same id."""
        with self._lock:
            self._pictures[image_id] = image

    def remove_image(self, image_id: str) -> bool:
        """Forget a picture; returns whether it was registered."""
        with self._lock:
            return self._pictures.pop(image_id, None) is not None

    def clear_images(self) -> None:
        """Forget every picture."""
        with self._lock:
            self._pictures.clear()

    def get_image(self, image_id: str, state: ImageState) -> np.ndarray | None:
        """Return the requested version, loading it from disk on first use."""
        with self._lock:
            entry = self._pictures.get(image_id)
            if entry is None:
                return None
            if state == ImageState.ORIGIN:
                if entry.origin is None:
                    entry.origin = _load(entry.origin_path)
                return entry.origin
            if state == ImageState.LAST:
                if entry.last is None:
                    entry.last = _load(entry.last_path)
                return entry.last
            return None

    def current_image(self, image_id: str) -> np.ndarray | None:
        """Read the version the picture's state selects fresh from disk, sharpened if set."""
        with self._lock:
            entry = self._pictures.get(image_id)
            if entry is None:
                return None
            if entry.state == ImageState.ORIGIN:
                return _load(entry.origin_path)
            picture = _load(entry.last_path)
            if picture is not None and entry.sharpen > 0 and self._sharpener is not None:
                factor = entry.sharpen + 0.5
                if factor >= 0.3:
                    picture = self._sharpener(picture, factor)
            return picture

    def set_image(self, image_id: str, image: np.ndarray, state: ImageState) -> None:
        """Replace a version; the last version is also written to its file as PNG."""
        with self._lock:
            entry = self._entry(image_id)
            if state == ImageState.LAST:
                entry.last = image
                if entry.last_path:
                    _save(entry.last_path, image)
            else:
                entry.origin = image

    def set_image_state(self, image_id: str, state: ImageState) -> None:
        """Choose which version of the picture is current."""
        with self._lock:
            self._entry(image_id).state = ImageState(state)

    def set_sharpen_value(self, image_id: str, value: int) -> None:
        """Set the sharpening strength applied to the last version."""
        with self._lock:
            self._entry(image_id).sharpen = int(value)

    def get_final_image(self, image_id: str, info: Mapping[str, Any]) -> np.ndarray | None:
        """Render the current version with the display settings in ``info``.

        Returns None when there is no picture to render.
        """
        picture = self.current_image(image_id)
        if picture is None:
            if self._log is not None:
                self._log.i(TAG, f"no image, export cancelled: {image_id}")
            return None
        if _to_int(info.get(Field.IMAGE_STATE.value)) == ImageState.ORIGIN:
            return picture
        if _to_bool(info.get(Field.FAKE_COLOR.value)):
            return render_fake_color(picture, info)
        return render_gray(_as_gray16(picture), info)