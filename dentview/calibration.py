"""Dark and light calibration frames from the sensor, kept for display."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

FRAME_WIDTH = 1660
FRAME_HEIGHT = 2280
URL_PREFIX = "image://fixed_images/"


def raw_to_display(raw: bytes, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> np.ndarray:
    """Decode little-endian 16-bit sensor values and scale them by 16 for viewing."""
    count = width * height
    if len(raw) < count * 2:
        raise ValueError(f"need {count * 2} bytes for a {width}x{height} frame, got {len(raw)}")
    values = np.frombuffer(raw, dtype="<u2", count=count).astype(np.uint16)
    return (values * np.uint16(16)).reshape(height, width)


@dataclass
class CalibrationImages:
    """Holds the latest dark and light frames and hands out fresh URLs for them."""

    width: int = FRAME_WIDTH
    height: int = FRAME_HEIGHT
    dark: np.ndarray | None = None
    light: np.ndarray | None = None
    dark_url: str = ""
    light_url: str = ""
    _index: int = field(default=1, init=False, repr=False)

    def _next_url(self, name: str) -> str:
        url = f"{URL_PREFIX}{name}{self._index}"
        self._index += 1
        return url

    def _decode(self, raw: bytes) -> np.ndarray | None:
        return raw_to_display(raw, self.width, self.height) if raw else None

    def set_dark(self, raw: bytes) -> str:
        """Store a dark frame (empty data clears it) and return its new URL."""
        self.dark = self._decode(raw)
        self.dark_url = self._next_url("dark")
        return self.dark_url

    def set_light(self, raw: bytes) -> str:
        """Store a light frame (empty data clears it) and return its new URL."""
        self.light = self._decode(raw)
        self.light_url = self._next_url("light")
        return self.light_url

    def request_image(self, name: str) -> np.ndarray | None:
        """Return the dark frame when ``name`` mentions it, otherwise the light one."""
        return self.dark if "dark" in name else self.light