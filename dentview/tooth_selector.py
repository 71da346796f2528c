"""Interactive tooth chart: click on teeth in a chart image to mark them."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np

TAG = "tooth selector"
COLOR_THRESHOLD = 14
ADULT_ROWS = (43, 90, 127, 172)
KID_ROWS = (40, 88, 124, 173)
TEE_TYPES = ("adult", "kid")


def _colored(image: np.ndarray) -> np.ndarray:
    """True where a pixel has any colour channel above the threshold."""
    data = np.asarray(image)
    if data.ndim == 2:
        return data > COLOR_THRESHOLD
    return (data[..., :3] > COLOR_THRESHOLD).any(axis=-1)


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        """Whether the pixel (x, y) lies inside."""
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def region(self) -> tuple[slice, slice]:
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)


def find_tooth_rects(image: Any, y1: int, y2: int, y3: int, y4: int) -> list[Rect]:
    """Find the teeth as column runs of coloured pixels between rows y1 and y2.

    The same column runs are used for the upper row [y1, y2) and the lower
    row [y3, y4); upper-row rectangles come first.
    """
    data = np.asarray(image)
    width = data.shape[1]
    columns = _colored(data[y1:y2]).any(axis=0)
    edges: list[int] = []
    last: bool | None = None
    for x, found in enumerate(columns.tolist()):
        if last is None:
            if found:
                edges.append(x)
                last = True
        elif found != last:
            edges.append(x)
            last = found
    if len(edges) % 2:
        edges.append(width)
    spans = list(zip(edges[::2], edges[1::2]))
    upper = [Rect(start, y1, stop - start, y2 - y1) for start, stop in spans]
    lower = [Rect(start, y3, stop - start, y4 - y3) for start, stop in spans]
    return upper + lower


def _to_index(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _parse_indexes(tee_indexes: str | Iterable[Any]) -> list[int]:
    if isinstance(tee_indexes, str):
        try:
            parsed = json.loads(tee_indexes)
        except ValueError:
            return []
        if not isinstance(parsed, list):
            return []
        tee_indexes = parsed
    return [_to_index(value) for value in tee_indexes]


class ToothChart:
    """One chart: a base image, its highlighted counterpart and the marked teeth."""

    def __init__(self, unchecked: Any, checked: Any, rows: tuple[int, int, int, int]) -> None:
        self.unchecked = np.array(unchecked)
        self.checked = np.array(checked)
        if self.unchecked.shape != self.checked.shape:
            raise ValueError("checked and unchecked images must have the same shape")
        self.rects = find_tooth_rects(self.unchecked, *rows)
        self.marks = [False] * len(self.rects)
        self.image = self.unchecked.copy()
        self._unchecked_tiles = [self.unchecked[r.region()].copy() for r in self.rects]
        self._checked_tiles = [self.checked[r.region()].copy() for r in self.rects]

    def _draw(self, index: int) -> None:
        tile = (self._checked_tiles if self.marks[index] else self._unchecked_tiles)[index]
        self.image[self.rects[index].region()] = tile

    def reset(self, indexes: Iterable[int]) -> None:
        """Mark exactly the given teeth and redraw the chart."""
        marks = [False] * len(self.rects)
        for index in indexes:
            if not 0 <= index < len(marks):
                raise IndexError(f"tooth index {index} out of range")
            marks[index] = True
        self.marks = marks
        for index in range(len(self.rects)):
            self._draw(index)

    def toggle_at(self, x: int, y: int) -> int | None:
        """Toggle the tooth under pixel (x, y); returns its index, or None if none is there."""
        height, width = self.checked.shape[:2]
        if not (0 <= x < width and 0 <= y < height):
            return None
        if not _colored(self.checked[y : y + 1, x : x + 1]).item():
            return None
        for index, rect in enumerate(self.rects):
            if rect.contains(x, y):
                self.marks[index] = not self.marks[index]
                self._draw(index)
                return index
        return None

    def checked_indexes(self) -> list[int]:
        """Indexes of the marked teeth, in order."""
        return [index for index, mark in enumerate(self.marks) if mark]


class ToothSelector:
    """Adult and kid charts, one of which is current."""

    def __init__(self, adult: ToothChart, kid: ToothChart) -> None:
        self._charts = {"adult": adult, "kid": kid}
        self._lock = threading.Lock()
        self._current = adult
        self.tee_type = "adult"
        self.dirty = False

    @classmethod
    def from_images(
        cls, adult_unchecked: Any, adult_checked: Any, kid_unchecked: Any, kid_checked: Any
    ) -> ToothSelector:
        """Build both charts with the standard tooth row positions."""
        return cls(
            ToothChart(adult_unchecked, adult_checked, ADULT_ROWS),
            ToothChart(kid_unchecked, kid_checked, KID_ROWS),
        )

    def _chart(self, tee_type: str) -> ToothChart:
        try:
            return self._charts[tee_type]
        except KeyError:
            raise ValueError(f"unknown tooth type: {tee_type!r}") from None

    def select(self, tee_type: str) -> None:
        """Make the ``adult`` or ``kid`` chart current."""
        with self._lock:
            self._current = self._chart(tee_type)
            self.tee_type = tee_type

    def reinit(self, tee_type: str, tee_indexes: str | Iterable[Any]) -> None:
        """Clear both charts, mark ``tee_indexes`` on the chosen one and select it.

        ``tee_indexes`` is a JSON array text or an iterable of indexes.
        """
        chosen = self._chart(tee_type)
        indexes = _parse_indexes(tee_indexes)
        with self._lock:
            for chart in self._charts.values():
                chart.reset(indexes if chart is chosen else [])
        self.select(tee_type)
        self.dirty = True

    def mouse_event(self, x: float, y: float) -> int | None:
        """Toggle the tooth at the normalised position (x, y) of the current chart."""
        with self._lock:
            height, width = self._current.checked.shape[:2]
            index = self._current.toggle_at(int(x * width), int(y * height))
            if index is not None:
                self.dirty = True
            return index

    def request_image(self) -> np.ndarray:
        """Return the current chart image and clear the dirty flag."""
        with self._lock:
            self.dirty = False
            return self._current.image.copy()

    def checked_indexes(self) -> list[int]:
        """Marked teeth of the current chart."""
        with self._lock:
            return self._current.checked_indexes()