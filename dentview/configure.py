"""Display settings for images and their storage as flat key/value records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Mapping


class ImageFilter(enum.IntEnum):
    """Filters that can be applied to an original image."""

    NO_FILTER = 0
    MOUSE_USM = 1
    MOUSE_HD = 2
    MOUSE_BLUR = 3
    CLEAR_VER_LINES = 4
    IMAGE_LEVEL_UP = 5


class ImageState(enum.IntEnum):
    """Which version of an image is shown: the original or the last edited one."""

    ORIGIN = 0
    LAST = 1


class Field(str, enum.Enum):
    """Column names of the image record that hold display settings."""

    ROTATE = "Rotate_integer"
    LUMINANCE = "Luminance_float"
    CONTRAST = "Contrast_float"
    GAMMA = "Gama_float"
    EMBOSS = "Float_float"
    SHARPEN = "Rui_Hua_integer"
    FAKE_COLOR = "Enable_Fake_Color_Filter_BOOLEAN"
    INVERT = "Enable_Turn_Color_Filter_BOOLEAN"
    FILTER = "Filter_Index_integer"
    MIRROR_HORIZONTAL = "Enable_Hor_Mirror_BOOLEAN"
    MIRROR_VERTICAL = "Enable_Ver_Mirror_BOOLEAN"
    WINDOW_BEGIN = "Window_Begin_integer"
    WINDOW_END = "Window_End_integer"
    IMAGE_STATE = "Image_State_Integer"


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def _to_bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _to_filter(value: Any) -> ImageFilter | int:
    number = _to_int(value)
    try:
        return ImageFilter(number)
    except ValueError:
        return number


@dataclass
class VisibleProperties:
    """The settings that decide how an image is displayed."""

    rotate: float = 0
    luminance: float = 1.0
    contrast: float = 1.0
    gamma: float = 1.0
    emboss: float = 0.0
    sharpen: int = 0
    fake_color: bool = False
    invert: bool = False
    image_filter: ImageFilter | int = ImageFilter.NO_FILTER
    mirror_horizontal: bool = False
    mirror_vertical: bool = False
    window_begin: int = 0
    window_end: int = 65535

    def to_dict(self) -> dict[str, Any]:
        """Return the settings keyed by their record column names."""
        result = {
            key.value: getattr(self, name) for name, (key, _) in _COLUMNS.items()
        }
        result[Field.FILTER.value] = int(self.image_filter)
        return result


_COLUMNS: dict[str, tuple[Field, Callable[[Any], Any]]] = {
    "rotate": (Field.ROTATE, _to_int),
    "luminance": (Field.LUMINANCE, _to_float),
    "contrast": (Field.CONTRAST, _to_float),
    "gamma": (Field.GAMMA, _to_float),
    "emboss": (Field.EMBOSS, _to_float),
    "sharpen": (Field.SHARPEN, _to_int),
    "fake_color": (Field.FAKE_COLOR, _to_bool),
    "invert": (Field.INVERT, _to_bool),
    "image_filter": (Field.FILTER, _to_filter),
    "mirror_horizontal": (Field.MIRROR_HORIZONTAL, _to_bool),
    "mirror_vertical": (Field.MIRROR_VERTICAL, _to_bool),
    "window_begin": (Field.WINDOW_BEGIN, _to_int),
    "window_end": (Field.WINDOW_END, _to_int),
}

VISIBLE_FIELDS: tuple[Field, ...] = tuple(key for key, _ in _COLUMNS.values())


def properties_from_dict(data: Mapping[str, Any]) -> VisibleProperties:
    """Read settings from a record; missing or mistyped values become zero or false."""
    return VisibleProperties(
        **{
            name: convert(data.get(key.value))
            for name, (key, convert) in _COLUMNS.items()
        }
    )


def origin_visible_properties() -> dict[str, Any]:
    """Settings that show an image exactly as it was captured."""
    return VisibleProperties().to_dict()


def filtered_origin_visible_properties(image_filter: ImageFilter | int) -> dict[str, Any]:
    """Neutral tone settings for a filtered image; rotation, filter and mirroring are left out."""
    kept = (
        Field.LUMINANCE,
        Field.CONTRAST,
        Field.GAMMA,
        Field.EMBOSS,
        Field.SHARPEN,
        Field.FAKE_COLOR,
        Field.INVERT,
        Field.WINDOW_BEGIN,
        Field.WINDOW_END,
    )
    neutral = VisibleProperties().to_dict()
    return {key.value: neutral[key.value] for key in kept}


def copy_visible_properties(picture: Mapping[str, Any]) -> dict[str, Any]:
    """Copy the display settings present in a picture record."""
    return {
        key.value: picture[key.value]
        for key in VISIBLE_FIELDS
        if key.value in picture
    }


@dataclass
class Configure:
    """Application-wide defaults for newly captured images."""

    ORIGIN_IMAGE_DIR: ClassVar[str] = "origin_image"
    LAST_STATE_IMAGE_DIR: ClassVar[str] = "last_state_image"
    PILLAR_IMAGE_DIR: ClassVar[str] = "pill_line_image"
    RAW_IMAGE_DIR: ClassVar[str] = "raw"
    IMAGE_ROOT_NODE: ClassVar[str] = "Images"

    defaults: VisibleProperties = field(default_factory=VisibleProperties)
    scale: float = 0.25
    line_color: str = "#00FF00"
    data_store_root_dir: str = "D:/temp"

    def default_visible_properties(self) -> dict[str, Any]:
        """Return the current defaults as a record."""
        return self.defaults.to_dict()

    def set_default_visible_properties(self, data: Mapping[str, Any]) -> None:
        """Replace the defaults with the settings found in a record."""
        self.defaults = properties_from_dict(data)