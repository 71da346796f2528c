import numpy as np
import pytest
from PIL import Image

from dentview.configure import Field, ImageState, origin_visible_properties
from dentview.image_store import ImageData, ImageFactory
from dentview.processing import render_fake_color, render_gray


def _gray8(h=6, w=8):
    return (np.arange(h * w, dtype=np.uint16) * 5 % 256).astype(np.uint8).reshape(h, w)


def _gray16(h=6, w=8):
    return (np.arange(h * w, dtype=np.uint32) * 1000 % 65536).astype(np.uint16).reshape(h, w)


def _write(path, array):
    Image.fromarray(array).save(path, format="PNG")
    return path


def test_get_image_loads_origin_lazily(tmp_path):
    data = _gray8()
    path = _write(tmp_path / "o.png", data)
    factory = ImageFactory()
    factory.add_image("a", ImageData(origin_path=str(path)))
    loaded = factory.get_image("a", ImageState.ORIGIN)
    assert np.array_equal(loaded, data)
    assert loaded is factory.get_image("a", ImageState.ORIGIN)


def test_get_image_unknown_id_is_none():
    assert ImageFactory().get_image("missing", ImageState.ORIGIN) is None


def test_get_image_unreadable_file_is_none(tmp_path):
    factory = ImageFactory()
    factory.add_image("a", ImageData(origin_path=str(tmp_path / "nope.png")))
    assert factory.get_image("a", ImageState.ORIGIN) is None


def test_remove_and_clear():
    factory = ImageFactory()
    factory.add_image("a", ImageData())
    factory.add_image("b", ImageData())
    assert factory.remove_image("a") is True
    assert factory.remove_image("a") is False
    assert len(factory) == 1
    factory.clear_images()
    assert "b" not in factory


def test_set_last_image_is_saved_and_round_trips_16_bit(tmp_path):
    last = tmp_path / "last.png"
    data = _gray16()
    factory = ImageFactory()
    factory.add_image("a", ImageData(last_path=str(last)))
    factory.set_image("a", data, ImageState.LAST)
    assert last.exists()
    fresh = ImageFactory()
    fresh.add_image("a", ImageData(last_path=str(last)))
    assert np.array_equal(fresh.get_image("a", ImageState.LAST), data)


def test_set_origin_image_keeps_it_in_memory_only(tmp_path):
    origin = tmp_path / "origin.png"
    data = _gray8()
    factory = ImageFactory()
    factory.add_image("a", ImageData(origin_path=str(origin)))
    factory.set_image("a", data, ImageState.ORIGIN)
    assert not origin.exists()
    assert np.array_equal(factory.get_image("a", ImageState.ORIGIN), data)


@pytest.mark.parametrize(
    "call",
    [
        lambda f: f.set_image("x", _gray8(), ImageState.LAST),
        lambda f: f.set_image_state("x", ImageState.LAST),
        lambda f: f.set_sharpen_value("x", 3),
    ],
)
def test_setters_reject_unknown_id(call):
    with pytest.raises(KeyError):
        call(ImageFactory())


def test_current_image_follows_state(tmp_path):
    origin = _gray8()
    last = 255 - origin
    factory = ImageFactory()
    factory.add_image(
        "a",
        ImageData(
            origin_path=str(_write(tmp_path / "o.png", origin)),
            last_path=str(_write(tmp_path / "l.png", last)),
        ),
    )
    assert np.array_equal(factory.current_image("a"), origin)
    factory.set_image_state("a", ImageState.LAST)
    assert np.array_equal(factory.current_image("a"), last)


def test_current_image_applies_sharpener(tmp_path):
    calls = []

    def sharpener(image, factor):
        calls.append(factor)
        return image // 2

    last = _gray8()
    factory = ImageFactory(sharpener=sharpener)
    factory.add_image(
        "a",
        ImageData(last_path=str(_write(tmp_path / "l.png", last)), state=ImageState.LAST),
    )
    assert np.array_equal(factory.current_image("a"), last)
    assert calls == []
    factory.set_sharpen_value("a", 2)
    assert np.array_equal(factory.current_image("a"), last // 2)
    assert calls == [2.5]


def test_final_image_missing_is_none():
    assert ImageFactory().get_final_image("a", origin_visible_properties()) is None


def test_final_image_origin_state_is_unchanged(tmp_path):
    data = _gray16()
    factory = ImageFactory()
    factory.add_image("a", ImageData(origin_path=str(_write(tmp_path / "o.png", data))))
    info = origin_visible_properties()
    info[Field.IMAGE_STATE.value] = int(ImageState.ORIGIN)
    info[Field.ROTATE.value] = 90
    assert np.array_equal(factory.get_final_image("a", info), data)


def test_final_image_gray_matches_renderer(tmp_path):
    data = _gray16()
    factory = ImageFactory()
    factory.add_image(
        "a",
        ImageData(last_path=str(_write(tmp_path / "l.png", data)), state=ImageState.LAST),
    )
    info = origin_visible_properties()
    info[Field.IMAGE_STATE.value] = int(ImageState.LAST)
    info[Field.ROTATE.value] = 90
    info[Field.GAMMA.value] = 1.5
    result = factory.get_final_image("a", info)
    assert result.shape == (data.shape[1], data.shape[0])
    assert np.array_equal(result, render_gray(data, info))


def test_final_image_fake_color_matches_renderer(tmp_path):
    data = _gray8()
    factory = ImageFactory()
    factory.add_image(
        "a",
        ImageData(last_path=str(_write(tmp_path / "l.png", data)), state=ImageState.LAST),
    )
    info = origin_visible_properties()
    info[Field.IMAGE_STATE.value] = int(ImageState.LAST)
    info[Field.FAKE_COLOR.value] = True
    result = factory.get_final_image("a", info)
    assert result.shape == data.shape + (3,)
    assert np.array_equal(result, render_fake_color(data, info))