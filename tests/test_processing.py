import numpy as np
import pytest

from dentview.configure import Field, VisibleProperties, origin_visible_properties
from dentview.processing import (
    adjust_brightness_contrast8,
    apply_gamma,
    brightness_and_contrast,
    emboss,
    fake_color,
    mirror,
    normalize_rotation,
    render_fake_color,
    render_gray,
    rotate,
    window_levels,
)

RAMP8 = np.arange(256, dtype=np.uint8).reshape(16, 16)


def test_adjust_full_brightness_saturates():
    out = adjust_brightness_contrast8(RAMP8, 255, 0)
    assert out.shape == (16, 16)
    assert out.dtype == np.uint8
    assert out.tolist() == [[255] * 16] * 16


def test_adjust_full_darkness_blackens():
    out = adjust_brightness_contrast8(RAMP8, -255, 0)
    assert out.shape == (16, 16)
    assert out.dtype == np.uint8
    assert out.tolist() == [[0] * 16] * 16


def test_adjust_clips_arguments():
    a = adjust_brightness_contrast8(RAMP8, 1000, -1000)
    b = adjust_brightness_contrast8(RAMP8, 255, -255)
    assert np.array_equal(a, b)


def test_adjust_is_monotonic_and_keeps_shape():
    out = adjust_brightness_contrast8(RAMP8, 20, 40)
    assert out.shape == RAMP8.shape
    assert np.all(np.diff(out.ravel().astype(int)) >= 0)


def test_adjust_rejects_empty_and_wide_images():
    with pytest.raises(ValueError):
        adjust_brightness_contrast8(np.zeros((0, 0), dtype=np.uint8), 0, 0)
    with pytest.raises(ValueError):
        adjust_brightness_contrast8(np.zeros((2, 2), dtype=np.uint16), 0, 0)


def test_brightness_and_contrast_midpoint_and_clipping():
    assert brightness_and_contrast(0.5, 0.0, 0.0) == pytest.approx(0.5)
    assert brightness_and_contrast(1.0, 1.0, 0.0) == 1.0
    assert brightness_and_contrast(0.0, -1.0, 0.0) == 0.0


def test_window_levels_outside_window():
    out = window_levels(np.array([10, 500, 900]), 100, 800, 255.0)
    assert out[0] == 0.0
    assert out[2] == 255.0
    assert 0.0 < out[1] < 255.0


def test_window_levels_degenerate_window_has_no_nan():
    out = window_levels(np.array([5, 7, 9]), 7, 7, 100.0)
    assert not np.any(np.isnan(out))
    assert out[0] == 0.0 and out[2] == 100.0


def test_emboss_flat_image_goes_to_half_range():
    flat = np.full((4, 4), 100, dtype=np.uint8)
    out = emboss(flat, 0.5, 255.0)
    assert out.dtype == np.uint8
    assert np.all(out == 127)


def test_apply_gamma_extremes_and_invert():
    img = np.array([0, 65535], dtype=np.uint16)
    assert apply_gamma(img, 1.0, False, 65535.0).tolist() == [0, 65535]
    assert apply_gamma(img, 1.0, True, 65535.0).tolist() == [65535, 0]


def test_fake_color_ends_of_scale():
    out = fake_color(np.array([[0, 255]], dtype=np.uint8), False, 1.0)
    assert out.shape == (1, 2, 3)
    assert out[0, 0, 0] == 0 and out[0, 0, 2] == 255
    assert out[0, 1, 0] == 255 and out[0, 1, 2] == 0


def test_fake_color_invert_swaps_ends():
    plain = fake_color(np.array([[0, 255]], dtype=np.uint8), False, 1.0)
    inverted = fake_color(np.array([[255, 0]], dtype=np.uint8), True, 1.0)
    assert np.array_equal(plain, inverted)


@pytest.mark.parametrize(
    "degrees, expected",
    [(-90, 270), (-180, 180), (-270, 90), (-360, 0), (90, 90), (45, 45)],
)
def test_normalize_rotation(degrees, expected):
    assert normalize_rotation(degrees) == expected


def test_rotate_clockwise():
    img = np.array([[1, 2], [3, 4]])
    assert rotate(img, 90).tolist() == [[3, 1], [4, 2]]
    assert rotate(img, -90).tolist() == [[2, 4], [1, 3]]
    assert rotate(img, 180).tolist() == [[4, 3], [2, 1]]


def test_rotate_round_trip_and_other_angles():
    img = np.arange(6).reshape(2, 3)
    assert np.array_equal(rotate(rotate(img, 90), 270), img)
    assert np.array_equal(rotate(img, 45), img)


def test_mirror():
    img = np.array([[1, 2], [3, 4]])
    assert mirror(img, True, False).tolist() == [[2, 1], [4, 3]]
    assert mirror(img, False, True).tolist() == [[3, 4], [1, 2]]
    assert np.array_equal(mirror(mirror(img, True, True), True, True), img)


SAMPLE16 = np.array([[0, 1000, 5000], [20000, 40000, 65535]], dtype=np.uint16)


def test_render_gray_keeps_black_and_order():
    out = render_gray(SAMPLE16, VisibleProperties())
    assert out.dtype == np.uint16
    assert out[0, 0] == 0
    assert np.all(np.diff(out.ravel().astype(int)) >= 0)


def test_render_gray_invert_makes_black_white():
    out = render_gray(SAMPLE16, VisibleProperties(invert=True))
    assert out[0, 0] == 65535


def test_render_gray_window_flattens_below_begin():
    out = render_gray(SAMPLE16, VisibleProperties(window_begin=2000, window_end=30000))
    assert out[0, 0] == out[0, 1]
    assert out[1, 1] == out[1, 2]


def test_render_gray_orientation_matches_helpers():
    plain = render_gray(SAMPLE16, VisibleProperties())
    turned = render_gray(SAMPLE16, VisibleProperties(rotate=90, mirror_horizontal=True))
    assert turned.shape == (3, 2)
    assert np.array_equal(turned, mirror(rotate(plain, 90), True, False))


def test_render_gray_accepts_record():
    record = origin_visible_properties()
    record[Field.ROTATE.value] = 270
    out = render_gray(SAMPLE16, record)
    assert np.array_equal(out, rotate(render_gray(SAMPLE16, VisibleProperties()), 270))


def test_render_gray_rejects_color_input():
    with pytest.raises(ValueError):
        render_gray(np.zeros((2, 2, 3), dtype=np.uint16), VisibleProperties())


def test_render_fake_color_black_is_blue():
    out = render_fake_color(np.zeros((2, 3), dtype=np.uint16), VisibleProperties(fake_color=True))
    assert out.shape == (2, 3, 3)
    assert np.all(out[..., 0] == 0)
    assert np.all(out[..., 2] == 255)


def test_render_fake_color_gray_invert():
    out = render_fake_color(np.zeros((2, 2), dtype=np.uint16), VisibleProperties(invert=True))
    assert np.all(out == 255)


def test_render_fake_color_rotates():
    img = np.zeros((2, 5), dtype=np.uint16)
    out = render_fake_color(img, VisibleProperties(fake_color=True, rotate=-90))
    assert out.shape == (5, 2, 3)