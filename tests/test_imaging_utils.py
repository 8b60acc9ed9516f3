import numpy as np
import pytest

from mass_editor.utils.errors import InvalidParameter
from mass_editor.utils.imaging import (
    apply_curve, blend_multiply, blend_screen, composite, luminance, parse_color, to_uint8,
)


def test_apply_curve_identity(sample_image_uint8, identity_curve):
    """Applying an identity curve should not change the image."""
    result = apply_curve(sample_image_uint8, identity_curve)
    assert np.array_equal(sample_image_uint8, result)


def test_apply_curve_shape(sample_image_uint8, sample_curve):
    """Applying a curve should maintain the image shape and dtype."""
    result = apply_curve(sample_image_uint8, sample_curve)
    assert result.shape == sample_image_uint8.shape
    assert result.dtype == sample_image_uint8.dtype


def test_apply_curve_black_white_preserved(identity_curve):
    """Black (0) and White (255) should map correctly in identity curve."""
    img = np.array([[[0, 128, 255]]], dtype=np.uint8)
    result = apply_curve(img, identity_curve)
    assert result[0, 0, 0] == 0
    assert result[0, 0, 2] == 255


def test_apply_curve_interpolates_between_points(sample_curve):
    img = np.array([[64, 128, 192]], dtype=np.uint8)
    result = apply_curve(img, sample_curve)
    assert result.tolist() == [[48, 128, 207]]


def test_apply_curve_extends_to_full_range():
    """Curves that do not start at 0 or end at 255 are held flat at the ends."""
    img = np.array([[0, 10, 250, 255]], dtype=np.uint8)
    result = apply_curve(img, [[20, 30], [200, 220]])
    assert result.tolist() == [[30, 30, 220, 220]]


def test_apply_curve_rejects_bad_points():
    img = np.zeros((2, 2), dtype=np.uint8)
    with pytest.raises(InvalidParameter):
        apply_curve(img, [1, 2, 3])


def test_apply_curve_requires_uint8():
    with pytest.raises(TypeError):
        apply_curve(np.zeros((2, 2), dtype=np.float32), [[0, 0], [255, 255]])


class TestRounding:
    """Quantization is clamp then round-half-up."""

    def test_round_half_up(self):
        values = np.array([0.5, 1.49, 2.5, 153.6, 103.3, 195.2], dtype=np.float32)
        assert to_uint8(values).tolist() == [1, 1, 3, 154, 103, 195]

    def test_clamps(self):
        values = np.array([-40.0, -0.4, 255.4, 300.0], dtype=np.float32)
        assert to_uint8(values).tolist() == [0, 0, 255, 255]

    def test_dtype(self):
        assert to_uint8(np.zeros(3, dtype=np.float64)).dtype == np.uint8


class TestBlendModes:
    def test_screen(self):
        assert blend_screen(np.float32(100), np.float32(0)) == pytest.approx(100)
        assert blend_screen(np.float32(100), np.float32(255)) == pytest.approx(255)
        assert blend_screen(np.float32(128), np.float32(128)) == pytest.approx(255 - 127 * 127 / 255)

    def test_multiply(self):
        assert blend_multiply(np.float32(200), np.float32(0)) == pytest.approx(0)
        assert blend_multiply(np.float32(200), np.float32(255)) == pytest.approx(200)
        assert blend_multiply(np.float32(200), np.float32(127.5)) == pytest.approx(100)

    def test_composite_scalar_and_map(self):
        base = np.full((2, 2, 3), 100, dtype=np.float32)
        top = np.full((2, 2, 3), 200, dtype=np.float32)
        assert np.allclose(composite(base, top, 0.25), 125)
        alpha = np.array([[0.0, 1.0], [0.5, 0.0]], dtype=np.float32)
        result = composite(base, top, alpha)
        assert np.allclose(result[0, 0], 100)
        assert np.allclose(result[0, 1], 200)
        assert np.allclose(result[1, 0], 150)


class TestColorHelpers:
    def test_luminance_range(self):
        rgb = np.array([[[0, 0, 0], [255, 255, 255]]], dtype=np.float32)
        assert np.allclose(luminance(rgb), [[0.0, 1.0]])

    def test_parse_color(self):
        assert parse_color("#ff8000") == (255, 128, 0)
        assert parse_color("white") == (255, 255, 255)

    def test_parse_color_fallback(self):
        assert parse_color("not-a-colour", fallback="#000000") == (0, 0, 0)
        assert parse_color("not-a-colour", fallback=None) is None
