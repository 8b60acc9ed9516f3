import pytest
import numpy as np

from mass_editor.processing.manual_settings import EffectiveParameters
from mass_editor.processing.photo_presets import Preset, parse_filter_string
from mass_editor.processing.pixel_buffer import PixelBuffer


@pytest.fixture
def sample_image_uint8():
    """Returns a simple 100x100 uint8 RGB image."""
    img = np.zeros((100, 100, 3), dtype=np.uint8)
    img[:50, :50] = [255, 0, 0]    # Red quadrant
    img[:50, 50:] = [0, 255, 0]    # Green quadrant
    img[50:, :50] = [0, 0, 255]    # Blue quadrant
    img[50:, 50:] = [255, 255, 0]  # Yellow quadrant
    return img


@pytest.fixture
def sample_buffer(sample_image_uint8):
    return PixelBuffer.from_array(sample_image_uint8)


@pytest.fixture
def portrait_buffer():
    """64x64 image with a skin-toned block, a blue background and some texture."""
    rng = np.random.default_rng(7)
    img = np.empty((64, 64, 3), dtype=np.uint8)
    img[...] = [60, 90, 160]
    img[16:48, 16:48] = [200, 150, 110]
    noise = rng.integers(-12, 13, size=img.shape)
    img = np.clip(img.astype(np.int32) + noise, 0, 255).astype(np.uint8)
    return PixelBuffer.from_array(img)


@pytest.fixture
def solid_buffer():
    """Factory for a uniform buffer: solid_buffer((r, g, b), width, height)."""
    def make(rgb, width=4, height=4):
        return PixelBuffer.filled(width, height, tuple(rgb) + (255,))
    return make


@pytest.fixture
def make_params():
    """Factory resolving effective parameters from a filter string and camelCase manual settings."""
    def make(filters="", preset=None, **manual):
        if preset is None:
            preset = Preset(id="test", name="Test", filters=parse_filter_string(filters))
        return EffectiveParameters.resolve(preset, manual)
    return make


@pytest.fixture
def identity_curve():
    """Returns identity curve points."""
    return [[0, 0], [255, 255]]


@pytest.fixture
def sample_curve():
    """Returns a simple S-curve."""
    return [[0, 0], [64, 48], [128, 128], [192, 207], [255, 255]]
