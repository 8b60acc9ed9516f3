import math

import numpy as np
import cv2

from .pixel_buffer import PixelBuffer
from ..utils.errors import InvalidParameter
from ..utils.imaging import to_uint8
from ..utils.logger import get_logger

logger = get_logger(__name__)


def gaussian_blur_float(rgb_float, radius):
    """
    Gaussian blur of float32 HxWx3 data with standard deviation = radius.

    Borders are reflected. Returns a new float32 array; radius <= 0 returns a copy.
    """
    if radius <= 0:
        return rgb_float.copy()
    # 3 sigma either side covers >99.7% of the kernel weight
    ksize = int(math.ceil(radius * 3)) * 2 + 1
    return cv2.GaussianBlur(
        np.ascontiguousarray(rgb_float, dtype=np.float32), (ksize, ksize),
        sigmaX=radius, sigmaY=radius, borderType=cv2.BORDER_REFLECT_101,
    )


def blur(buffer: PixelBuffer, radius: float) -> PixelBuffer:
    """
    Returns a blurred copy of the buffer. Alpha passes through unchanged.

    Args:
        buffer: Source PixelBuffer (not modified).
        radius: Blur radius in px, used as the Gaussian standard deviation.
            Negative radii are clamped to 0.
    """
    try:
        radius = float(radius)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"Blur radius must be a number, got {radius!r}", setting_name="radius") from e
    if not math.isfinite(radius):
        raise InvalidParameter(f"Blur radius must be finite, got {radius}", setting_name="radius")
    if radius < 0:
        logger.warning("Negative blur radius %.2f clamped to 0.", radius)
        radius = 0.0
    if radius == 0:
        return buffer.copy()

    blurred = gaussian_blur_float(buffer.rgb.astype(np.float32), radius)
    return buffer.with_rgb(to_uint8(blurred))


class BlurCache:
    """
    Blurred copies of one run's base buffer, computed lazily and cached by radius.

    The base is snapshotted on construction, so later stages may replace the
    working buffer without affecting cached results.
    """
    def __init__(self, base: PixelBuffer):
        self._base = base.copy()
        self._cache = {}

    def get(self, radius) -> PixelBuffer:
        key = float(radius)
        if key not in self._cache:
            logger.debug("BlurCache miss for radius %.2f px", key)
            self._cache[key] = blur(self._base, key)
        return self._cache[key]

    def get_rgb(self, radius):
        """float32 RGB view of the blurred buffer at the given radius."""
        return self.get(radius).rgb.astype(np.float32)

    def __contains__(self, radius):
        return float(radius) in self._cache

    def __len__(self):
        return len(self._cache)
