import numpy as np
import cv2
from PIL import ImageColor

from .errors import InvalidParameter
from .logger import get_logger

logger = get_logger(__name__)

# Rec.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def to_float(channels):
    """Returns a float32 copy of uint8 channel data (0-255 range)."""
    return np.asarray(channels, dtype=np.float32).copy()


def to_uint8(channels):
    """
    Clamps float channel data to [0, 255] and quantizes it to uint8.

    Rounding is round-half-up (``floor(x + 0.5)``), applied once per stage so
    that repeated runs on the same input are bit-identical.
    """
    return np.floor(np.clip(channels, 0.0, 255.0) + 0.5).astype(np.uint8)


def luminance(rgb_float):
    """Per-pixel luma in [0, 1] for float RGB data (0-255)."""
    return (rgb_float @ LUMA_WEIGHTS) / 255.0


def blend_screen(base, top):
    """screen(a, b) = 255 - (255 - a)(255 - b) / 255"""
    return 255.0 - (255.0 - base) * (255.0 - top) / 255.0


def blend_multiply(base, top):
    """multiply(a, b) = a * b / 255"""
    return base * top / 255.0


def composite(base, blended, alpha):
    """Source-over of an already blended layer at the given alpha (scalar or HxW)."""
    alpha = np.asarray(alpha, dtype=np.float32)
    if alpha.ndim == 2:
        alpha = alpha[..., np.newaxis]
    return base * (1.0 - alpha) + blended * alpha


def parse_color(value, fallback="#ffffff"):
    """
    Parses a CSS colour string into an (r, g, b) tuple.

    Unparseable colours fall back to ``fallback`` with a warning; a fallback of
    None returns None.
    """
    try:
        return ImageColor.getrgb(value)[:3]
    except (ValueError, AttributeError, TypeError):
        logger.warning("Invalid colour %r, using %s.", value, fallback)
        if fallback is None:
            return None
        return ImageColor.getrgb(fallback)[:3]


def apply_curve(image_channel, curve_points):
    """
    Applies a tone curve defined by points to uint8 image data.

    Args:
        image_channel: NumPy uint8 array (any shape, every value is mapped).
        curve_points: List or array of [x, y] points within 0-255.

    Returns:
        uint8 NumPy array with the curve applied. Identity curves return a copy.
    """
    if image_channel is None or image_channel.size == 0:
        return image_channel
    if image_channel.dtype != np.uint8:
        raise TypeError(f"apply_curve expects uint8 input, got {image_channel.dtype}")
    if curve_points is None:
        return image_channel.copy()

    points_np = np.array(sorted(curve_points), dtype=np.float32)
    if points_np.ndim != 2 or points_np.shape[1] != 2 or points_np.shape[0] == 0:
        raise InvalidParameter(f"Invalid curve points: {curve_points!r}", setting_name="curve")

    # Ensure curve spans 0-255
    if points_np[0, 0] > 0:
        points_np = np.vstack(([0, points_np[0, 1]], points_np))
    if points_np[-1, 0] < 255:
        points_np = np.vstack((points_np, [255, points_np[-1, 1]]))

    lut_x = np.arange(256, dtype=np.float32)
    lut_y = np.interp(lut_x, points_np[:, 0], points_np[:, 1])
    lut = to_uint8(lut_y)
    return cv2.LUT(np.ascontiguousarray(image_channel), lut)
