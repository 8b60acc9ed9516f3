# Image adjustment operations
import math

import numpy as np

from .blur import gaussian_blur_float
from .manual_settings import EffectiveParameters, Section
from .pixel_buffer import PixelBuffer
from ..config import settings
from ..utils.errors import InvalidParameter
from ..utils.imaging import LUMA_WEIGHTS, apply_curve, luminance, parse_color, to_float, to_uint8
from ..utils.logger import get_logger

logger = get_logger(__name__)

ENGINE = settings.ENGINE_DEFAULTS


def _apply_matrix(rgb, matrix):
    """Applies a 3x3 colour matrix to float HxWx3 data."""
    return rgb @ np.asarray(matrix, dtype=np.float32).T


# --- Filter Effects colour matrices ---
def saturate_matrix(amount):
    s = amount
    return [
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ]


def hue_rotate_matrix(degrees):
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return [
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ]


def sepia_matrix(amount):
    m = 1.0 - min(max(amount, 0.0), 1.0)
    return [
        [0.393 + 0.607 * m, 0.769 - 0.769 * m, 0.189 - 0.189 * m],
        [0.349 - 0.349 * m, 0.686 + 0.314 * m, 0.168 - 0.168 * m],
        [0.272 - 0.272 * m, 0.534 - 0.534 * m, 0.131 + 0.869 * m],
    ]


def grayscale_matrix(amount):
    m = 1.0 - min(max(amount, 0.0), 1.0)
    return [
        [0.2126 + 0.7874 * m, 0.7152 - 0.7152 * m, 0.0722 - 0.0722 * m],
        [0.2126 - 0.2126 * m, 0.7152 + 0.2848 * m, 0.0722 - 0.0722 * m],
        [0.2126 - 0.2126 * m, 0.7152 - 0.7152 * m, 0.0722 + 0.9278 * m],
    ]


# --- Basic Adjustments ---
class ImageAdjustments:
    """Basic adjustment primitives on float32 RGB data (0-255, unclamped)."""

    @staticmethod
    def adjust_white_balance(rgb, temp, tint):
        """Warm/cool along red-blue, magenta/green along the green channel."""
        if temp == 0 and tint == 0:
            return rgb
        result = rgb.copy()
        result[..., 0] += 0.5 * temp + 0.25 * tint
        result[..., 1] -= 0.5 * tint
        result[..., 2] += -0.5 * temp + 0.25 * tint
        return result

    @staticmethod
    def adjust_exposure(rgb, factor):
        if factor == 1:
            return rgb
        return rgb * factor

    @staticmethod
    def adjust_blacks(rgb, blacks):
        offset = (blacks - 1.0) * ENGINE["blacks_offset_scale"]
        if offset == 0:
            return rgb
        return rgb + offset

    @staticmethod
    def adjust_highlights_shadows(rgb, highlights, shadows):
        """Scales bright pixels by ``highlights`` and dark pixels by ``shadows``, weighted by luma."""
        if highlights == 1 and shadows == 1:
            return rgb
        lum = luminance(rgb)
        highlight_weight = np.clip(2.0 * lum - 1.0, 0.0, 1.0)
        shadow_weight = np.clip(1.0 - 2.0 * lum, 0.0, 1.0)
        factor = 1.0 + (highlights - 1.0) * highlight_weight + (shadows - 1.0) * shadow_weight
        return rgb * factor[..., np.newaxis]

    @staticmethod
    def adjust_dehaze(rgb, amount):
        if amount == 0:
            return rgb
        factor = 1.0 + ENGINE["dehaze_contrast_scale"] * amount
        return (rgb - 128.0) * factor + 128.0 + ENGINE["dehaze_lift"] * amount

    @staticmethod
    def adjust_brightness(rgb, amount):
        return rgb * amount

    @staticmethod
    def adjust_contrast(rgb, amount):
        return (rgb / 255.0 - 0.5) * amount * 255.0 + 127.5

    @staticmethod
    def adjust_saturation(rgb, amount):
        return _apply_matrix(rgb, saturate_matrix(amount))

    @staticmethod
    def adjust_sepia(rgb, amount):
        return _apply_matrix(rgb, sepia_matrix(amount))

    @staticmethod
    def adjust_hue(rgb, degrees):
        if degrees % 360 == 0:
            return rgb
        return _apply_matrix(rgb, hue_rotate_matrix(degrees))

    @staticmethod
    def adjust_grayscale(rgb, amount):
        return _apply_matrix(rgb, grayscale_matrix(amount))

    @staticmethod
    def adjust_levels(rgb, in_black, in_white):
        if in_black == 0 and in_white == 255:
            return rgb
        if in_white <= in_black:
            raise InvalidParameter(f"Levels white point {in_white} must exceed black point {in_black}",
                                   setting_name="levels")
        return (rgb - in_black) / (in_white - in_black) * 255.0


def _tint_chroma(color):
    """Tint minus its own luma; all zeros for a neutral colour."""
    tint = np.asarray(color, dtype=np.float32)
    shift = tint - float(tint @ LUMA_WEIGHTS)
    shift[np.abs(shift) < 1e-3] = 0.0
    return shift


def _split_tone_color(value):
    """Parsed tint colour, or None when unset, invalid or neutral."""
    if not value:
        return None
    color = parse_color(value, fallback=None)
    if color is None or not _tint_chroma(color).any():
        return None
    return color


class AdvancedAdjustments:
    """Adjustments that need a blurred copy, a colour model or a tone curve."""

    @staticmethod
    def unsharp_mask(rgb, blurred, intensity):
        if intensity == 0:
            return rgb
        return rgb + (rgb - blurred) * intensity

    @staticmethod
    def adjust_vibrance(rgb, vibrance):
        """
        HSL vibrance: boosts saturation of muted pixels more than saturated ones.

        Gray pixels (r == g == b) are left unchanged for any value.
        """
        if vibrance == 1:
            return rgb
        cmax = rgb.max(axis=2)
        cmin = rgb.min(axis=2)
        total = cmax + cmin
        chroma = cmax - cmin
        lightness = total / 510.0

        denom = np.where(lightness > 0.5, 510.0 - total, total)
        sat = np.divide(chroma, denom, out=np.zeros_like(chroma), where=(chroma > 0) & (denom > 0))

        v_factor = 1.0 + (1.0 - sat) * (vibrance - 1.0)
        center = (lightness * 255.0)[..., np.newaxis]
        return center + (rgb - center) * v_factor[..., np.newaxis]

    @staticmethod
    def tone_curve_points(tone_curve):
        """Control points of the four-region parametric curve, or None for identity."""
        if tone_curve is None:
            return None
        offsets = (tone_curve.shadows, tone_curve.darks, tone_curve.lights, tone_curve.highlights)
        if not any(offsets):
            return None
        anchors = (32, 96, 160, 224)
        points = [[0, 0]]
        points += [[x, min(max(x + offset, 0), 255)] for x, offset in zip(anchors, offsets)]
        points.append([255, 255])
        return points

    @staticmethod
    def s_curve_points(strength):
        """S-shaped contrast curve; negative strength flattens."""
        if strength == 0:
            return None
        return [[0, 0], [64, 64 - 32 * strength], [192, 192 + 32 * strength], [255, 255]]

    @staticmethod
    def split_tone(rgb, shadow_color, highlight_color, strength):
        """
        Shifts shadows (weight 1-l) and highlights (weight l) by each tint's
        chroma, i.e. the tint minus its own luma. Neutral tints (black, white,
        any gray) are no-ops.
        """
        if shadow_color is None and highlight_color is None:
            return rgb
        lum = np.clip(luminance(rgb), 0.0, 1.0)[..., np.newaxis]
        result = rgb
        if shadow_color is not None:
            shift = _tint_chroma(shadow_color)
            if shift.any():
                result = result + shift * (strength * (1.0 - lum))
        if highlight_color is not None:
            shift = _tint_chroma(highlight_color)
            if shift.any():
                result = result + shift * (strength * lum)
        return result


# --- Pipeline stages ---
# Each stage takes the working PixelBuffer and returns a new one, keeping alpha.

def apply_tone(buffer: PixelBuffer, params: EffectiveParameters) -> PixelBuffer:
    """White balance, exposure/whites, blacks, highlights/shadows and dehaze."""
    if not params.is_enabled(Section.BASIC):
        logger.debug("Tone stage skipped (basic disabled)")
        return buffer
    rgb = to_float(buffer.rgb)
    rgb = ImageAdjustments.adjust_white_balance(rgb, params.temp, params.tint)
    rgb = ImageAdjustments.adjust_exposure(rgb, params.exposure * params.whites)
    rgb = ImageAdjustments.adjust_blacks(rgb, params.blacks)
    rgb = ImageAdjustments.adjust_highlights_shadows(rgb, params.highlights, params.shadows)
    rgb = ImageAdjustments.adjust_dehaze(rgb, params.dehaze)
    logger.debug("Tone: temp=%.2f tint=%.2f exposure=%.2f whites=%.2f blacks=%.2f dehaze=%.2f",
                 params.temp, params.tint, params.exposure, params.whites, params.blacks, params.dehaze)
    return buffer.with_rgb(to_uint8(rgb))


_FILTER_PRIMITIVES = {
    "brightness": ImageAdjustments.adjust_brightness,
    "contrast": ImageAdjustments.adjust_contrast,
    "saturate": ImageAdjustments.adjust_saturation,
    "sepia": ImageAdjustments.adjust_sepia,
    "hue-rotate": ImageAdjustments.adjust_hue,
    "grayscale": ImageAdjustments.adjust_grayscale,
    "blur": gaussian_blur_float,
}


def apply_base_filter(buffer: PixelBuffer, params: EffectiveParameters) -> PixelBuffer:
    """Applies the filter recipe in order. Runs regardless of disabled sections."""
    ops = [op for op in params.filters if not op.is_identity()]
    if not ops:
        return buffer
    rgb = to_float(buffer.rgb)
    for op in ops:
        primitive = _FILTER_PRIMITIVES.get(op.operation)
        if primitive is None:
            raise InvalidParameter(f"Unsupported filter operation {op.operation!r}", setting_name="filters")
        rgb = np.clip(primitive(rgb, op.amount), 0.0, 255.0)
    logger.debug("Base filter: %s", " ".join(f"{op.operation}({op.amount:g})" for op in ops))
    return buffer.with_rgb(to_uint8(rgb))


def apply_detail(buffer: PixelBuffer, params: EffectiveParameters, blur_cache) -> PixelBuffer:
    """Unsharp mask at ``sharpen_radius``."""
    if not params.is_enabled(Section.DETAIL):
        logger.debug("Detail stage skipped (detail disabled)")
        return buffer
    if params.sharpness <= 0 or params.sharpen_radius <= 0:
        return buffer
    intensity = params.sharpness * (0.5 + params.sharpen_detail / 50.0)
    rgb = to_float(buffer.rgb)
    rgb = AdvancedAdjustments.unsharp_mask(rgb, blur_cache.get_rgb(params.sharpen_radius), intensity)
    logger.debug("Detail: radius=%.2f intensity=%.3f", params.sharpen_radius, intensity)
    return buffer.with_rgb(to_uint8(rgb))


def apply_presence(buffer: PixelBuffer, params: EffectiveParameters, blur_cache) -> PixelBuffer:
    """Texture (fine blur) and clarity (medium blur) local contrast, accumulated before one clamp."""
    if params.texture == 0 and params.clarity == 0:
        return buffer
    rgb = to_float(buffer.rgb)
    result = rgb.copy()
    if params.texture != 0:
        fine = blur_cache.get_rgb(ENGINE["fine_blur_radius"])
        result += (rgb - fine) * (params.texture * ENGINE["texture_gain"])
    if params.clarity != 0:
        medium = blur_cache.get_rgb(ENGINE["medium_blur_radius"])
        result += (rgb - medium) * (params.clarity * ENGINE["clarity_gain"])
    logger.debug("Presence: texture=%.2f clarity=%.2f", params.texture, params.clarity)
    return buffer.with_rgb(to_uint8(result))


def apply_vibrance(buffer: PixelBuffer, params: EffectiveParameters) -> PixelBuffer:
    if params.vibrance == 1:
        return buffer
    rgb = AdvancedAdjustments.adjust_vibrance(to_float(buffer.rgb), params.vibrance)
    logger.debug("Vibrance: %.2f", params.vibrance)
    return buffer.with_rgb(to_uint8(rgb))


def apply_grading(buffer: PixelBuffer, params: EffectiveParameters) -> PixelBuffer:
    """
    Colour grading: preset tone curve, S-curve, input levels, hue rotation and
    split toning, in that order.
    """
    if not params.is_enabled(Section.GRADING):
        logger.debug("Grading stage skipped (grading disabled)")
        return buffer

    shadow_color = _split_tone_color(params.tint_shadows)
    highlight_color = _split_tone_color(params.tint_highlights)
    tone_points = AdvancedAdjustments.tone_curve_points(params.tone_curve)
    s_points = AdvancedAdjustments.s_curve_points(params.curves)
    if (tone_points is None and s_points is None and params.levels_black == 0 and params.levels_white == 255
            and params.hue % 360 == 0 and shadow_color is None and highlight_color is None):
        return buffer

    # Curves are lookup tables on 8-bit data
    rgb_u8 = buffer.rgb
    if tone_points is not None:
        rgb_u8 = apply_curve(np.ascontiguousarray(rgb_u8), tone_points)
    if s_points is not None:
        rgb_u8 = apply_curve(np.ascontiguousarray(rgb_u8), s_points)

    rgb = to_float(rgb_u8)
    rgb = np.clip(ImageAdjustments.adjust_levels(rgb, params.levels_black, params.levels_white), 0.0, 255.0)
    rgb = np.clip(ImageAdjustments.adjust_hue(rgb, params.hue), 0.0, 255.0)
    rgb = AdvancedAdjustments.split_tone(rgb, shadow_color, highlight_color, ENGINE["split_tone_strength"])
    logger.debug("Grading: curves=%.2f levels=(%g, %g) hue=%g", params.curves,
                 params.levels_black, params.levels_white, params.hue)
    return buffer.with_rgb(to_uint8(rgb))
