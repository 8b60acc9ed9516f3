"""
Vignette, glow, light washes, subject bokeh, film grain and tonal overlays.
"""

import numpy as np
import cv2

from .blur import gaussian_blur_float
from .manual_settings import EffectiveParameters, Section
from .pixel_buffer import PixelBuffer
from .subject_mask import SegmentationMask
from ..config import settings
from ..utils.imaging import blend_multiply, blend_screen, composite, parse_color, to_float, to_uint8
from ..utils.logger import get_logger

logger = get_logger(__name__)

ENGINE = settings.ENGINE_DEFAULTS


class Effects:
    """Effect primitives on float32 RGB data (0-255)."""

    @staticmethod
    def vignette_alpha(width, height, amount):
        """
        Opacity of the black radial gradient per pixel.

        Transparent up to ``vignette_inner_stop`` of the gradient radius
        (0.8 * the larger side), ramping linearly to ``amount`` at the radius.
        """
        radius = ENGINE["vignette_radius_factor"] * max(width, height)
        inner = ENGINE["vignette_inner_stop"]
        # Pixel centres
        yy, xx = np.mgrid[0:height, 0:width].astype(np.float32) + 0.5
        dist = np.sqrt((xx - width / 2.0) ** 2 + (yy - height / 2.0) ** 2) / radius
        ramp = np.clip((dist - inner) / (1.0 - inner), 0.0, 1.0)
        return (ramp * amount).astype(np.float32)

    @staticmethod
    def apply_vignette(rgb, amount):
        if amount <= 0:
            return rgb
        height, width = rgb.shape[:2]
        return composite(rgb, 0.0, Effects.vignette_alpha(width, height, amount))

    @staticmethod
    def apply_glow(rgb, intensity, radius):
        """Screen blend of a blurred copy."""
        if intensity <= 0 or radius <= 0:
            return rgb
        blurred = gaussian_blur_float(rgb, radius)
        return composite(rgb, blend_screen(rgb, blurred), intensity)

    @staticmethod
    def apply_volumetric_light(rgb, intensity, color):
        """Warm light wash fading from the top edge to the bottom, screen blended."""
        if intensity <= 0:
            return rgb
        height, width = rgb.shape[:2]
        rows = (np.arange(height, dtype=np.float32) + 0.5) / height
        column_alpha = intensity * ENGINE["volumetric_scale"] * (1.0 - rows)
        alpha = np.broadcast_to(column_alpha[:, np.newaxis], (height, width))
        light = np.asarray(color, dtype=np.float32)
        return composite(rgb, blend_screen(rgb, light), alpha)

    @staticmethod
    def apply_subject_bokeh(rgb, subject, intensity):
        """Blends non-subject pixels toward a wide blur."""
        if intensity <= 0 or subject is None:
            return rgb
        blurred = gaussian_blur_float(rgb, ENGINE["bokeh_blur_radius"])
        background = (~subject).astype(np.float32) * intensity
        return composite(rgb, blurred, background)

    @staticmethod
    def apply_film_grain(rgb, amount, seed=None, size=None):
        """
        Adds monochrome grain. Low-res uniform noise is upscaled so grains span
        more than one pixel. Seeded, so repeated runs are identical.
        """
        if amount <= 0:
            return rgb
        seed = ENGINE["grain_seed"] if seed is None else seed
        scale = max(1.0, ENGINE["grain_size"] if size is None else size)
        height, width = rgb.shape[:2]
        low_res_w = max(1, int(width / scale))
        low_res_h = max(1, int(height / scale))

        rng = np.random.default_rng(seed)
        noise = rng.uniform(-0.5, 0.5, (low_res_h, low_res_w)).astype(np.float32)
        grain = cv2.resize(noise, (width, height), interpolation=cv2.INTER_LINEAR)
        return rgb + (grain * amount * ENGINE["grain_strength"])[..., np.newaxis]

    @staticmethod
    def apply_tonal_overlays(rgb, white_overlay, black_overlay):
        """White wash (screen) followed by black wash (multiply)."""
        if white_overlay > 0:
            rgb = composite(rgb, blend_screen(rgb, 255.0), white_overlay * ENGINE["white_overlay_scale"])
        if black_overlay > 0:
            rgb = composite(rgb, blend_multiply(rgb, 0.0), black_overlay)
        return rgb


def apply_effects(buffer: PixelBuffer, params: EffectiveParameters, segmentation=None) -> PixelBuffer:
    """
    Vignette always; everything else only while the effects section is enabled.

    Args:
        buffer: Working buffer.
        params: Effective parameters of the run.
        segmentation: Optional boolean HxW subject mask, needed by neural bokeh.
    """
    effects_enabled = params.is_enabled(Section.EFFECTS)
    overlay = params.overlay
    glow = params.glow if effects_enabled else None
    overlay_type = overlay.type if (overlay is not None and effects_enabled) else None

    nothing_to_do = (
        params.vignette <= 0
        and (not effects_enabled or (
            (glow is None or glow.intensity <= 0)
            and overlay_type not in ("volumetric", "neural-bokeh")
            and params.grain <= 0 and params.white_overlay <= 0 and params.black_overlay <= 0
        ))
    )
    if nothing_to_do:
        if not effects_enabled:
            logger.debug("Effects overlays skipped (effects disabled)")
        return buffer

    rgb = to_float(buffer.rgb)
    rgb = Effects.apply_vignette(rgb, params.vignette)

    if effects_enabled:
        if glow is not None:
            rgb = Effects.apply_glow(rgb, glow.intensity, glow.radius)
        if overlay_type == "volumetric":
            color = parse_color(overlay.color or ENGINE["volumetric_color"], fallback=ENGINE["volumetric_color"])
            rgb = Effects.apply_volumetric_light(rgb, overlay.intensity, color)
        elif overlay_type == "neural-bokeh":
            if segmentation is None:
                logger.info("Neural bokeh skipped: no segmentation mask available")
            else:
                subject = SegmentationMask(segmentation).classify(rgb)
                rgb = Effects.apply_subject_bokeh(rgb, subject, overlay.intensity)
        rgb = Effects.apply_film_grain(np.clip(rgb, 0.0, 255.0), params.grain)
        rgb = Effects.apply_tonal_overlays(np.clip(rgb, 0.0, 255.0), params.white_overlay, params.black_overlay)
    else:
        logger.debug("Effects overlays skipped (effects disabled)")

    logger.debug("Effects: vignette=%.2f grain=%.2f white=%.2f black=%.2f overlay=%s",
                 params.vignette, params.grain, params.white_overlay, params.black_overlay, overlay_type)
    return buffer.with_rgb(to_uint8(rgb))

