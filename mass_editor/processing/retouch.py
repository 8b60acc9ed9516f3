"""
Skin-aware retouching: soft blend toward the frequency-separation blur plus
luminance-keyed dodge & burn, applied to subject pixels only.
"""

import numpy as np

from .manual_settings import EffectiveParameters, Section
from .pixel_buffer import PixelBuffer
from .subject_mask import HeuristicSkinMask, SubjectMask
from ..config import settings
from ..utils.imaging import to_float, to_uint8
from ..utils.logger import get_logger

logger = get_logger(__name__)

ENGINE = settings.ENGINE_DEFAULTS


def retouch_blend(skin_softening, texture):
    """Blend factor toward the wide blur, clamped to [0, 1]."""
    blend = (skin_softening * ENGINE["skin_softening_weight"] + max(0.0, -texture)) * ENGINE["retouch_blend_scale"]
    return min(max(blend, 0.0), 1.0)


def dodge_burn(rgb, amount):
    """Brightens pixels above mid-gray and darkens those below, by their channel average."""
    avg = rgb.mean(axis=-1)
    boost = 1.0 + (avg - 128.0) / 128.0 * amount * ENGINE["dodge_burn_scale"]
    return rgb * boost[..., np.newaxis]


def apply_retouch(buffer: PixelBuffer, params: EffectiveParameters, blur_cache,
                  subject_mask: SubjectMask = None) -> PixelBuffer:
    """
    Args:
        buffer: Working buffer.
        params: Effective parameters of the run.
        blur_cache: BlurCache of the run; the blur at ``params.fs_radius`` is used.
        subject_mask: Classification strategy. Defaults to the skin heuristic.
    """
    if not params.is_enabled(Section.RETOUCH):
        logger.debug("Retouch stage skipped (retouch disabled)")
        return buffer

    blend = retouch_blend(params.skin_softening, params.texture)
    if blend == 0 and params.dodge_burn <= 0:
        return buffer

    subject_mask = subject_mask or HeuristicSkinMask()
    rgb = to_float(buffer.rgb)
    mask = subject_mask.classify(rgb)
    if not mask.any():
        logger.debug("Retouch: no subject pixels found")
        return buffer

    subject = rgb[mask]
    if blend > 0:
        fs_blur = blur_cache.get_rgb(params.fs_radius)[mask]
        subject = subject * (1.0 - blend) + fs_blur * blend
    if params.dodge_burn > 0:
        subject = dodge_burn(subject, params.dodge_burn)
    rgb[mask] = subject

    logger.debug("Retouch: blend=%.3f dodge_burn=%.2f on %d subject pixels (%s)",
                 blend, params.dodge_burn, int(mask.sum()), type(subject_mask).__name__)
    return buffer.with_rgb(to_uint8(rgb))
