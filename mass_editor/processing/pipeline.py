"""
Orchestrates one editing run: decode, resolve parameters, run the stages in
their fixed order, encode.
"""

import os
import time
from typing import Optional, Union

import numpy as np

from .adjustments import (
    apply_base_filter, apply_detail, apply_grading, apply_presence, apply_tone, apply_vibrance,
)
from .blur import BlurCache
from .effects import apply_effects
from .manual_settings import EffectiveParameters, ManualSettings
from .photo_presets import Preset
from .pixel_buffer import PixelBuffer
from .retouch import apply_retouch
from .subject_mask import Segmenter, SubjectMask, select_subject_mask
from .watermark import apply_watermark
from ..io.image_loader import decode_image, load_image
from ..io.image_saver import encode_jpeg
from ..utils.errors import InvalidParameter
from ..utils.logger import get_logger

logger = get_logger(__name__)

ImageSource = Union[PixelBuffer, bytes, str, os.PathLike]


def to_pixel_buffer(image: ImageSource) -> PixelBuffer:
    """Accepts a PixelBuffer, encoded bytes or a file path."""
    if isinstance(image, PixelBuffer):
        return image
    if isinstance(image, (bytes, bytearray, memoryview)):
        return decode_image(bytes(image))
    if isinstance(image, (str, os.PathLike)):
        return load_image(image)
    if isinstance(image, np.ndarray):
        return PixelBuffer.from_array(image)
    raise InvalidParameter(f"Unsupported image input of type {type(image).__name__}", setting_name="image")


def render(image: ImageSource,
           preset: Optional[Preset] = None,
           manual: Union[ManualSettings, dict, None] = None,
           *,
           segmenter: Optional[Segmenter] = None,
           subject_mask: Optional[np.ndarray] = None) -> PixelBuffer:
    """
    Runs every stage on the image and returns the edited buffer.

    Args:
        image: PixelBuffer, encoded image bytes or a file path.
        preset: Preset to apply. Defaults to the identity preset.
        manual: ManualSettings or a camelCase dict of overrides.
        segmenter: Optional person-segmentation collaborator. Only called when
            the preset asks for a subject mask.
        subject_mask: Precomputed boolean HxW subject mask. Takes precedence
            over the segmenter.

    Raises:
        DecodeFailure: The source image could not be decoded.
        InvalidParameter: A setting has no safe interpretation.
    """
    start_time = time.perf_counter()
    buffer = to_pixel_buffer(image)
    params = EffectiveParameters.resolve(preset, manual)
    source = buffer

    segmentation = subject_mask
    if segmentation is None and segmenter is not None and params.wants_segmentation:
        logger.debug("Requesting subject segmentation")
        segmentation = segmenter.segment(source)

    buffer = apply_tone(buffer, params)
    buffer = apply_base_filter(buffer, params)
    blur_cache = BlurCache(buffer)
    buffer = apply_detail(buffer, params, blur_cache)
    buffer = apply_presence(buffer, params, blur_cache)
    buffer = apply_vibrance(buffer, params)
    mask_strategy: SubjectMask = select_subject_mask(segmentation, params.ai_subject_only)
    buffer = apply_retouch(buffer, params, blur_cache, mask_strategy)
    buffer = apply_grading(buffer, params)
    buffer = apply_effects(buffer, params, segmentation)
    buffer = apply_watermark(buffer, params)

    logger.info("Rendered %dx%d image with preset '%s' in %.3fs (%d blur radii computed)",
                buffer.width, buffer.height, (preset or Preset.default()).id,
                time.perf_counter() - start_time, len(blur_cache))
    return buffer


def process_image(image: ImageSource,
                  preset: Optional[Preset] = None,
                  manual: Union[ManualSettings, dict, None] = None,
                  *,
                  segmenter: Optional[Segmenter] = None,
                  subject_mask: Optional[np.ndarray] = None,
                  quality: Optional[int] = None) -> bytes:
    """
    Edits one image and returns it JPEG-encoded (quality 95 unless given).

    All or nothing: any failure raises and no partial output is produced.

    Raises:
        DecodeFailure, InvalidParameter, EncodeFailure
    """
    result = render(image, preset, manual, segmenter=segmenter, subject_mask=subject_mask)
    return encode_jpeg(result, quality)
