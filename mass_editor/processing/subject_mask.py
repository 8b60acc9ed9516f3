"""
Per-pixel "is this pixel part of the retouch subject" classification.

Two interchangeable strategies: a fast skin-colour heuristic, and a wrapper
around a mask produced by an external person-segmentation model.
"""

from abc import ABC, abstractmethod
from typing import Optional, Protocol

import numpy as np
import cv2

from .pixel_buffer import PixelBuffer
from ..utils.errors import InvalidParameter
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Segmenter(Protocol):
    """External collaborator returning a boolean HxW subject mask for an image."""
    def segment(self, buffer: PixelBuffer) -> np.ndarray:
        ...


class SubjectMask(ABC):
    """Interface for subject classification strategies."""

    @abstractmethod
    def classify(self, rgb: np.ndarray) -> np.ndarray:
        """
        Args:
            rgb: float32 HxWx3 array (0-255).

        Returns:
            Boolean HxW array, True for subject pixels.
        """


class HeuristicSkinMask(SubjectMask):
    """Classic RGB skin rule: r>95, g>40, b>20, r>g, r>b and |r-g|>15."""

    def classify(self, rgb):
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        return (
            (r > 95) & (g > 40) & (b > 20)
            & (r > g) & (r > b)
            & (np.abs(r - g) > 15)
        )


class SegmentationMask(SubjectMask):
    """Uses a precomputed segmentation mask, resized to the image if needed."""

    def __init__(self, mask):
        mask = np.asarray(mask)
        if mask.ndim != 2 or mask.size == 0:
            raise InvalidParameter(f"Segmentation mask must be a non-empty 2-D array, got shape {mask.shape}",
                                   setting_name="subject_mask")
        self.mask = mask.astype(bool)

    def classify(self, rgb):
        height, width = rgb.shape[:2]
        if self.mask.shape == (height, width):
            return self.mask
        logger.debug("Resizing segmentation mask %s to %dx%d", self.mask.shape, width, height)
        resized = cv2.resize(self.mask.astype(np.uint8), (width, height), interpolation=cv2.INTER_NEAREST)
        return resized.astype(bool)


def select_subject_mask(segmentation: Optional[np.ndarray], ai_subject_only: bool) -> SubjectMask:
    """The segmentation strategy when a mask exists and the preset asks for it, else the heuristic."""
    if segmentation is not None and ai_subject_only:
        return SegmentationMask(segmentation)
    return HeuristicSkinMask()
