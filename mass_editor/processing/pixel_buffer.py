"""
RGBA pixel buffer passed between pipeline stages.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..utils.errors import InvalidParameter


@dataclass
class PixelBuffer:
    """
    Dense row-major RGBA8 image.

    ``data`` has shape (height, width, 4) and dtype uint8, so the flat length is
    width * height * 4. A buffer is owned by whichever stage currently holds it.
    """
    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.data.dtype != np.uint8:
            raise InvalidParameter(f"PixelBuffer data must be uint8, got {self.data.dtype}", setting_name="image")
        if self.data.shape != (self.height, self.width, 4):
            raise InvalidParameter(
                f"PixelBuffer data shape {self.data.shape} does not match {self.width}x{self.height}x4",
                setting_name="image",
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Builds a buffer from gray (HxW), RGB (HxWx3) or RGBA (HxWx4) uint8 data.

        Missing alpha is filled with 255.
        """
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise InvalidParameter(f"Expected uint8 image data, got {array.dtype}", setting_name="image")
        if array.ndim == 2:
            array = np.repeat(array[..., np.newaxis], 3, axis=2)
        if array.ndim != 3 or array.shape[2] not in (3, 4) or array.shape[0] == 0 or array.shape[1] == 0:
            raise InvalidParameter(f"Unsupported image shape {array.shape}", setting_name="image")
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        height, width = array.shape[:2]
        return cls(width=width, height=height, data=np.ascontiguousarray(array).copy())

    @classmethod
    def filled(cls, width: int, height: int, rgba: Sequence[int]) -> "PixelBuffer":
        """A buffer where every pixel has the given RGBA value."""
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(width=width, height=height, data=data)

    @property
    def rgb(self) -> np.ndarray:
        """View of the colour channels (HxWx3)."""
        return self.data[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel (HxW)."""
        return self.data[..., 3]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    def with_rgb(self, rgb: np.ndarray) -> "PixelBuffer":
        """New buffer with the given uint8 colour channels and this buffer's alpha."""
        data = np.empty_like(self.data)
        data[..., :3] = rgb
        data[..., 3] = self.data[..., 3]
        return PixelBuffer(self.width, self.height, data)
