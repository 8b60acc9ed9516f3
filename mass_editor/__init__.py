"""Preset-driven photo editing pipeline."""

__version__ = "1.0.0"

# processing first: it pulls in io once its own modules are importable
from .processing import (
    PixelBuffer,
    Preset,
    PhotoPresetManager,
    ManualSettings,
    Section,
    process_image,
    render,
    process_batch,
)
from .utils.errors import DecodeFailure, EncodeFailure, InvalidParameter

__all__ = [
    'PixelBuffer',
    'Preset',
    'PhotoPresetManager',
    'ManualSettings',
    'Section',
    'process_image',
    'render',
    'process_batch',
    'DecodeFailure',
    'EncodeFailure',
    'InvalidParameter',
]
