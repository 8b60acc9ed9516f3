# IO package initialization
from .image_loader import (
    load_image,
    decode_image,
    is_supported_file,
    SUPPORTED_EXTENSIONS,
)
from .image_saver import (
    save_image,
    encode_jpeg,
)

__all__ = [
    'load_image',
    'decode_image',
    'is_supported_file',
    'SUPPORTED_EXTENSIONS',
    'save_image',
    'encode_jpeg',
]
