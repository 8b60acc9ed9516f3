# Image import functionality using Pillow
import io
import os

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..processing.pixel_buffer import PixelBuffer
from ..utils.errors import DecodeFailure
from ..utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tif', '.tiff', '.bmp', '.webp')


def _to_buffer(img, source):
    """Orients a Pillow image by its EXIF tag and converts it to an RGBA PixelBuffer."""
    img_oriented = ImageOps.exif_transpose(img)

    if img_oriented.info.get('icc_profile'):
        logger.debug("Embedded ICC profile in '%s' is ignored; pixels are treated as sRGB.", source)

    if img_oriented.mode != 'RGBA':
        logger.debug("Converting image from mode '%s' to 'RGBA'.", img_oriented.mode)
        img_rgba = img_oriented.convert('RGBA')
    else:
        img_rgba = img_oriented

    image_np = np.array(img_rgba, dtype=np.uint8)
    if image_np.size == 0:
        raise DecodeFailure(f"Decoded image is empty: '{source}'")
    return PixelBuffer.from_array(image_np)


def load_image(file_path) -> PixelBuffer:
    """Loads an image file into a PixelBuffer, applying EXIF orientation.

    Args:
        file_path (str): The path to the image file.

    Returns:
        PixelBuffer: The decoded RGBA image.

    Raises:
        DecodeFailure: The file is missing, unreadable or not a supported image.
    """
    if not isinstance(file_path, (str, os.PathLike)) or not str(file_path):
        raise DecodeFailure(f"Invalid file path provided: {file_path!r}")
    if not os.path.isfile(file_path):
        raise DecodeFailure(f"File not found at '{file_path}'", file_path=str(file_path),
                            user_message="File not found.")

    try:
        with Image.open(file_path) as img:
            img.load()
            buffer = _to_buffer(img, file_path)
    except DecodeFailure:
        raise
    except UnidentifiedImageError as e:
        raise DecodeFailure(f"Pillow could not identify image file format or file is corrupted: '{file_path}'",
                            file_path=str(file_path), original_error=e) from e
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeFailure(f"Error loading image '{file_path}': {e}",
                            file_path=str(file_path), original_error=e) from e

    logger.debug("Loaded and oriented image: '%s' (%dx%d)", file_path, buffer.width, buffer.height)
    return buffer


def decode_image(data: bytes) -> PixelBuffer:
    """Decodes encoded image bytes (JPEG, PNG, ...) into a PixelBuffer.

    Raises:
        DecodeFailure: The bytes are not a readable image.
    """
    if not data:
        raise DecodeFailure("Cannot decode empty image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _to_buffer(img, "<bytes>")
    except DecodeFailure:
        raise
    except UnidentifiedImageError as e:
        raise DecodeFailure("Image data is not in a recognised format", original_error=e) from e
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeFailure(f"Image data is corrupt: {e}", original_error=e) from e


def is_supported_file(file_path):
    return os.path.splitext(str(file_path))[1].lower() in SUPPORTED_EXTENSIONS
