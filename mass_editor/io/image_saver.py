# Export functionality using Pillow
import io
import os

from PIL import Image

from ..config import settings
from ..processing.pixel_buffer import PixelBuffer
from ..utils.errors import EncodeFailure
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _quality(quality):
    if quality is None:
        quality = settings.EXPORT_DEFAULTS["jpeg_quality"]
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise EncodeFailure(f"Invalid type for quality parameter: expected int, got {type(quality).__name__}")
    return max(1, min(100, quality))  # Clamp quality 1-100 for Pillow JPEG


def _to_rgb_image(buffer):
    # JPEG has no alpha channel
    return Image.fromarray(buffer.rgb.copy())


def encode_jpeg(buffer: PixelBuffer, quality=None) -> bytes:
    """Encodes the buffer as JPEG bytes (alpha is dropped).

    Raises:
        EncodeFailure: The image could not be serialized.
    """
    quality = _quality(quality)
    output = io.BytesIO()
    try:
        _to_rgb_image(buffer).save(output, format='JPEG', quality=quality, optimize=True, subsampling=0)
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"JPEG encoding failed: {e}", original_error=e) from e
    data = output.getvalue()
    logger.debug("Encoded %dx%d image to %d JPEG bytes (quality %d)", buffer.width, buffer.height, len(data), quality)
    return data


def save_image(buffer: PixelBuffer, file_path, quality=None, png_compression=3):
    """Saves the buffer to the given path; the format follows the file extension.

    Args:
        buffer (PixelBuffer): The image to save.
        file_path (str): The full path, including extension (.jpg, .png, .tif, .webp).
        quality (int): JPEG/WebP quality (1-100).
        png_compression (int): Compression level for PNG (0-9).

    Raises:
        EncodeFailure: The directory could not be created or the image could not be written.
    """
    if not file_path:
        raise EncodeFailure("Invalid file path provided for saving.")
    quality = _quality(quality)

    # Create the output directory if it doesn't exist
    output_dir = os.path.dirname(file_path)
    if output_dir and not os.path.exists(output_dir):
        try:
            os.makedirs(output_dir)
            logger.info("Created output directory: %s", output_dir)
        except OSError as e:
            raise EncodeFailure(f"Could not create directory '{output_dir}': {e}",
                                file_path=file_path, original_error=e) from e

    save_kwargs = {}
    ext = os.path.splitext(file_path)[1].lower()
    if ext in ('.jpg', '.jpeg'):
        img = _to_rgb_image(buffer)
        save_kwargs['quality'] = quality
        save_kwargs['optimize'] = True
        save_kwargs['subsampling'] = 0  # 4:4:4 chroma
        save_kwargs['progressive'] = True
    elif ext == '.png':
        img = Image.fromarray(buffer.data)
        save_kwargs['compress_level'] = max(0, min(9, png_compression))
    elif ext == '.webp':
        img = Image.fromarray(buffer.data)
        save_kwargs['quality'] = quality
    else:
        img = Image.fromarray(buffer.data)

    try:
        img.save(file_path, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        logger.exception("Error saving image to '%s'", file_path)
        raise EncodeFailure(f"Error saving image to '{file_path}': {e}",
                            file_path=file_path, original_error=e) from e
    logger.info("Successfully saved image to: '%s'", file_path)
    return True
