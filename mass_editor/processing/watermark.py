import functools

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .manual_settings import EffectiveParameters, Section
from .pixel_buffer import PixelBuffer
from ..utils.imaging import parse_color
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Bold sans faces tried in order before Pillow's built-in font
FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf", "LiberationSans-Bold.ttf")
FONT_CACHE_SIZE = 16


@functools.lru_cache(maxsize=FONT_CACHE_SIZE)
def _load_font_px(size):
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug("No bold TrueType font found, using Pillow's default font")
    return ImageFont.load_default(size=size)


def load_font(size):
    """Loads a bold sans-serif font at the given pixel size (rounded), with a bounded cache."""
    return _load_font_px(max(1, int(round(size))))


def apply_watermark(buffer: PixelBuffer, params: EffectiveParameters) -> PixelBuffer:
    """
    Draws the watermark text bottom-right with a soft drop shadow.

    Font size is ``width / 100 * watermark_size``; the text's right/bottom edge
    sits one font size in from the image edges.
    """
    text = params.watermark_text
    if not params.is_enabled(Section.WATERMARK):
        logger.debug("Watermark stage skipped (watermark disabled)")
        return buffer
    if not text or params.watermark_opacity <= 0:
        return buffer

    font_size = buffer.width / 100.0 * params.watermark_size
    font = load_font(font_size)
    color = parse_color(params.watermark_color, fallback="#ffffff")
    opacity = params.watermark_opacity
    anchor_xy = (buffer.width - font_size, buffer.height - font_size)

    base = Image.fromarray(buffer.data)

    shadow = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(anchor_xy, text, font=font, anchor="rd",
                                fill=(0, 0, 0, int(round(127.5 * opacity))))
    shadow = shadow.filter(ImageFilter.GaussianBlur(font_size / 10.0))

    label = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(label).text(anchor_xy, text, font=font, anchor="rd",
                               fill=color + (int(round(255 * opacity)),))

    result = Image.alpha_composite(Image.alpha_composite(base, shadow), label)
    logger.debug("Watermark: %r size=%.1fpx opacity=%.2f", text, font_size, opacity)
    return PixelBuffer.from_array(np.asarray(result, dtype=np.uint8))
