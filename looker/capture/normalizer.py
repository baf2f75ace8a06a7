"""Keeps screenshots within the vision API's pixel and byte limits."""

from __future__ import annotations

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
# The API rejects images over 8000px on either axis; keep a 200px margin.
MAX_IMAGE_DIMENSION = 7800

INITIAL_QUALITY = 80
QUALITY_STEP = 10
QUALITY_FLOOR = 20
FALLBACK_QUALITY = 60
FALLBACK_SCALE = 0.7


def _encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def _encode_quantized(img: Image.Image, quality: int) -> bytes:
    """Lossy PNG: reduce the palette in proportion to quality (0-100)."""
    colors = max(2, min(256, round(256 * quality / 100)))
    quantized = img.convert("RGB").quantize(colors=colors)
    return _encode_png(quantized)


def normalize_image(
    data: bytes,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> bytes:
    """Return PNG bytes no larger than max_dimension per side and max_bytes in size.

    Oversized dimensions are scaled down uniformly first. If the result is
    still too heavy, the palette is reduced step by step down to a quality
    floor, and only then is the image shrunk further.
    """
    with Image.open(io.BytesIO(data)) as opened:
        opened.load()
        img = opened.copy()

    width, height = img.size
    current = data

    if width > max_dimension or height > max_dimension:
        scale = min(max_dimension / width, max_dimension / height)
        new_size = (
            max(1, min(max_dimension, round(width * scale))),
            max(1, min(max_dimension, round(height * scale))),
        )
        logger.debug("Screenshot %dx%d exceeds %dpx limit, resizing to %dx%d",
                     width, height, max_dimension, *new_size)
        img = img.resize(new_size, Image.LANCZOS)
        current = _encode_png(img)

    if len(current) <= max_bytes:
        return current

    logger.debug("Screenshot is %.1fMB, reducing file size...", len(current) / 1024 / 1024)

    result = current
    quality = INITIAL_QUALITY
    while len(result) > max_bytes and quality >= QUALITY_FLOOR:
        result = _encode_quantized(img, quality)
        quality -= QUALITY_STEP

    while len(result) > max_bytes and max(img.size) > 1:
        new_size = (max(1, round(img.width * FALLBACK_SCALE)), max(1, round(img.height * FALLBACK_SCALE)))
        img = img.resize(new_size, Image.LANCZOS)
        result = _encode_quantized(img, FALLBACK_QUALITY)

    logger.debug("Reduced screenshot to %.1fMB (%dx%d)",
                 len(result) / 1024 / 1024, img.width, img.height)
    return result
