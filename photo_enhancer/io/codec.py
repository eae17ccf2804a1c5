# Image decoding and encoding using Pillow
"""
Conversion between encoded images (bytes or ``data:`` URLs) and PixelBuffers.
"""

import base64
import binascii
import io
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..config import settings
from ..utils.errors import DecodeError
from ..utils.imaging import PixelBuffer
from ..utils.logger import get_logger

logger = get_logger(__name__)

_CODEC = settings.CODEC_DEFAULTS

_MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


def _data_url_payload(data: str) -> bytes:
    """Extract the base64 payload of a ``data:image/...;base64,`` URL."""
    header, sep, payload = data.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise DecodeError("Expected a base64 data URL", source="data-url")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Malformed base64 payload", source="data-url", original_error=e)


def decode_image(data: Union[bytes, bytearray, str]) -> PixelBuffer:
    """Decode image bytes (or a base64 data URL) into an RGBA PixelBuffer.

    EXIF orientation is applied so the buffer is upright.

    Raises:
        DecodeError: if the input is empty, malformed or in an unsupported format.
    """
    if isinstance(data, str):
        raw = _data_url_payload(data.strip())
    elif isinstance(data, (bytes, bytearray)):
        raw = bytes(data)
    else:
        raise DecodeError(f"Cannot decode input of type {type(data).__name__}")

    if not raw:
        raise DecodeError("No image data")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            rgba = oriented.convert("RGBA")
            pixels = np.array(rgba, dtype=np.uint8)
    except UnidentifiedImageError as e:
        raise DecodeError("Unrecognized or corrupted image data", original_error=e)
    except (OSError, ValueError, SyntaxError, EOFError) as e:
        raise DecodeError(f"Failed to decode image: {e}", original_error=e)

    logger.debug("Decoded %dx%d image (%d bytes)", pixels.shape[1], pixels.shape[0], len(raw))
    return PixelBuffer(pixels)


def encode_image(buffer: PixelBuffer, fmt: str = _CODEC["output_format"],
                 quality: int = _CODEC["jpeg_quality"]) -> bytes:
    """Encode ``buffer`` with Pillow.

    JPEG output drops alpha; PNG keeps RGBA.
    """
    if buffer.is_empty:
        raise ValueError("Cannot encode an empty buffer")

    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"

    img = Image.fromarray(buffer.pixels)
    save_kwargs = {}
    if fmt == "JPEG":
        img = img.convert("RGB")
        save_kwargs["quality"] = max(1, min(100, int(quality)))
    elif fmt == "PNG":
        save_kwargs["compress_level"] = max(0, min(9, _CODEC["png_compression"]))
    elif fmt == "WEBP":
        save_kwargs["quality"] = max(1, min(100, int(quality)))

    out = io.BytesIO()
    img.save(out, format=fmt, **save_kwargs)
    return out.getvalue()


def to_data_url(data: bytes, fmt: str = _CODEC["output_format"]) -> str:
    """Wrap encoded image bytes in a base64 ``data:`` URL."""
    mime = _MIME_TYPES.get(fmt.upper().replace("JPG", "JPEG"), "application/octet-stream")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
