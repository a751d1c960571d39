"""
Shared Image Utilities
======================

Image type detection and dimension probing used when embedded pictures
are turned into attachments (OOXML/ODF media parts, PDF image XObjects).
"""

import io
import struct

from PIL import Image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURE = b"GIF8"
BMP_SIGNATURE = b"BM"
TIFF_LE_SIGNATURE = b"II\x2a\x00"
TIFF_BE_SIGNATURE = b"MM\x00\x2a"

EXTENSION_TO_MIME = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "emf": "image/emf",
    "wmf": "image/wmf",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def detect_image_type(data: bytes) -> tuple[str, str] | None:
    """
    Detect image type from binary data by checking file signatures.

    Returns:
        Tuple of (extension, content_type) or None if not recognized.
    """
    if len(data) < 8:
        return None

    if data[:8] == PNG_SIGNATURE:
        return ("png", "image/png")
    if data[:3] == JPEG_SIGNATURE:
        return ("jpg", "image/jpeg")
    if data[:4] == GIF_SIGNATURE:
        return ("gif", "image/gif")
    if data[:2] == BMP_SIGNATURE:
        return ("bmp", "image/bmp")
    if data[:4] == TIFF_LE_SIGNATURE or data[:4] == TIFF_BE_SIGNATURE:
        return ("tiff", "image/tiff")
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ("webp", "image/webp")

    return None


def mime_type_for(name: str, data: bytes = b"") -> str:
    """MIME type from the file extension, falling back to the magic bytes."""
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    if extension in EXTENSION_TO_MIME:
        return EXTENSION_TO_MIME[extension]
    detected = detect_image_type(data)
    if detected:
        return detected[1]
    return DEFAULT_MIME_TYPE


def get_image_dimensions(data: bytes, image_type: str) -> tuple[int | None, int | None]:
    """
    Width and height of an encoded image, ``(None, None)`` when unknown.

    PNG sizes are read straight from the IHDR chunk; other formats go
    through Pillow, which only parses the header until pixels are needed.
    """
    if image_type == "png" and len(data) >= 24 and data[12:16] == b"IHDR":
        width, height = struct.unpack(">II", data[16:24])
        return width, height
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (OSError, ValueError):
        return None, None
