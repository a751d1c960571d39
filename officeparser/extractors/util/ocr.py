"""OCR of embedded raster images through Tesseract."""

import io
import logging

logger = logging.getLogger(__name__)


def perform_ocr(image_bytes: bytes, language: str = "eng") -> str:
    """Recognise the text of one image.

    Requires pytesseract and Pillow plus a Tesseract binary on the PATH.

    Args:
        image_bytes: Encoded image (PNG, JPEG, GIF, BMP, TIFF, WebP).
        language: Tesseract language tag, e.g. ``"eng"`` or ``"eng+deu"``.

    Returns:
        The recognised text, stripped.

    Raises:
        ImportError: If pytesseract or Pillow is not installed.
    """
    try:
        import pytesseract
        from PIL import Image
    except ImportError as e:
        raise ImportError(
            "OCR requires pytesseract and Pillow. "
            "Install with: pip install pytesseract Pillow"
        ) from e

    with Image.open(io.BytesIO(image_bytes)) as image:
        image.load()
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        text = pytesseract.image_to_string(image, lang=language)

    logger.debug("OCR recognised %d characters", len(text))
    return text.strip()
