"""
PDF Document Parser
===================

Builds the document tree for PDF files with pypdf. The tree has one
``page`` node per page; its children are paragraphs, headings and, when
attachments are requested, images.

PDF has no paragraph, table, list or note structure. Text arrives as
positioned runs, so the parser reconstructs lines itself:

    1. Every page's text runs are collected with their position, font and
       effective font size (``visitor_text`` of ``extract_text``).
    2. Runs are put in reading order (top to bottom, then left to right).
       A run whose baseline moves by more than 5 units starts a new line;
       every line becomes one paragraph or heading node.
    3. Lines set noticeably larger than the median font size of the whole
       document become headings (see :func:`_heading_level`).

Bold and italic come from the font name (``ABCDEF+Arial-BoldItalic``).
Link annotations are matched to text runs by position.

Images
------
Image XObjects painted by the page content stream (``Do``) are decoded in
paint order. Each lookup runs on its own thread with a bounded wait, so a
broken image stream cannot stall the parse. JPEG streams (``/DCTDecode``)
are kept as they are; anything else is re-encoded as PNG with Pillow,
outside the bounded wait. Attachments are named
``pdf_image_p{page}_{n}.{ext}``.

Known Limitations
-----------------
- Scanned documents without a text layer yield no text unless OCR runs
  on their images
- Tables, lists, colours and underline are not recoverable
- Embedded file attachments are not extracted
"""

import io
import logging
import math
import re
import statistics
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import cmp_to_key

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import (
    FileCorruptedError,
    FileEncryptedError,
    OfficeParserError,
    PdfWorkerMissingError,
    log_warning,
    wrap_error,
)
from officeparser.extractors.data_types import (
    ContentNode,
    HeadingMetadata,
    ImageMetadata,
    OfficeAttachment,
    OfficeMetadata,
    OfficeParserAST,
    PageMetadata,
    ParagraphMetadata,
    TextFormatting,
    TextMetadata,
    node_to_text,
)
from officeparser.extractors.util.attachments import apply_ocr, create_attachment, link_attachments
from officeparser.extractors.util.image_utils import get_image_dimensions

logger = logging.getLogger(__name__)

# baseline movement that starts a new line
LINE_TOLERANCE = 5
# seconds to wait for one image lookup
IMAGE_RESOLVE_TIMEOUT = 0.5
# smaller images are not worth an OCR run
MIN_OCR_SIZE = 10
DEFAULT_FONT_SIZE = 12.0

# (minimum size / median size, heading level)
HEADING_RATIOS = (
    (2.0, 1),
    (1.7, 2),
    (1.5, 3),
    (1.35, 4),
    (1.2, 5),
)

_RE_SUBSET_PREFIX = re.compile(r"^[A-Z]{6}\+")
_RE_PDF_DATE = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:([+\-Z])(?:(\d{2})'?(\d{2})?'?)?)?"
)


@dataclass
class _TextItem:
    text: str
    x: float
    y: float
    size: float
    formatting: TextFormatting


@dataclass
class _ImageItem:
    name: str
    x: float
    y: float


@dataclass
class _Link:
    rect: tuple[float, float, float, float]
    target: str
    link_type: str


@dataclass
class _PageItems:
    number: int
    texts: list[_TextItem] = field(default_factory=list)
    images: list[_ImageItem] = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================


def _pdf_date(value) -> str | None:
    """ISO 8601 text for a PDF date string (``D:YYYYMMDDHHmmSSOHH'mm'``)."""
    if not value:
        return None
    match = _RE_PDF_DATE.match(str(value).strip())
    if match is None:
        return None
    year, month, day, hour, minute, second, sign, tz_hours, tz_minutes = match.groups()
    try:
        moment = datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
        )
    except ValueError:
        return None
    if sign in ("+", "-"):
        offset = timedelta(hours=int(tz_hours or 0), minutes=int(tz_minutes or 0))
        moment = moment.replace(tzinfo=timezone(-offset if sign == "-" else offset))
    elif sign == "Z":
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()


def _font_formatting(font_dict, size: float) -> TextFormatting:
    formatting = TextFormatting(size=f"{round(size)}pt" if size > 0 else None)
    if not font_dict:
        return formatting
    base_font = str(font_dict.get("/BaseFont", "")).lstrip("/")
    if not base_font:
        return formatting
    formatting.font = _RE_SUBSET_PREFIX.sub("", base_font)
    lowered = base_font.lower()
    if "bold" in lowered:
        formatting.bold = True
    if "italic" in lowered or "oblique" in lowered:
        formatting.italic = True
    return formatting


def _heading_level(size: float, median: float) -> int | None:
    """Heading level for text of ``size``; text up to 1.2x the median is body text."""
    if median <= 0 or size <= median * 1.2:
        return None
    ratio = size / median
    for minimum, level in HEADING_RATIOS:
        if ratio >= minimum:
            return level
    return None


def _reading_order(a, b) -> int:
    if abs(b.y - a.y) > LINE_TOLERANCE:
        return -1 if a.y > b.y else 1
    if a.x == b.x:
        return 0
    return -1 if a.x < b.x else 1


def _collect_text(page, number: int) -> _PageItems:
    items = _PageItems(number=number)

    def visitor(text, cm, tm, font_dict, font_size) -> None:
        if not text:
            return
        text = text.replace("\r", "").replace("\n", " ")
        if not text:
            return
        x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
        y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
        scale = math.hypot(tm[2], tm[3]) * math.hypot(cm[2], cm[3])
        size = abs(font_size * scale) if scale else abs(font_size)
        items.texts.append(_TextItem(text, x, y, size, _font_formatting(font_dict, size)))

    page.extract_text(visitor_text=visitor)
    return items


def _collect_images(page, items: _PageItems) -> None:
    """Image XObjects painted by the page, in paint order, with their position."""
    from pypdf.generic import ContentStream

    resources = page.get("/Resources")
    if resources is None:
        return
    resources = resources.get_object()
    if "/XObject" not in resources:
        return
    xobjects = resources["/XObject"].get_object()
    contents = page.get_contents()
    if contents is None:
        return

    position = (0.0, 0.0)
    stack: list[tuple[float, float]] = []
    if not isinstance(contents, ContentStream):
        contents = ContentStream(contents, page.pdf)
    for operands, operator in contents.operations:
        if operator == b"q":
            stack.append(position)
        elif operator == b"Q":
            position = stack.pop() if stack else (0.0, 0.0)
        elif operator == b"cm" and len(operands) == 6:
            position = (float(operands[4]), float(operands[5]))
        elif operator == b"Do" and operands:
            name = str(operands[0])
            xobject = xobjects.get(name)
            if xobject is not None and xobject.get_object().get("/Subtype") == "/Image":
                items.images.append(_ImageItem(name, position[0], position[1]))


def _page_links(page) -> list[_Link]:
    links = []
    for annotation in page.get("/Annots") or []:
        annotation = annotation.get_object()
        if annotation.get("/Subtype") != "/Link" or "/Rect" not in annotation:
            continue
        rect = tuple(float(value) for value in annotation["/Rect"])
        action = annotation.get("/A")
        action = action.get_object() if action is not None else {}
        uri = action.get("/URI")
        destination = annotation.get("/Dest") or action.get("/D")
        if uri:
            uri = str(uri)
            links.append(_Link(rect, uri, "internal" if uri.startswith("#") else "external"))
        elif destination is not None:
            target = f"#{destination}" if isinstance(destination, str) else "#internal"
            links.append(_Link(rect, target, "internal"))
    return links


def _link_for(item: _TextItem, links: list[_Link]) -> _Link | None:
    # run width is not reported, estimate it from the glyph count
    center_x = item.x + len(item.text) * item.size * 0.25
    center_y = item.y + item.size / 2
    for link in links:
        x1, y1, x2, y2 = link.rect
        if min(x1, x2) <= center_x <= max(x1, x2) and min(y1, y2) <= center_y <= max(y1, y2):
            return link
    return None


def _image_filters(xobject) -> list[str]:
    filters = xobject.get("/Filter")
    if filters is None:
        return []
    if isinstance(filters, list):
        return [str(item) for item in filters]
    return [str(filters)]


def _lookup_image(page, name: str) -> tuple[object, str, int, int]:
    """``(image_file, extension, width, height)`` of one image XObject."""
    xobject = page["/Resources"]["/XObject"][name].get_object()
    width = int(xobject.get("/Width", 0))
    height = int(xobject.get("/Height", 0))
    image_file = page.images[name]
    extension = "jpg" if "/DCTDecode" in _image_filters(xobject) else "png"
    return image_file, extension, width, height


def _encode_image(image_file, extension: str) -> bytes:
    if extension == "jpg":
        return image_file.data
    buffer = io.BytesIO()
    image = image_file.image
    if image.mode not in ("RGB", "RGBA", "L", "LA", "P", "1"):
        image = image.convert("RGB")
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _resolve_image(page, name: str) -> tuple[object, str, int, int]:
    """
    Run :func:`_lookup_image` on its own daemon thread and wait for it a bounded time.

    A lookup that never returns only costs its own thread; it does not
    hold up later images or interpreter shutdown.

    Raises:
        concurrent.futures.TimeoutError: If the lookup takes longer than
            ``IMAGE_RESOLVE_TIMEOUT`` seconds.
    """
    future: Future = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(_lookup_image(page, name))
        except BaseException as exc:
            future.set_exception(exc)

    threading.Thread(target=run, name="officeparser-pdf-image", daemon=True).start()
    return future.result(timeout=IMAGE_RESOLVE_TIMEOUT)


# =============================================================================
# Page assembly
# =============================================================================


class _LineBuilder:
    """Folds reading-ordered text runs into paragraph and heading nodes."""

    def __init__(self, median: float, links: list[_Link]):
        self.median = median
        self.links = links
        self.nodes: list[ContentNode] = []
        self.current: ContentNode | None = None
        self.last_y: float | None = None

    def add_text(self, item: _TextItem) -> None:
        if self.last_y is not None and abs(item.y - self.last_y) > LINE_TOLERANCE:
            self.flush()
        self.last_y = item.y

        text = item.text
        if self.current is None:
            if not text.strip():
                return
            level = _heading_level(item.size, self.median)
            if level is not None:
                self.current = ContentNode(type="heading", metadata=HeadingMetadata(level=level))
            else:
                self.current = ContentNode(type="paragraph", metadata=ParagraphMetadata())

        node = self.current
        last = node.children[-1] if node.children else None
        if not text.strip():
            if last is not None:
                last.text += text
                node.text += text
            return

        if node.text and not node.text.endswith(" ") and not text.startswith(" "):
            node.text += " "
            if last is not None:
                last.text += " "
        node.text += text

        link = _link_for(item, self.links)
        if link is None and last is not None and last.metadata is None and last.formatting == item.formatting:
            last.text += text
            return
        node.children.append(
            ContentNode(
                type="text",
                text=text,
                formatting=item.formatting,
                metadata=TextMetadata(link=link.target, link_type=link.link_type) if link else None,
            )
        )

    def add_node(self, node: ContentNode) -> None:
        self.flush()
        self.nodes.append(node)

    def flush(self) -> None:
        if self.current is not None and self.current.text.strip():
            self.nodes.append(self.current)
        self.current = None


def _extract_image_attachment(
    page,
    image: _ImageItem,
    name: str,
    config: OfficeParserConfig,
) -> OfficeAttachment | None:
    try:
        image_file, extension, width, height = _resolve_image(page, image.name)
        data = _encode_image(image_file, extension)
    except FutureTimeoutError:
        log_warning(f"Timed out resolving image {image.name} for {name}", config)
        return None
    except Exception as exc:
        log_warning(f"Failed to process image {name}:", config, exc)
        return None

    probed_width, probed_height = get_image_dimensions(data, extension)
    width = probed_width or width
    height = probed_height or height
    attachment = create_attachment(f"{name}.{extension}", data)
    if width >= MIN_OCR_SIZE and height >= MIN_OCR_SIZE:
        apply_ocr(attachment, data, config)
    return attachment


def _build_page(
    page,
    items: _PageItems,
    median: float,
    attachments: list[OfficeAttachment],
    config: OfficeParserConfig,
) -> ContentNode:
    try:
        links = _page_links(page)
    except Exception as exc:
        log_warning(f"Failed to read annotations of page {items.number}:", config, exc)
        links = []

    ordered = sorted([*items.texts, *items.images], key=cmp_to_key(_reading_order))
    builder = _LineBuilder(median, links)
    image_counter = 0
    for item in ordered:
        if isinstance(item, _TextItem):
            builder.add_text(item)
            continue
        image_counter += 1
        if not config.extract_attachments:
            continue
        attachment = _extract_image_attachment(
            page, item, f"pdf_image_p{items.number}_{image_counter}", config
        )
        if attachment is None:
            continue
        attachments.append(attachment)
        builder.add_node(
            ContentNode(type="image", metadata=ImageMetadata(attachment_name=attachment.name))
        )
    builder.flush()

    page_node = ContentNode(
        type="page",
        children=builder.nodes,
        metadata=PageMetadata(page_number=items.number),
    )
    page_node.text = node_to_text(page_node, config.newline_delimiter)
    return page_node


def _read_metadata(reader, page_count: int) -> OfficeMetadata:
    metadata = OfficeMetadata(pages=page_count)
    info = reader.metadata
    if not info:
        return metadata

    def value(key: str) -> str | None:
        raw = info.get(key)
        return str(raw).strip() or None if raw is not None else None

    metadata.title = value("/Title")
    metadata.author = value("/Author")
    metadata.subject = value("/Subject")
    # closest match for the keyword list
    metadata.description = value("/Keywords")
    metadata.created = _pdf_date(info.get("/CreationDate"))
    metadata.modified = _pdf_date(info.get("/ModDate"))
    return metadata


def _open_reader(file_like: io.BytesIO, path: str | None):
    try:
        from pypdf import PdfReader
        from pypdf.errors import PdfReadError
    except ImportError as exc:
        raise PdfWorkerMissingError(cause=exc) from exc

    try:
        reader = PdfReader(file_like)
    except PdfReadError as exc:
        raise FileCorruptedError(path, cause=exc) from exc

    if reader.is_encrypted:
        try:
            decrypted = reader.decrypt("")
        except Exception as exc:
            raise FileEncryptedError("PDF file is encrypted and cannot be opened", cause=exc) from exc
        if not decrypted:
            raise FileEncryptedError("PDF file is password-protected")
    return reader


# =============================================================================
# Main entry point
# =============================================================================


def read_pdf(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    """
    Parse a PDF file into the document tree.

    Args:
        file_like: BytesIO object containing the complete PDF file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.

    Returns:
        OfficeParserAST with ``type="pdf"`` and one ``page`` node per page.

    Raises:
        PdfWorkerMissingError: If pypdf cannot be imported.
        FileEncryptedError: If the file needs a password.
        FileCorruptedError: If pypdf cannot read the file.
    """
    config = config or DEFAULT_CONFIG
    try:
        file_like.seek(0)
        reader = _open_reader(file_like, path)
        pages = list(reader.pages)

        logger.debug("Collecting text of %d pages", len(pages))
        collected: list[_PageItems] = []
        for number, page in enumerate(pages, start=1):
            try:
                items = _collect_text(page, number)
                if config.extract_attachments:
                    _collect_images(page, items)
            except Exception as exc:
                log_warning(f"Error loading page {number}:", config, exc)
                items = _PageItems(number=number)
            collected.append(items)

        sizes = [item.size for items in collected for item in items.texts if item.size > 0]
        median = statistics.median_low(sizes) if sizes else DEFAULT_FONT_SIZE

        attachments: list[OfficeAttachment] = []
        content = [
            _build_page(page, items, median, attachments, config)
            for page, items in zip(pages, collected)
        ]
        if attachments:
            link_attachments(content, attachments, config)

        metadata = _read_metadata(reader, len(pages))
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.populate_from_path(path)

    logger.info(
        "Extracted PDF: %d pages, %d attachments",
        len(content),
        len(attachments),
    )

    return OfficeParserAST(
        type="pdf",
        metadata=metadata,
        content=content,
        attachments=attachments,
        newline_delimiter=config.newline_delimiter,
    )
