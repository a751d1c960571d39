"""
Attachment creation and the linking pass run at the end of every parse.

Image and chart nodes only carry an attachment name. After the tree is
built, :func:`link_attachments` copies OCR text and chart text from the
matching attachments into those nodes and re-projects the text of every
container above them.
"""

import base64
import logging

from officeparser.config import OfficeParserConfig
from officeparser.exceptions import log_warning
from officeparser.extractors.data_types import (
    ChartData,
    ChartMetadata,
    ContentNode,
    ImageMetadata,
    OfficeAttachment,
    refresh_text,
)
from officeparser.extractors.util.image_utils import mime_type_for
from officeparser.extractors.util.ocr import perform_ocr

logger = logging.getLogger(__name__)


def _extension_of(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def create_attachment(name: str, data: bytes) -> OfficeAttachment:
    mime_type = mime_type_for(name, data)
    return OfficeAttachment(
        type="image",
        mime_type=mime_type,
        data=base64.b64encode(data).decode("ascii"),
        name=name,
        extension=_extension_of(name),
    )


def create_chart_attachment(
    name: str,
    data: bytes,
    mime_type: str,
    chart_data: ChartData | None = None,
    extension: str = "xml",
) -> OfficeAttachment:
    return OfficeAttachment(
        type="chart",
        mime_type=mime_type,
        data=base64.b64encode(data).decode("ascii"),
        name=name,
        extension=extension,
        chart_data=chart_data,
    )


def apply_ocr(
    attachment: OfficeAttachment, data: bytes, config: OfficeParserConfig
) -> None:
    """OCR one image attachment in place; failures only produce a warning."""
    if not config.ocr or not attachment.mime_type.startswith("image/"):
        return
    try:
        text = perform_ocr(data, config.ocr_language)
    except Exception as exc:
        log_warning(f"OCR failed for {attachment.name}:", config, exc)
        return
    if text:
        attachment.ocr_text = text


def _collect_referenced_names(nodes: list[ContentNode], names: set[str]) -> None:
    for node in nodes:
        if isinstance(node.metadata, (ImageMetadata, ChartMetadata)):
            if node.metadata.attachment_name:
                names.add(node.metadata.attachment_name)
        _collect_referenced_names(node.children, names)


def link_attachments(
    content: list[ContentNode],
    attachments: list[OfficeAttachment],
    config: OfficeParserConfig,
) -> None:
    """
    Copy OCR text and chart text into image/chart nodes.

    Image nodes without a usable attachment name receive the images no
    node referenced, in attachment order.
    """
    if not attachments:
        return

    by_name = {attachment.name: attachment for attachment in attachments}
    referenced: set[str] = set()
    _collect_referenced_names(content, referenced)
    unused_images = [
        attachment
        for attachment in attachments
        if attachment.type == "image" and attachment.name not in referenced
    ]

    def visit(node: ContentNode) -> None:
        for child in node.children:
            visit(child)

        if node.type == "image":
            metadata = node.metadata
            if not isinstance(metadata, ImageMetadata):
                metadata = ImageMetadata()
                node.metadata = metadata
            if not metadata.attachment_name and unused_images:
                metadata.attachment_name = unused_images.pop(0).name
            attachment = by_name.get(metadata.attachment_name)
            if attachment is None:
                return
            if attachment.ocr_text:
                node.text = attachment.ocr_text
            if metadata.alt_text and not attachment.alt_text:
                attachment.alt_text = metadata.alt_text
        elif node.type == "chart" and isinstance(node.metadata, ChartMetadata):
            attachment = by_name.get(node.metadata.attachment_name)
            if attachment is None or attachment.chart_data is None:
                return
            if node.metadata.chart_data is None:
                node.metadata.chart_data = attachment.chart_data
            node.text = config.newline_delimiter.join(attachment.chart_data.raw_texts)

    for node in content:
        visit(node)
    # containers were projected before their images and charts had text
    refresh_text(content, config.newline_delimiter)

    logger.debug(
        "Linked %d attachments (%d unreferenced images left)",
        len(attachments),
        len(unused_images),
    )
