"""
Style tables for OpenDocument files.

Named styles come from ``styles.xml`` (``office:styles`` and
``office:automatic-styles``) and from the automatic styles of
``content.xml``. Both are merged into one :class:`OdfStyles` lookup; a
style with ``style:parent-style-name`` inherits everything it does not set
itself.
"""

import logging
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from officeparser.extractors.data_types import StyleDefinition, TextFormatting

logger = logging.getLogger(__name__)

OFFICE_NS = "{urn:oasis:names:tc:opendocument:xmlns:office:1.0}"
STYLE_NS = "{urn:oasis:names:tc:opendocument:xmlns:style:1.0}"
TEXT_NS = "{urn:oasis:names:tc:opendocument:xmlns:text:1.0}"
FO_NS = "{urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0}"

TEXT_ALIGN = {
    "start": "left",
    "left": "left",
    "center": "center",
    "end": "right",
    "right": "right",
    "justify": "justify",
}

DROP_CAP_SIZE = "58.5pt"


@dataclass
class ParagraphStyle:
    alignment: str | None = None
    # number of leading characters rendered as a drop cap; 0 when none
    drop_cap_length: int = 0


@dataclass
class ListStyle:
    # "ordered" or "unordered"
    list_type: str = "unordered"
    # False for layout lists without bullets, numbers or images
    visible: bool = False


@dataclass
class OdfStyles:
    text: dict[str, TextFormatting] = field(default_factory=dict)
    paragraph: dict[str, ParagraphStyle] = field(default_factory=dict)
    lists: dict[str, ListStyle] = field(default_factory=dict)

    def formatting(self, name: str | None) -> TextFormatting:
        if not name or name not in self.text:
            return TextFormatting()
        return self.text[name]

    def paragraph_style(self, name: str | None) -> ParagraphStyle:
        if not name:
            return ParagraphStyle()
        return self.paragraph.get(name, ParagraphStyle())

    def style_map(self) -> dict[str, StyleDefinition]:
        names = list(self.text) + [name for name in self.paragraph if name not in self.text]
        return {
            name: StyleDefinition(
                formatting=self.text.get(name, TextFormatting()),
                alignment=self.paragraph_style(name).alignment,
            )
            for name in names
        }


def _text_formatting(style: ET.Element) -> TextFormatting:
    formatting = TextFormatting()

    cell = style.find(f"{STYLE_NS}table-cell-properties")
    if cell is not None:
        background = cell.get(f"{FO_NS}background-color")
        if background and background != "transparent":
            formatting.background_color = background

    props = style.find(f"{STYLE_NS}text-properties")
    if props is None:
        return formatting

    if "bold" in (props.get(f"{FO_NS}font-weight"), props.get(f"{STYLE_NS}font-weight-asian")):
        formatting.bold = True
    if "italic" in (props.get(f"{FO_NS}font-style"), props.get(f"{STYLE_NS}font-style-asian")):
        formatting.italic = True
    if props.get(f"{STYLE_NS}text-underline-style") == "solid":
        formatting.underline = True
    if props.get(f"{STYLE_NS}text-line-through-style") == "solid":
        formatting.strikethrough = True

    size = props.get(f"{FO_NS}font-size") or props.get(f"{STYLE_NS}font-size-asian")
    if size:
        formatting.size = size
    color = props.get(f"{FO_NS}color")
    if color:
        formatting.color = color
    background = props.get(f"{FO_NS}background-color")
    if background and background != "transparent":
        formatting.background_color = background
    font = props.get(f"{STYLE_NS}font-name") or props.get(f"{FO_NS}font-family")
    if font:
        formatting.font = font

    position = props.get(f"{STYLE_NS}text-position") or ""
    if position.startswith("sub"):
        formatting.subscript = True
    elif position.startswith("super"):
        formatting.superscript = True
    return formatting


def _paragraph_style(style: ET.Element) -> ParagraphStyle | None:
    props = style.find(f"{STYLE_NS}paragraph-properties")
    if props is None:
        return None
    paragraph = ParagraphStyle(alignment=TEXT_ALIGN.get(props.get(f"{FO_NS}text-align", "")))
    drop_cap = props.find(f"{STYLE_NS}drop-cap")
    if drop_cap is not None:
        length = drop_cap.get(f"{STYLE_NS}length", "1")
        paragraph.drop_cap_length = int(length) if length.isdigit() else 1
    if paragraph.alignment is None and not paragraph.drop_cap_length:
        return None
    return paragraph


def _list_style(element: ET.Element) -> ListStyle:
    numbers = element.findall(f"{TEXT_NS}list-level-style-number")
    bullets = element.findall(f"{TEXT_NS}list-level-style-bullet")
    images = element.findall(f"{TEXT_NS}list-level-style-image")
    style = ListStyle()
    if numbers:
        style.list_type = "ordered"
        style.visible = any(level.get(f"{STYLE_NS}num-format") for level in numbers)
    elif bullets:
        style.visible = any(level.get(f"{TEXT_NS}bullet-char") for level in bullets)
    if images:
        style.visible = True
    return style


def _style_containers(root: ET.Element) -> list[ET.Element]:
    return [
        container
        for container in (
            root.find(f"{OFFICE_NS}styles"),
            root.find(f"{OFFICE_NS}automatic-styles"),
        )
        if container is not None
    ]


def load_styles(*roots: ET.Element | None) -> OdfStyles:
    """Merge the style tables of the given roots; later roots win."""
    styles = OdfStyles()
    parents: dict[str, str] = {}
    for root in roots:
        if root is None:
            continue
        for container in _style_containers(root):
            for style in container.findall(f"{STYLE_NS}style"):
                name = style.get(f"{STYLE_NS}name")
                if not name:
                    continue
                formatting = _text_formatting(style)
                if not formatting.is_empty():
                    styles.text[name] = formatting
                paragraph = _paragraph_style(style)
                if paragraph is not None:
                    styles.paragraph[name] = paragraph
                parent = style.get(f"{STYLE_NS}parent-style-name")
                if parent:
                    parents[name] = parent
            for list_style in container.findall(f"{TEXT_NS}list-style"):
                name = list_style.get(f"{STYLE_NS}name")
                if name:
                    styles.lists[name] = _list_style(list_style)

    _apply_inheritance(styles, parents)
    logger.debug(
        "Loaded %d text styles, %d paragraph styles, %d list styles",
        len(styles.text),
        len(styles.paragraph),
        len(styles.lists),
    )
    return styles


def _apply_inheritance(styles: OdfStyles, parents: dict[str, str]) -> None:
    resolved: set[str] = set()

    def resolve(name: str, seen: frozenset) -> None:
        if name in resolved:
            return
        parent = parents.get(name)
        if parent and parent not in seen:
            resolve(parent, seen | {name})
            if parent in styles.text:
                styles.text[name] = styles.text[parent].merged(styles.text.get(name))
            if parent in styles.paragraph:
                inherited = styles.paragraph[parent]
                own = styles.paragraph.get(name, ParagraphStyle())
                styles.paragraph[name] = ParagraphStyle(
                    alignment=own.alignment or inherited.alignment,
                    drop_cap_length=own.drop_cap_length or inherited.drop_cap_length,
                )
        resolved.add(name)

    for name in parents:
        resolve(name, frozenset({name}))
