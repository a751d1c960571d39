"""
RTF Document Parser
===================

Builds the document tree for Rich Text Format files in two passes:

    1. :mod:`rtf_tokenizer` turns the bytes into a tree of groups, control
       words and text.
    2. :class:`_RtfWalker` walks that tree with an explicit frame stack,
       applying control-word semantics to build content nodes.

Lookup tables (fonts, colours, list definitions, paragraph styles) and the
``{\\info}`` metadata are read from the token tree before the walk.

Character Formatting
--------------------
Character properties are scoped to groups: every group starts with a copy
of its parent's formatting, so ``{\\b bold}`` never leaks. ``\\plain``
resets the current group. Toggles (``\\b``, ``\\i``, ``\\ul``,
``\\strike``) switch off with a ``0`` parameter. Font size ``\\fs`` is in
half-points, ``\\f``, ``\\cf`` and ``\\cb``/``\\highlight`` index the font
and colour tables.

Paragraphs
----------
``\\par`` (and ``\\sect``, ``\\page``) end a paragraph; ``\\pard`` resets
paragraph properties. A paragraph becomes:

    - a heading for ``\\sN`` when the style sheet names style N
      "heading X" (without a style sheet, ``\\s1`` to ``\\s9`` are
      headings of that level) or for ``\\outlinelevelN``
    - a list item for ``\\ls``/``\\ilvl``, legacy ``\\pn`` numbering or
      a preceding ``{\\listtext}``/``{\\pntext}`` marker group
    - a plain paragraph otherwise

Tables
------
``\\trowd``, ``\\cell`` and ``\\row`` build tables; ``\\intbl`` and
``\\itapN`` give the nesting depth of a paragraph, ``\\nestcell`` and
``\\nestrow`` close cells and rows of nested tables. Vertically merged
continuation cells (``\\clvmrg``) and horizontally merged ones
(``\\clmrg``) are folded into the span of the cell they continue.

Notes
-----
``{\\footnote}`` groups become ``note`` nodes. ``\\fet`` decides their
kind: ``\\fet0`` footnotes, ``\\fet1`` endnotes, ``\\fet2`` endnotes for
groups marked ``\\ftnalt`` and footnotes otherwise.

Known Limitations
-----------------
- ``\\pict`` image data is device dependent and is never decoded; pictures
  produce neither nodes nor attachments
- There is no named style table; formatting always comes from the inline
  control words in scope
- Headers, footers, annotations and bookmarks are skipped

Usage
-----
    >>> import io
    >>> from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf
    >>>
    >>> with open("letter.rtf", "rb") as f:
    ...     ast = read_rtf(io.BytesIO(f.read()), path="letter.rtf")
    ...     print(ast.to_text())
"""

import io
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import FileCorruptedError, OfficeParserError, wrap_error
from officeparser.extractors.data_types import (
    CellMetadata,
    ContentNode,
    HeadingMetadata,
    ListMetadata,
    NoteMetadata,
    OfficeMetadata,
    OfficeParserAST,
    ParagraphMetadata,
    TextFormatting,
    TextMetadata,
    node_to_text,
    paragraph_text,
)
from officeparser.extractors.ms_legacy.rtf_tokenizer import (
    RtfControl,
    RtfGroup,
    RtfText,
    find_groups,
    group_text,
    tokenize,
)

logger = logging.getLogger(__name__)

RTF_HEADER = b"{\\rtf"

# Destinations whose content never reaches the document tree
SKIPPED_DESTINATIONS = frozenset(
    {
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "pict",
        "shppict",
        "nonshppict",
        "fldinst",
        "header",
        "headerl",
        "headerr",
        "headerf",
        "footer",
        "footerl",
        "footerr",
        "footerf",
        "listtable",
        "listoverridetable",
        "nonesttables",
        "revtbl",
        "rsidtbl",
        "xmlnstbl",
        "generator",
        "filetbl",
        "ftnsep",
        "ftnsepc",
        "aftnsep",
        "aftnsepc",
        "themedata",
        "colorschememapping",
        "latentstyles",
        "datastore",
    }
)

# \* groups that are still walked
WALKED_IGNORABLE = frozenset({"nesttableprops"})

SPECIAL_CHARS = {
    "tab": "\t",
    "line": "\n",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "bullet": "\u2022",
    "endash": "\u2013",
    "emdash": "\u2014",
    "enspace": "\u2002",
    "emspace": "\u2003",
    "qmspace": "\u2005",
    "~": "\u00a0",
    "_": "\u2011",
}

ALIGNMENT = {
    "ql": "left",
    "qc": "center",
    "qr": "right",
    "qj": "justify",
    "qd": "justify",
}

UNDERLINE_CONTROLS = frozenset(
    {"ul", "uld", "uldash", "uldashd", "uldashdd", "uldb", "ulhwave", "ulldash", "ulth", "ulw", "ulwave"}
)

# \levelnfc values without a running number: bullet, none
UNNUMBERED_FORMATS = frozenset({23, 255})

ORDERED_PN = frozenset({"pndec", "pnucrm", "pnlcrm", "pnucltr", "pnlcltr", "pnord", "pnordt", "pncard"})
BULLET_MARKERS = "\u00b7\u2022o\u00a7\u25a0\u25a1\u25cf\u25cb\u25c6\u25c7\u25ba\u25b8"

_RE_ORDERED_MARKER = re.compile(r"^(?:\d+|[ivxlcdm]+|[a-z])[.)]", re.IGNORECASE)
_RE_HYPERLINK = re.compile(r'HYPERLINK\s+(?P<local>\\l\s+)?"(?P<target>[^"]*)"', re.IGNORECASE)
_RE_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_RE_HEADING_STYLE = re.compile(r"^heading\s*(\d)$", re.IGNORECASE)


# =============================================================================
# Lookup tables read before the walk
# =============================================================================


def _flatten(group: RtfGroup):
    """Controls and text of ``group``, descending into all but ``\\*`` groups."""
    stack = [iter(group.content)]
    while stack:
        for item in stack[-1]:
            if isinstance(item, RtfGroup):
                if not item.ignorable:
                    stack.append(iter(item.content))
                    break
            else:
                yield item
        else:
            stack.pop()


def _read_font_table(root: RtfGroup) -> dict[int, str]:
    fonts: dict[int, str] = {}
    for table in find_groups(root, "fonttbl")[:1]:
        index = None
        name = ""
        for item in _flatten(table):
            if isinstance(item, RtfControl) and item.name == "f" and item.param is not None:
                index, name = item.param, ""
            elif isinstance(item, RtfText) and index is not None:
                name += item.value
                if ";" in name:
                    fonts[index] = name.split(";", 1)[0].strip()
                    index, name = None, ""
        if index is not None and name.strip():
            fonts[index] = name.strip()
    return fonts


def _read_color_table(root: RtfGroup) -> dict[int, str | None]:
    """Colour index -> ``#RRGGBB``; entries without components are "auto" (None)."""
    colors: dict[int, str | None] = {}
    for table in find_groups(root, "colortbl")[:1]:
        index = 0
        rgb: dict[str, int] = {}
        for item in _flatten(table):
            if isinstance(item, RtfControl) and item.name in ("red", "green", "blue"):
                rgb[item.name] = min(max(item.param or 0, 0), 255)
            elif isinstance(item, RtfText):
                for _ in range(item.value.count(";")):
                    colors[index] = (
                        "#{:02X}{:02X}{:02X}".format(
                            rgb.get("red", 0), rgb.get("green", 0), rgb.get("blue", 0)
                        )
                        if rgb
                        else None
                    )
                    index += 1
                    rgb = {}
    return colors


@dataclass
class _ListTables:
    # \listid -> list type per level
    levels: dict[int, list[str]] = field(default_factory=dict)
    # \ls -> \listid
    overrides: dict[int, int] = field(default_factory=dict)

    def list_type(self, ls: int, level: int) -> str | None:
        levels = self.levels.get(self.overrides.get(ls, ls))
        if not levels:
            return None
        return levels[min(level, len(levels) - 1)]


def _control_param(group: RtfGroup, *names: str) -> int | None:
    for control in group.controls():
        if control.name in names and control.param is not None:
            return control.param
    return None


def _read_list_tables(root: RtfGroup) -> _ListTables:
    tables = _ListTables()
    for listtable in find_groups(root, "listtable"):
        for definition in find_groups(listtable, "list"):
            list_id = _control_param(definition, "listid")
            if list_id is None:
                continue
            levels = []
            for level in find_groups(definition, "listlevel"):
                number_format = _control_param(level, "levelnfcn", "levelnfc")
                levels.append("unordered" if number_format in UNNUMBERED_FORMATS else "ordered")
            tables.levels[list_id] = levels
    for overrides in find_groups(root, "listoverridetable"):
        for override in find_groups(overrides, "listoverride"):
            list_id = _control_param(override, "listid")
            ls = _control_param(override, "ls")
            if list_id is not None and ls is not None:
                tables.overrides[ls] = list_id
    return tables


def _read_heading_styles(root: RtfGroup) -> dict[int, int | None]:
    """Paragraph style index -> heading level (None for other named styles)."""
    styles: dict[int, int | None] = {}
    for stylesheet in find_groups(root, "stylesheet")[:1]:
        for definition in stylesheet.groups():
            controls = definition.controls()
            if any(control.name in ("cs", "ds", "ts", "tsrowd") for control in controls):
                continue
            index = _control_param(definition, "s")
            if index is None:
                # \s0 is often written without its parameter
                index = 0
            name = group_text(definition).split(";", 1)[0].strip()
            outline = _control_param(definition, "outlinelevel")
            match = _RE_HEADING_STYLE.match(name)
            if outline is not None and 0 <= outline <= 8:
                styles[index] = outline + 1
            elif match and match.group(1) != "0":
                styles[index] = int(match.group(1))
            elif name.lower() == "title":
                styles[index] = 1
            else:
                styles[index] = None
    return styles


def _rtf_date(group: RtfGroup) -> str | None:
    year = _control_param(group, "yr")
    month = _control_param(group, "mo")
    day = _control_param(group, "dy")
    if not (year and month and day):
        return None
    hour = _control_param(group, "hr") or 0
    minute = _control_param(group, "min") or 0
    return f"{year:04d}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:00"


def _read_info(root: RtfGroup) -> OfficeMetadata:
    metadata = OfficeMetadata()
    for info in find_groups(root, "info")[:1]:
        for entry in info.groups():
            destination = entry.destination
            if destination in ("creatim", "revtim"):
                value = _rtf_date(entry)
                if destination == "creatim":
                    metadata.created = value
                else:
                    metadata.modified = value
                continue
            if destination == "nofpages":
                metadata.pages = _control_param(entry, "nofpages")
                continue
            text = group_text(entry).strip() or None
            if destination == "title":
                metadata.title = text
            elif destination == "author":
                metadata.author = text
            elif destination == "operator":
                metadata.last_modified_by = text
            elif destination == "subject":
                metadata.subject = text
            elif destination == "doccomm":
                metadata.description = text
    return metadata


def _field_link(field_group: RtfGroup) -> tuple[str, str] | None:
    """``(target, link_type)`` for a HYPERLINK field, None for any other field."""
    for instruction in find_groups(field_group, "fldinst"):
        match = _RE_HYPERLINK.search(group_text(instruction))
        if match is None:
            continue
        target = match.group("target").strip()
        if match.group("local"):
            target = f"#{target}"
        if target.startswith("#") or not _RE_SCHEME.match(target):
            return target, "internal"
        return target, "external"
    return None


def _marker_type(marker: str) -> str:
    """List type guessed from list marker text; "" when it cannot tell."""
    trimmed = marker.strip()
    if not trimmed:
        return ""
    if any(char in trimmed for char in BULLET_MARKERS) or (
        len(trimmed) == 1 and not trimmed.isalnum()
    ):
        return "unordered"
    if _RE_ORDERED_MARKER.match(trimmed):
        return "ordered"
    return ""


def _escape_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("{", "\\{").replace("}", "\\}")


def _serialize_control(control: RtfControl) -> str:
    if not control.name[0].isalpha():
        return f"\\{control.name}"
    param = "" if control.param is None else str(control.param)
    return f"\\{control.name}{param} "


# =============================================================================
# Walker state
# =============================================================================


@dataclass
class _ParagraphProps:
    alignment: str | None = None
    heading_level: int | None = None
    is_list: bool = False
    list_type: str | None = None
    # \ls value
    list_key: int | None = None
    level: int = 0
    # table nesting from \intbl / \itapN
    depth: int = 0
    background_color: str | None = None

    def end_paragraph(self) -> None:
        self.heading_level = None
        self.is_list = False
        self.list_type = None
        self.list_key = None
        self.level = 0


@dataclass
class _TableContext:
    rows: list[ContentNode] = field(default_factory=list)
    cells: list[ContentNode] = field(default_factory=list)
    cell_content: list[ContentNode] = field(default_factory=list)
    # merge marker per cell definition of the row: "h", "v" or None
    cell_defs: list[str | None] = field(default_factory=list)
    pending_def: str | None = None
    cell_index: int = 0


@dataclass
class _Body:
    """One flow of paragraphs: the document body or a note."""

    target: list[ContentNode]
    props: _ParagraphProps = field(default_factory=_ParagraphProps)
    children: list[ContentNode] = field(default_factory=list)
    run_text: list[str] = field(default_factory=list)
    run_formatting: TextFormatting | None = None
    run_link: tuple[str, str] | None = None
    raw: list[str] = field(default_factory=list)
    tables: list[_TableContext] = field(default_factory=list)
    row_open: bool = False
    # list type from a {\listtext} marker, "" when unknown, None without marker
    marker: str | None = None


@dataclass
class _Frame:
    group: RtfGroup
    formatting: TextFormatting
    # characters to skip after \uN
    uc: int = 1
    position: int = 0
    on_close: Callable[[], None] | None = None


class _RtfWalker:
    def __init__(self, root: RtfGroup, config: OfficeParserConfig):
        self.root = root
        self.config = config
        self.fonts = _read_font_table(root)
        self.colors = _read_color_table(root)
        self.lists = _read_list_tables(root)
        self.heading_styles = _read_heading_styles(root)

        self.content: list[ContentNode] = []
        self.notes: list[ContentNode] = []
        self.fet = 0
        self.link: tuple[str, str] | None = None
        self.definition_depth = 1

        self._bodies = [_Body(target=self.content)]
        self._skip = 0
        self._high_surrogate: int | None = None
        self._note_count = 0
        self._list_ids: dict[int, str] = {}
        self._list_count = 0
        self._list_counters: dict[str, dict[int, int]] = {}
        self._last_list: tuple[str, str | None] | None = None

    @property
    def body(self) -> _Body:
        return self._bodies[-1]

    def walk(self) -> list[ContentNode]:
        stack = [_Frame(self.root, TextFormatting())]
        while stack:
            frame = stack[-1]
            if frame.position >= len(frame.group.content):
                stack.pop()
                self._skip = 0
                if stack:
                    self.raw("}")
                if frame.on_close is not None:
                    frame.on_close()
                continue

            item = frame.group.content[frame.position]
            frame.position += 1
            if isinstance(item, RtfGroup):
                child = self._open_group(item, frame)
                if child is not None:
                    self._skip = 0
                    stack.append(child)
            elif isinstance(item, RtfText):
                self._on_text(item.value, frame)
            else:
                self._on_control(item, frame)

        self.flush_paragraph()
        self.ensure_depth(0)
        if self.config.put_notes_at_last:
            self.content.extend(self.notes)
        return self.content

    def raw(self, text: str) -> None:
        if self.config.include_raw_content:
            self.body.raw.append(text)

    # -- groups ---------------------------------------------------------------

    def _open_group(self, group: RtfGroup, parent: _Frame) -> _Frame | None:
        destination = group.destination
        if destination in ("listtext", "pntext"):
            self.body.marker = _marker_type(group_text(group))
            return None
        if destination == "pn":
            for control in group.controls():
                if control.name.startswith("pn"):
                    handler = _CONTROL_HANDLERS.get(control.name)
                    if handler is not None:
                        handler(self, control, parent)
            return None
        if destination in SKIPPED_DESTINATIONS:
            return None
        if group.ignorable and destination not in WALKED_IGNORABLE:
            return None

        frame = _Frame(group, replace(parent.formatting), uc=parent.uc)
        if destination == "footnote":
            if self.config.ignore_notes:
                return None
            frame.on_close = self._start_note(group)
        elif destination == "field":
            frame.on_close = self._start_field(group)
        elif destination == "nesttableprops":
            frame.on_close = self._start_nested_definitions()
        self.raw("{")
        return frame

    def _start_note(self, group: RtfGroup) -> Callable[[], None]:
        self.flush_run()
        self._note_count += 1
        note_id = str(self._note_count)
        if self.fet == 1 or (self.fet == 2 and group.has_control("ftnalt")):
            note_type = "endnote"
        else:
            note_type = "footnote"
        self._bodies.append(_Body(target=[]))

        def close() -> None:
            self.flush_paragraph()
            self.ensure_depth(0)
            body = self._bodies.pop()
            note = ContentNode(
                type="note",
                children=body.target,
                metadata=NoteMetadata(note_id=note_id, note_type=note_type),
            )
            note.text = node_to_text(note, self.config.newline_delimiter)
            if self.config.put_notes_at_last:
                self.notes.append(note)
            else:
                self.flush_run()
                self.body.children.append(note)

        return close

    def _start_field(self, group: RtfGroup) -> Callable[[], None] | None:
        link = _field_link(group)
        if link is None:
            return None
        previous = self.link
        self.link = link

        def close() -> None:
            self.link = previous

        return close

    def _start_nested_definitions(self) -> Callable[[], None]:
        previous = self.definition_depth
        self.definition_depth = max(2, self.body.props.depth)

        def close() -> None:
            self.definition_depth = previous

        return close

    # -- text -----------------------------------------------------------------

    def _on_text(self, text: str, frame: _Frame) -> None:
        self.raw(_escape_text(text))
        if self._skip:
            dropped = min(self._skip, len(text))
            text = text[dropped:]
            self._skip -= dropped
        if text:
            self.append_text(text, frame)

    def _on_control(self, control: RtfControl, frame: _Frame) -> None:
        self.raw(_serialize_control(control))
        if self._skip and control.name != "u":
            # fallback characters may be written as control words too
            self._skip -= 1
            return
        handler = _CONTROL_HANDLERS.get(control.name)
        if handler is not None:
            handler(self, control, frame)

    def append_text(self, text: str, frame: _Frame) -> None:
        body = self.body
        formatting = frame.formatting
        if formatting.background_color is None and body.props.background_color:
            formatting = replace(formatting, background_color=body.props.background_color)
        if body.run_text and (formatting != body.run_formatting or self.link != body.run_link):
            self.flush_run()
        if not body.run_text:
            body.run_formatting = replace(formatting)
            body.run_link = self.link
        body.run_text.append(text)

    def append_code_point(self, code: int, frame: _Frame) -> None:
        if code < 0:
            code += 65536
        if 0xD800 <= code <= 0xDBFF:
            self._high_surrogate = code
        elif 0xDC00 <= code <= 0xDFFF and self._high_surrogate is not None:
            combined = 0x10000 + ((self._high_surrogate - 0xD800) << 10) + (code - 0xDC00)
            self._high_surrogate = None
            self.append_text(chr(combined), frame)
        else:
            self._high_surrogate = None
            self.append_text(chr(code), frame)
        self._skip = frame.uc

    def flush_run(self) -> None:
        body = self.body
        if not body.run_text:
            return
        link = body.run_link
        body.children.append(
            ContentNode(
                type="text",
                text="".join(body.run_text),
                formatting=body.run_formatting,
                metadata=TextMetadata(link=link[0], link_type=link[1]) if link else None,
            )
        )
        body.run_text = []

    # -- paragraphs -----------------------------------------------------------

    def flush_paragraph(self, min_depth: int = 0) -> None:
        body = self.body
        self.flush_run()
        if not body.children:
            return

        props = body.props
        depth = max(props.depth, min_depth, 1 if body.row_open else 0)
        self.ensure_depth(depth)
        node = self._paragraph_node()
        if depth:
            body.tables[depth - 1].cell_content.append(node)
        else:
            body.target.append(node)

        body.children = []
        body.raw = []
        body.marker = None
        props.end_paragraph()

    def _paragraph_node(self) -> ContentNode:
        body = self.body
        props = body.props
        children = body.children
        text = paragraph_text(children, self.config.newline_delimiter)
        raw_content = "".join(body.raw) if self.config.include_raw_content else None

        if props.heading_level:
            self._last_list = None
            return ContentNode(
                type="heading",
                text=text,
                children=children,
                metadata=HeadingMetadata(level=props.heading_level, alignment=props.alignment),
                raw_content=raw_content,
            )
        if props.is_list or body.marker is not None:
            return ContentNode(
                type="list",
                text=text,
                children=children,
                metadata=self._list_metadata(),
                raw_content=raw_content,
            )
        return ContentNode(
            type="paragraph",
            text=text,
            children=children,
            metadata=ParagraphMetadata(alignment=props.alignment),
            raw_content=raw_content,
        )

    def _list_metadata(self) -> ListMetadata:
        props = self.body.props
        table_type = None
        if props.list_key is not None:
            if props.list_key not in self._list_ids:
                self._list_ids[props.list_key] = self._new_list_id()
            list_id = self._list_ids[props.list_key]
            table_type = self.lists.list_type(props.list_key, props.level)
        elif self._last_list is not None:
            list_id = self._last_list[0]
        else:
            list_id = self._new_list_id()

        list_type = (
            table_type
            or props.list_type
            or self.body.marker
            or (self._last_list[1] if self._last_list else None)
            or "unordered"
        )
        self._last_list = (list_id, list_type)

        counters = self._list_counters.setdefault(list_id, {})
        item_index = counters.get(props.level, -1) + 1
        counters[props.level] = item_index
        for deeper in [level for level in counters if level > props.level]:
            del counters[deeper]

        return ListMetadata(
            list_type=list_type,
            indentation=props.level,
            item_index=item_index,
            list_id=list_id,
            alignment=props.alignment or "left",
        )

    def _new_list_id(self) -> str:
        self._list_count += 1
        return f"rtf-list-{self._list_count}"

    def heading_level(self, style_index: int) -> int | None:
        if style_index in self.heading_styles:
            return self.heading_styles[style_index]
        if 1 <= style_index <= 9:
            return style_index
        return None

    # -- tables ---------------------------------------------------------------

    def ensure_depth(self, depth: int) -> None:
        """Open or close tables until exactly ``depth`` are open."""
        tables = self.body.tables
        while len(tables) > depth:
            self._close_table()
        while len(tables) < depth:
            tables.append(_TableContext())

    def _close_table(self) -> None:
        body = self.body
        table = body.tables.pop()
        if table.cell_content:
            self._add_cell(table)
        if table.cells:
            self._finish_row(table)
        if not table.rows:
            return
        node = ContentNode(type="table", children=table.rows)
        node.text = node_to_text(node, self.config.newline_delimiter)
        if body.tables:
            body.tables[-1].cell_content.append(node)
        else:
            body.target.append(node)

    def _add_cell(self, table: _TableContext) -> None:
        col = table.cell_index
        merge = table.cell_defs[col] if col < len(table.cell_defs) else None
        table.cell_index += 1
        content, table.cell_content = table.cell_content, []

        if merge == "h" and table.cells:
            metadata = table.cells[-1].metadata
            metadata.col_span = (metadata.col_span or 1) + 1
            return
        if merge == "v":
            for row in reversed(table.rows):
                above = next((cell for cell in row.children if cell.metadata.col == col), None)
                if above is not None:
                    above.metadata.row_span = (above.metadata.row_span or 1) + 1
                    return

        cell = ContentNode(
            type="cell",
            children=content,
            metadata=CellMetadata(row=len(table.rows), col=col),
        )
        cell.text = node_to_text(cell, self.config.newline_delimiter)
        table.cells.append(cell)

    def _finish_row(self, table: _TableContext) -> None:
        row = ContentNode(type="row", children=table.cells)
        row.text = node_to_text(row, self.config.newline_delimiter)
        table.rows.append(row)
        table.cells = []
        table.cell_index = 0

    def end_cell(self, depth: int) -> None:
        self.flush_paragraph(min_depth=depth)
        self.ensure_depth(depth)
        self._add_cell(self.body.tables[depth - 1])

    def end_row(self, depth: int) -> None:
        body = self.body
        self.flush_paragraph(min_depth=depth)
        self.ensure_depth(depth)
        table = body.tables[depth - 1]
        if table.cell_content:
            self._add_cell(table)
        if table.cells:
            self._finish_row(table)
        table.cell_index = 0
        if depth == 1:
            # paragraphs after the last row need their own \intbl
            body.row_open = False
            body.props.depth = 0

    def definition_table(self) -> _TableContext:
        """The table the current row definition (``\\trowd``...``\\cellx``) belongs to."""
        depth = self.definition_depth
        if len(self.body.tables) < depth:
            self.ensure_depth(depth)
        return self.body.tables[depth - 1]


# =============================================================================
# Control word handlers
# =============================================================================

_Handler = Callable[[_RtfWalker, RtfControl, _Frame], None]


def _is_on(control: RtfControl) -> bool | None:
    return None if control.param == 0 else True


def _toggle(attribute: str) -> _Handler:
    def handler(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
        setattr(frame.formatting, attribute, _is_on(control))

    return handler


def _special_char(text: str) -> _Handler:
    def handler(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
        walker.append_text(text, frame)

    return handler


def _align(alignment: str) -> _Handler:
    def handler(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
        walker.body.props.alignment = alignment

    return handler


def _on_plain(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    frame.formatting = TextFormatting()


def _on_ulnone(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    frame.formatting.underline = None


def _on_font_size(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None and control.param > 0:
        frame.formatting.size = f"{control.param / 2:g}pt"


def _on_font(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param in walker.fonts:
        frame.formatting.font = walker.fonts[control.param]


def _on_color(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None:
        frame.formatting.color = walker.colors.get(control.param)


def _on_background(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None:
        frame.formatting.background_color = walker.colors.get(control.param)


def _on_paragraph_background(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None:
        walker.body.props.background_color = walker.colors.get(control.param)


def _on_subscript(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    frame.formatting.subscript = _is_on(control)
    frame.formatting.superscript = None


def _on_superscript(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    frame.formatting.superscript = _is_on(control)
    frame.formatting.subscript = None


def _on_nosupersub(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    frame.formatting.subscript = None
    frame.formatting.superscript = None


def _on_unicode(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None:
        walker.append_code_point(control.param, frame)


def _on_unicode_skip(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None and control.param >= 0:
        frame.uc = control.param


def _on_note_kind(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.fet = control.param or 0


def _on_par(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.flush_paragraph()


def _on_pard(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.body.props = _ParagraphProps()


def _on_style(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    level = walker.heading_level(control.param or 0)
    if level is not None:
        walker.body.props.heading_level = level


def _on_outline_level(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None and 0 <= control.param <= 8:
        walker.body.props.heading_level = control.param + 1


def _on_list_style(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None:
        props = walker.body.props
        props.is_list = True
        props.list_key = control.param


def _on_list_level(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None and control.param >= 0:
        props = walker.body.props
        props.is_list = True
        props.level = control.param


def _on_pn_level(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    props = walker.body.props
    props.is_list = True
    if control.param is not None and control.param >= 1:
        props.level = control.param - 1


def _on_pn_body(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.body.props.is_list = True


def _pn_list_type(list_type: str) -> _Handler:
    def handler(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
        props = walker.body.props
        props.is_list = True
        props.list_type = list_type

    return handler


def _on_trowd(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    body = walker.body
    if walker.definition_depth == 1:
        body.row_open = True
    table = walker.definition_table()
    table.cell_defs = []
    table.pending_def = None


def _cell_merge(marker: str | None) -> _Handler:
    def handler(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
        if walker.body.tables:
            walker.definition_table().pending_def = marker

    return handler


def _on_cellx(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if walker.body.tables:
        table = walker.definition_table()
        table.cell_defs.append(table.pending_def)
        table.pending_def = None


def _on_cell(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.end_cell(1)


def _on_nestcell(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.end_cell(max(2, walker.body.props.depth))


def _on_row(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.end_row(1)


def _on_nestrow(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    walker.end_row(max(2, walker.body.props.depth))


def _on_intbl(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    props = walker.body.props
    props.depth = max(props.depth, 1)


def _on_itap(walker: _RtfWalker, control: RtfControl, frame: _Frame) -> None:
    if control.param is not None and control.param >= 0:
        walker.body.props.depth = control.param


_CONTROL_HANDLERS: dict[str, _Handler] = {
    # character formatting
    "b": _toggle("bold"),
    "i": _toggle("italic"),
    "strike": _toggle("strikethrough"),
    "striked": _toggle("strikethrough"),
    "ulnone": _on_ulnone,
    "plain": _on_plain,
    "fs": _on_font_size,
    "f": _on_font,
    "cf": _on_color,
    "cb": _on_background,
    "highlight": _on_background,
    "chcbpat": _on_background,
    "cbpat": _on_paragraph_background,
    "sub": _on_subscript,
    "super": _on_superscript,
    "nosupersub": _on_nosupersub,
    # characters
    "u": _on_unicode,
    "uc": _on_unicode_skip,
    # paragraphs
    "par": _on_par,
    "sect": _on_par,
    "page": _on_par,
    "pard": _on_pard,
    "s": _on_style,
    "outlinelevel": _on_outline_level,
    # lists
    "ls": _on_list_style,
    "ilvl": _on_list_level,
    "pnlvl": _on_pn_level,
    "pnlvlbody": _on_pn_body,
    "pnlvlcont": _on_pn_body,
    "pnlvlblt": _pn_list_type("unordered"),
    "pnbullet": _pn_list_type("unordered"),
    # tables
    "trowd": _on_trowd,
    "cellx": _on_cellx,
    "clvmrg": _cell_merge("v"),
    "clmrg": _cell_merge("h"),
    "clvmgf": _cell_merge(None),
    "clmgf": _cell_merge(None),
    "cell": _on_cell,
    "nestcell": _on_nestcell,
    "row": _on_row,
    "nestrow": _on_nestrow,
    "intbl": _on_intbl,
    "itap": _on_itap,
    # notes
    "fet": _on_note_kind,
}
_CONTROL_HANDLERS.update({name: _toggle("underline") for name in UNDERLINE_CONTROLS})
_CONTROL_HANDLERS.update({name: _special_char(text) for name, text in SPECIAL_CHARS.items()})
_CONTROL_HANDLERS.update({name: _align(alignment) for name, alignment in ALIGNMENT.items()})
_CONTROL_HANDLERS.update({name: _pn_list_type("ordered") for name in ORDERED_PN})


# =============================================================================
# Main entry point
# =============================================================================


def read_rtf(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    """
    Parse an RTF file into the document tree.

    Args:
        file_like: BytesIO object containing the complete RTF file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.

    Returns:
        OfficeParserAST with ``type="rtf"`` and no attachments.

    Raises:
        FileCorruptedError: If the data does not start with an RTF header.
    """
    config = config or DEFAULT_CONFIG
    try:
        logger.debug("Reading RTF file")
        file_like.seek(0)
        data = file_like.read()
        if not data.lstrip(b"\xef\xbb\xbf \t\r\n").startswith(RTF_HEADER):
            raise FileCorruptedError(path)

        root = tokenize(data)
        walker = _RtfWalker(root, config)
        content = walker.walk()
        metadata = _read_info(root)
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.populate_from_path(path)

    logger.info("Extracted RTF: %d blocks", len(content))

    return OfficeParserAST(
        type="rtf",
        metadata=metadata,
        content=content,
        attachments=[],
        newline_delimiter=config.newline_delimiter,
    )
