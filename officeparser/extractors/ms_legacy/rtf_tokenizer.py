"""
RTF tokenizer.

Turns the raw bytes of an RTF file into a tree of groups, control words and
text runs. Nesting is tracked with an explicit stack, so deeply nested
input never touches the interpreter's recursion limit.

Token Tree
----------
    {\\rtf1\\ansi {\\fonttbl {\\f0 Arial;}} Hello \\b bold\\b0 }

    RtfGroup(destination="rtf1")
    ├── RtfControl("rtf", 1)
    ├── RtfControl("ansi")
    ├── RtfGroup(destination="fonttbl")
    │   └── RtfGroup  (\\f0 Arial;)
    ├── RtfText("Hello ")
    ├── RtfControl("b")
    ├── RtfText("bold")
    └── RtfControl("b", 0)

Decoding
--------
- ``\\'hh`` escapes and raw 8-bit bytes are decoded as Windows-1252.
- ``\\{``, ``\\}`` and ``\\\\`` become literal text.
- ``\\binN`` and the N bytes following it are dropped.
- Bare CR/LF bytes carry no meaning and are dropped; an escaped line
  break (``\\`` followed by CR or LF) is a paragraph mark.
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ENCODING = "cp1252"

# Control words that name the content of their group when they open it
DESTINATIONS = frozenset(
    {
        "rtf",
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "title",
        "subject",
        "author",
        "operator",
        "keywords",
        "comment",
        "doccomm",
        "creatim",
        "revtim",
        "printim",
        "buptim",
        "nofpages",
        "pict",
        "object",
        "result",
        "field",
        "fldinst",
        "fldrslt",
        "footnote",
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
        "list",
        "listlevel",
        "listoverride",
        "listtext",
        "pntext",
        "pn",
        "nesttableprops",
        "nonesttables",
        "shppict",
        "nonshppict",
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

_OPEN, _CLOSE, _BACKSLASH = 0x7B, 0x7D, 0x5C
_CR, _LF = 0x0D, 0x0A


@dataclass
class RtfText:
    value: str


@dataclass
class RtfControl:
    name: str
    param: int | None = None


@dataclass
class RtfGroup:
    content: list["RtfGroup | RtfControl | RtfText"] = field(default_factory=list)
    destination: str | None = None
    # opened with \*, readers that do not know the destination skip it
    ignorable: bool = False

    def controls(self) -> list[RtfControl]:
        return [item for item in self.content if isinstance(item, RtfControl)]

    def groups(self) -> list["RtfGroup"]:
        return [item for item in self.content if isinstance(item, RtfGroup)]

    def has_control(self, name: str) -> bool:
        return any(control.name == name for control in self.controls())


def _is_letter(byte: int) -> bool:
    return 0x41 <= byte <= 0x5A or 0x61 <= byte <= 0x7A


def _is_digit(byte: int) -> bool:
    return 0x30 <= byte <= 0x39


def decode_byte(code: int) -> str:
    return bytes([code]).decode(ENCODING, errors="replace")


class _Tokenizer:
    def __init__(self, data: bytes):
        self.data = data
        self.length = len(data)
        self.index = 0

    def run(self) -> RtfGroup:
        root = RtfGroup()
        stack = [root]
        while self.index < self.length:
            byte = self.data[self.index]
            group = stack[-1]
            if byte == _OPEN:
                self.index += 1
                child = RtfGroup()
                group.content.append(child)
                stack.append(child)
            elif byte == _CLOSE:
                self.index += 1
                # unbalanced closing braces never pop the root
                if len(stack) > 1:
                    stack.pop()
            elif byte == _BACKSLASH:
                self.index += 1
                self._control(group)
            elif byte in (_CR, _LF):
                self.index += 1
            else:
                self._text(group)

        if len(stack) > 1:
            logger.debug("RTF input ends with %d unclosed groups", len(stack) - 1)
        # the document group is the single child of the synthetic root
        if len(root.content) == 1 and isinstance(root.content[0], RtfGroup):
            return root.content[0]
        return root

    def _control(self, group: RtfGroup) -> None:
        if self.index >= self.length:
            return
        byte = self.data[self.index]

        if byte in (_OPEN, _CLOSE, _BACKSLASH):
            self.index += 1
            group.content.append(RtfText(chr(byte)))
            return
        if byte == 0x27:  # '
            digits = self.data[self.index + 1 : self.index + 3]
            self.index += 3
            try:
                code = int(digits.decode("ascii"), 16)
            except (UnicodeDecodeError, ValueError):
                return
            group.content.append(RtfText(decode_byte(code)))
            return
        if byte in (_CR, _LF):
            self.index += 1
            group.content.append(RtfControl("par"))
            return
        if not _is_letter(byte):
            # control symbol: \~ \- \_ \* \: \|
            self.index += 1
            name = chr(byte)
            group.content.append(RtfControl(name))
            if name == "*" and len(group.content) == 1:
                group.ignorable = True
            return

        start = self.index
        while self.index < self.length and _is_letter(self.data[self.index]):
            self.index += 1
        name = self.data[start : self.index].decode("ascii")

        param_start = self.index
        if self.index < self.length and self.data[self.index] == 0x2D:  # -
            self.index += 1
        digits_start = self.index
        while self.index < self.length and _is_digit(self.data[self.index]):
            self.index += 1
        param = None
        if self.index > digits_start:
            param = int(self.data[param_start : self.index])
        else:
            self.index = param_start

        # a single space delimits the control word and belongs to it
        if self.index < self.length and self.data[self.index] == 0x20:
            self.index += 1

        if name == "bin":
            if param is not None and param > 0:
                self.index += param
            return

        group.content.append(RtfControl(name, param))
        if group.destination is None and name in DESTINATIONS:
            first = group.content[0]
            opens_group = len(group.content) == 1 or (
                len(group.content) == 2 and isinstance(first, RtfControl) and first.name == "*"
            )
            if opens_group:
                group.destination = name

    def _text(self, group: RtfGroup) -> None:
        start = self.index
        while self.index < self.length and self.data[self.index] not in (
            _OPEN,
            _CLOSE,
            _BACKSLASH,
            _CR,
            _LF,
        ):
            self.index += 1
        chunk = self.data[start : self.index]
        if chunk:
            group.content.append(RtfText(chunk.decode(ENCODING, errors="replace")))


def tokenize(data: bytes) -> RtfGroup:
    """Parse RTF bytes into the document group."""
    return _Tokenizer(data).run()


def group_text(group: RtfGroup) -> str:
    """Concatenated text of ``group`` and all nested groups, in document order."""
    parts: list[str] = []
    stack: list[tuple[RtfGroup, int]] = [(group, 0)]
    while stack:
        current, position = stack.pop()
        for index in range(position, len(current.content)):
            item = current.content[index]
            if isinstance(item, RtfText):
                parts.append(item.value)
            elif isinstance(item, RtfGroup):
                stack.append((current, index + 1))
                stack.append((item, 0))
                break
    return "".join(parts)


def find_groups(group: RtfGroup, destination: str) -> list[RtfGroup]:
    """Groups below ``group`` with the given destination, in document order.

    Matching groups are not searched for further matches.
    """
    found = []
    stack = list(reversed(group.groups()))
    while stack:
        current = stack.pop()
        if current.destination == destination:
            found.append(current)
            continue
        stack.extend(reversed(current.groups()))
    return found
