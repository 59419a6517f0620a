"""
RTF Interchange Format.

Legacy encoding kept for rows written before the archive format existed.
Reads the RTF 1 subset produced by common text systems (including the
``\\cocoartf`` flavour) and writes a compact subset of it.

Supported character formatting: \\b \\i \\ul \\strike \\fsN \\cfN \\plain.
Text escapes: \\par \\line \\tab, \\'hh (cp1252), \\uN with \\ucN fallback
skipping, backslash-newline as a paragraph break, and the common named
punctuation words. Header destinations are skipped except \\colortbl,
which is parsed for \\cfN lookups.
"""

from dataclasses import dataclass, field, replace

from notesync.codec.document import RichDocument, TextRun
from notesync.core.exceptions import DecodeError, EncodeError

HEADER = b"{\\rtf"

_SKIPPED_DESTINATIONS = frozenset({
    "fonttbl",
    "stylesheet",
    "info",
    "pict",
    "header",
    "footer",
    "headerl",
    "headerr",
    "footerl",
    "footerr",
    "footnote",
    "expandedcolortbl",
    "listtable",
    "listoverridetable",
    "generator",
    "themedata",
    "latentstyles",
    "xmlnstbl",
    "rsidtbl",
    "mmathPr",
    "datastore",
    "colorschememapping",
    "filetbl",
    "revtbl",
    "object",
    "fldinst",
})

_NAMED_CHARACTERS = {
    "par": "\n",
    "line": "\n",
    "sect": "\n",
    "page": "\n",
    "tab": "\t",
    "emdash": "\u2014",
    "endash": "\u2013",
    "bullet": "\u2022",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "emspace": "\u2003",
    "enspace": "\u2002",
}


def is_rtf(data: bytes) -> bool:
    return data.startswith(HEADER)


# =============================================================================
# Writing
# =============================================================================


def _escape(text: str) -> str:
    out: list[str] = []
    for char in text:
        code = ord(char)
        if char == "\\":
            out.append("\\\\")
        elif char == "{":
            out.append("\\{")
        elif char == "}":
            out.append("\\}")
        elif char == "\n":
            out.append("\\par\n")
        elif char == "\t":
            out.append("\\tab ")
        elif 0x20 <= code < 0x7F:
            out.append(char)
        else:
            for unit in _utf16_units(char):
                signed = unit - 0x10000 if unit > 0x7FFF else unit
                out.append(f"\\u{signed}?")
    return "".join(out)


def _utf16_units(char: str) -> list[int]:
    encoded = char.encode("utf-16-le")
    return [int.from_bytes(encoded[i:i + 2], "little") for i in range(0, len(encoded), 2)]


def encode_rtf(document: RichDocument) -> bytes:
    """
    Encode a document as RTF.

    Raises:
        EncodeError: If a run holds text that is not valid Unicode
    """
    colors: list[str] = []
    for run in document.runs:
        if run.color and run.color.lower() not in colors:
            colors.append(run.color.lower())

    parts = ["{\\rtf1\\ansi\\ansicpg1252\\deff0\\uc1", "{\\fonttbl{\\f0\\fswiss Helvetica;}}"]
    if colors:
        table = "".join(
            f"\\red{int(c[1:3], 16)}\\green{int(c[3:5], 16)}\\blue{int(c[5:7], 16)};"
            for c in colors
        )
        parts.append("{\\colortbl;" + table + "}")
    parts.append("\\f0\n")

    for position, run in enumerate(document.runs):
        if not run.text:
            continue
        try:
            run.text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(f"Run {position} is not valid Unicode text: {e.reason}") from e
        words = []
        if run.bold:
            words.append("\\b")
        if run.italic:
            words.append("\\i")
        if run.underline:
            words.append("\\ul")
        if run.strikethrough:
            words.append("\\strike")
        if run.font_size is not None:
            words.append(f"\\fs{round(run.font_size * 2)}")
        if run.color:
            words.append(f"\\cf{colors.index(run.color.lower()) + 1}")
        prefix = "".join(words)
        parts.append("{" + prefix + (" " if prefix else "") + _escape(run.text) + "}")

    parts.append("}")
    return "".join(parts).encode("ascii")


# =============================================================================
# Reading
# =============================================================================


@dataclass
class _GroupState:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    font_size: float | None = None
    color_index: int = 0
    skip: bool = False
    destination: str | None = None
    unicode_skip: int = 1

    def plain(self) -> "_GroupState":
        return replace(
            self,
            bold=False,
            italic=False,
            underline=False,
            strikethrough=False,
            font_size=None,
            color_index=0,
        )


@dataclass
class _Reader:
    data: str
    pos: int = 0
    state: _GroupState = field(default_factory=_GroupState)
    stack: list[_GroupState] = field(default_factory=list)
    runs: list[tuple[_GroupState, list[str]]] = field(default_factory=list)
    colors: list[str | None] = field(default_factory=lambda: [None])
    pending_color: list[int] = field(default_factory=list)
    fallback_remaining: int = 0

    def color_for(self, index: int) -> str | None:
        if 0 <= index < len(self.colors):
            return self.colors[index]
        return None

    def emit(self, text: str) -> None:
        if self.fallback_remaining > 0:
            self.fallback_remaining -= 1
            return
        if self.state.skip:
            return
        if self.state.destination == "colortbl":
            if text == ";":
                self._finish_color()
            return
        style = (
            self.state.bold,
            self.state.italic,
            self.state.underline,
            self.state.strikethrough,
            self.state.font_size,
            self.color_for(self.state.color_index),
        )
        if self.runs and self._style_of(self.runs[-1][0]) == style:
            self.runs[-1][1].append(text)
        else:
            self.runs.append((replace(self.state), [text]))

    def _style_of(self, state: _GroupState) -> tuple:
        return (
            state.bold,
            state.italic,
            state.underline,
            state.strikethrough,
            state.font_size,
            self.color_for(state.color_index),
        )

    def _finish_color(self) -> None:
        if len(self.pending_color) == 3:
            red, green, blue = self.pending_color
            self.colors.append(f"#{red:02x}{green:02x}{blue:02x}")
        elif self.colors != [None] or self.pending_color:
            self.colors.append(None)
        self.pending_color = []

    def parse(self) -> RichDocument:
        data = self.data
        depth = 0
        while self.pos < len(data):
            char = data[self.pos]
            if char == "{":
                self.stack.append(replace(self.state))
                depth += 1
                self.pos += 1
            elif char == "}":
                if not self.stack:
                    raise DecodeError("Unbalanced closing brace")
                self.state = self.stack.pop()
                depth -= 1
                self.pos += 1
                if depth == 0:
                    return self._document()
            elif char == "\\":
                self._control()
            elif char in "\r\n":
                self.pos += 1
            else:
                self.emit(char)
                self.pos += 1
        raise DecodeError("Document truncated before closing brace")

    def _control(self) -> None:
        data = self.data
        self.pos += 1
        if self.pos >= len(data):
            raise DecodeError("Dangling backslash")
        char = data[self.pos]

        if char.isalpha():
            start = self.pos
            while self.pos < len(data) and data[self.pos].isalpha():
                self.pos += 1
            word = data[start:self.pos]
            num_start = self.pos
            if self.pos < len(data) and data[self.pos] == "-":
                self.pos += 1
            while self.pos < len(data) and data[self.pos].isdigit():
                self.pos += 1
            raw = data[num_start:self.pos]
            param = int(raw) if raw and raw != "-" else None
            if self.pos < len(data) and data[self.pos] == " ":
                self.pos += 1
            self._word(word, param)
            return

        self.pos += 1
        if char in "\\{}":
            self.emit(char)
        elif char == "'":
            hex_digits = data[self.pos:self.pos + 2]
            if len(hex_digits) < 2:
                raise DecodeError("Truncated hex escape")
            try:
                byte = int(hex_digits, 16)
            except ValueError as e:
                raise DecodeError(f"Bad hex escape {hex_digits!r}") from e
            self.pos += 2
            self.emit(bytes([byte]).decode("cp1252", errors="replace"))
        elif char == "*":
            self.state.skip = True
        elif char in "\r\n":
            self.emit("\n")
        elif char == "~":
            self.emit("\u00a0")
        elif char == "_":
            self.emit("-")

    def _word(self, word: str, param: int | None) -> None:
        state = self.state
        on = param is None or param != 0

        if word in _SKIPPED_DESTINATIONS:
            state.skip = True
        elif word == "colortbl":
            state.destination = "colortbl"
        elif state.destination == "colortbl" and word in ("red", "green", "blue"):
            self.pending_color.append(max(0, min(255, param or 0)))
        elif word == "b":
            state.bold = on
        elif word == "i":
            state.italic = on
        elif word == "ul":
            state.underline = on
        elif word in ("ulnone", "ul0"):
            state.underline = False
        elif word == "strike":
            state.strikethrough = on
        elif word == "fs" and param:
            state.font_size = param / 2
        elif word == "cf":
            state.color_index = param or 0
        elif word == "plain":
            self.state = state.plain()
        elif word == "uc":
            state.unicode_skip = max(0, param or 0)
        elif word == "u" and param is not None:
            code = param + 0x10000 if param < 0 else param
            self.emit(chr(code))
            self.fallback_remaining = state.unicode_skip
        elif word in _NAMED_CHARACTERS:
            self.emit(_NAMED_CHARACTERS[word])

    def _document(self) -> RichDocument:
        runs = []
        for state, pieces in self.runs:
            text = "".join(pieces)
            text = text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")
            runs.append(TextRun(
                text=text,
                bold=state.bold,
                italic=state.italic,
                underline=state.underline,
                strikethrough=state.strikethrough,
                font_size=state.font_size,
                color=self.color_for(state.color_index),
            ))
        return RichDocument(runs=runs).normalized()


def decode_rtf(data: bytes) -> RichDocument:
    """
    Decode RTF bytes.

    Raises:
        DecodeError: If the data is not RTF or is truncated or unbalanced
    """
    if not is_rtf(data):
        raise DecodeError("Missing RTF header")
    return _Reader(data.decode("latin-1")).parse()
