"""
Block-detection data models

Type-safe structures produced by the marker tokenizer and the block
locator, and consumed by the document rewriter.
"""

from dataclasses import dataclass
from enum import Enum


class Dialect(Enum):
    """
    Comment syntaxes a directive marker can be written in

    The value is the (opener, closer) pair of comment delimiters.
    """
    HTML = ("<!--", "-->")       # <!-- CODEBLOCK_START {...} -->
    JSX = ("{/*", "*/}")         # {/* CODEBLOCK_START {...} */}

    @property
    def opener(self) -> str:
        return self.value[0]

    @property
    def closer(self) -> str:
        return self.value[1]

    def comment_wrap(self, text: str) -> str:
        """Render text as a single-line comment of this dialect"""
        return f"{self.opener} {text} {self.closer}"


class MarkerKind(Enum):
    START = "START"
    END = "END"


@dataclass
class MarkerToken:
    """
    A directive marker located in document text

    Produced by markers_tokenize() in source order. START tokens carry the
    raw configuration payload; END tokens carry an empty one.

    Attributes:
        kind: START or END
        dialect: Comment syntax the marker is written in
        name: Name suffix following the keyword ("" when unnamed,
              "_FOO" for CODEBLOCK_START_FOO)
        config_text: Raw JSON payload, whitespace-stripped (START only)
        start: Offset of the first character of the marker
        end: Offset one past the last character of the marker
        line_number: 1-based line of the marker start (for error reporting)

    Example:
        For source '<!-- CODEBLOCK_START_A {"value": "x"} -->' at offset 0:
        MarkerToken(kind=START, dialect=HTML, name="_A",
                    config_text='{"value": "x"}', start=0, end=41,
                    line_number=1)
    """
    kind: MarkerKind
    dialect: Dialect
    name: str
    config_text: str
    start: int
    end: int
    line_number: int

    def pairs_with(self, other: "MarkerToken") -> bool:
        """Check if other closes the block this START token opened"""
        return (
            self.kind is MarkerKind.START
            and other.kind is MarkerKind.END
            and self.dialect is other.dialect
            and self.name == other.name
        )


@dataclass
class Block:
    """
    A region delimited by a matched START/END marker pair

    The interior spans from the end of the START marker to the start of
    the END marker and is opaque to the locator: markers inside it are
    never paired.

    Attributes:
        opener: The START marker
        closer: The END marker
        interior: Current text between the two markers

    Example:
        For source '<!-- CODEBLOCK_START {"value": "a.js"} -->\\nold\\n<!-- CODEBLOCK_END -->':
        Block.interior == "\\nold\\n"
    """
    opener: MarkerToken
    closer: MarkerToken
    interior: str

    @property
    def name(self) -> str:
        return self.opener.name

    @property
    def dialect(self) -> Dialect:
        return self.opener.dialect

    @property
    def config_text(self) -> str:
        return self.opener.config_text

    @property
    def interior_start(self) -> int:
        return self.opener.end

    @property
    def interior_end(self) -> int:
        return self.closer.start
