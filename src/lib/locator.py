"""
Block locator

Pairs the marker tokens of a document into blocks.

The locator runs in three phases:
1. Tokenizing: markers_tokenize() yields START/END markers in source order
2. Pairing: one stack of open STARTs per (dialect, name suffix); an END
   closes the most recent open START with the same dialect and suffix, so
   differently named blocks may interleave
3. Nesting: blocks inside another block are dropped, since the outer
   block's interior is regenerated as a whole

A block configured with "ignore": true is opaque. Markers strictly inside
it are inert text and stay verbatim. END markers that close nothing while
some block is open are inert as well; they sit in an interior that is
about to be overwritten.

Example:
    >>> blocks = blocks_locate(
    ...     '<!-- CODEBLOCK_START_A {"value": "a.js"} -->\\n<!-- CODEBLOCK_END_A -->'
    ... )
    >>> blocks[0].name
    '_A'
"""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from ..models.blocks import Block, Dialect, MarkerKind, MarkerToken
from .blockconfig import config_parse
from .errors import ConfigParseError, OverlappingBlocksError, UnmatchedMarkerError
from .lexer import markers_tokenize
from .log import LOG


def marker_describe(source: str, marker: MarkerToken) -> str:
    """Render a marker as a one-line snippet for error messages"""
    text = " ".join(source[marker.start:marker.end].split())
    return f"line {marker.line_number}: {text}"


def marker_ignored(marker: MarkerToken) -> bool:
    """
    Check whether a START marker's configuration asks to be ignored

    Invalid configurations count as not ignored; the rewriter reports them
    when it parses the block.
    """
    try:
        return config_parse(marker.config_text).ignore
    except ConfigParseError:
        return False


def block_make(source: str, opener: MarkerToken, closer: MarkerToken) -> Block:
    LOG(f"Paired block{opener.name} at line {opener.line_number}", level=3)
    return Block(opener=opener, closer=closer, interior=source[opener.end:closer.start])


def blocks_pair(source: str, markers: List[MarkerToken]) -> List[Block]:
    """
    Pair START/END marker tokens into blocks

    Args:
        source: Document text the markers were found in
        markers: MarkerTokens in document order

    Returns:
        Every paired block, ordered by START position (may nest or overlap)

    Raises:
        UnmatchedMarkerError: If an END appears while no block is open, or
                              a START is never closed
    """
    blocks: List[Block] = []
    open_starts: Dict[Tuple[Dialect, str], List[MarkerToken]] = defaultdict(list)
    ignoring: Optional[MarkerToken] = None

    for marker in markers:
        if ignoring is not None:
            if ignoring.pairs_with(marker):
                blocks.append(block_make(source, ignoring, marker))
                ignoring = None
            continue

        stack = open_starts[(marker.dialect, marker.name)]
        if marker.kind is MarkerKind.START:
            if marker_ignored(marker):
                ignoring = marker
            else:
                stack.append(marker)
            continue

        if stack:
            blocks.append(block_make(source, stack.pop(), marker))
        elif not any(open_starts.values()):
            raise UnmatchedMarkerError(
                "Found an END marker without a preceding START marker",
                cause=marker_describe(source, marker),
            )

    unclosed = [start for stack in open_starts.values() for start in stack]
    if ignoring is not None:
        unclosed.append(ignoring)
    if unclosed:
        first = min(unclosed, key=lambda start: start.start)
        raise UnmatchedMarkerError(
            "Found a START marker without a matching END marker",
            cause=marker_describe(source, first),
        )

    return sorted(blocks, key=lambda block: block.opener.start)


def blocks_outermost(source: str, blocks: List[Block]) -> List[Block]:
    """
    Keep only blocks that are not inside another block

    Args:
        source: Document text
        blocks: Paired blocks ordered by START position

    Returns:
        Non-overlapping blocks in document order

    Raises:
        OverlappingBlocksError: If two blocks cross without containment
    """
    outermost: List[Block] = []
    for block in blocks:
        if outermost and block.opener.start < outermost[-1].closer.end:
            enclosing = outermost[-1]
            if block.closer.end <= enclosing.closer.end:
                LOG(f"Block{block.name} at line {block.opener.line_number} is inside "
                    f"block{enclosing.name}, skipping", level=3)
                continue
            raise OverlappingBlocksError(
                "Found blocks that overlap without one containing the other",
                cause=f"{marker_describe(source, enclosing.opener)} overlaps "
                      f"{marker_describe(source, block.opener)}",
            )
        outermost.append(block)
    return outermost


def blocks_locate(source: str, prefix: str = 'CODEBLOCK') -> List[Block]:
    """
    Locate every top-level block in a document

    Args:
        source: Document text
        prefix: Marker keyword prefix

    Returns:
        Blocks in document order; empty when the document has no markers

    Raises:
        UnmatchedMarkerError: On structural pairing failure
        OverlappingBlocksError: When two blocks cross each other
    """
    markers = markers_tokenize(source, prefix)
    LOG(f"Found {len(markers)} directive markers", level=3)
    return blocks_outermost(source, blocks_pair(source, markers))
