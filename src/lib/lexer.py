"""
Pygments lexer for directive markers

Tokenizes a document into a flat stream in which every START and END
directive marker, in either comment dialect, is a single token and
everything else is Text. The block locator pairs the marker tokens.

Token types:
- Comment.Marker.Html.Start: <!-- CODEBLOCK_START_NAME {...} -->
- Comment.Marker.Html.End:   <!-- CODEBLOCK_END_NAME -->
- Comment.Marker.Jsx.Start:  {/* CODEBLOCK_START_NAME {...} */}
- Comment.Marker.Jsx.End:    {/* CODEBLOCK_END_NAME */}
- Text: everything else

The marker keyword prefix is configurable, so lexer classes are built per
prefix by lexer_forPrefix() and cached.
"""

import re
from functools import lru_cache
from typing import Dict, List, Tuple, Type

from pygments.lexer import RegexLexer
from pygments.token import Comment, Text, _TokenType

from ..models.blocks import Dialect, MarkerKind, MarkerToken


HtmlStart = Comment.Marker.Html.Start
HtmlEnd = Comment.Marker.Html.End
JsxStart = Comment.Marker.Jsx.Start
JsxEnd = Comment.Marker.Jsx.End

MARKER_TOKENS: Dict[_TokenType, Tuple[MarkerKind, Dialect]] = {
    HtmlStart: (MarkerKind.START, Dialect.HTML),
    HtmlEnd: (MarkerKind.END, Dialect.HTML),
    JsxStart: (MarkerKind.START, Dialect.JSX),
    JsxEnd: (MarkerKind.END, Dialect.JSX),
}


def marker_patterns(prefix: str) -> Dict[_TokenType, str]:
    """
    Build the marker regular expressions for a keyword prefix

    Group 1 is the name suffix, group 2 (START only) the raw configuration.
    The suffix stops at whitespace or at the dialect's closing delimiter, so
    "<!--CODEBLOCK_END_A-->" yields suffix "_A". The configuration may not
    contain another comment opener, so a START closed with the wrong
    dialect's delimiter never reaches into a following marker.

    Args:
        prefix: Marker keyword prefix (e.g., "CODEBLOCK")

    Returns:
        Dict mapping marker token type to its regex source
    """
    p = re.escape(prefix)
    return {
        HtmlStart: rf'<!--\s*{p}_START((?:(?!-->)\S)*)((?:(?!<!--|-->).)*?)-->',
        HtmlEnd: rf'<!--\s*{p}_END((?:(?!-->)\S)*)\s*-->',
        JsxStart: rf'\{{/\*\s*{p}_START((?:(?!\*/\}})\S)*)((?:(?!\{{/\*|\*/\}}).)*?)\*/\}}',
        JsxEnd: rf'\{{/\*\s*{p}_END((?:(?!\*/\}})\S)*)\s*\*/\}}',
    }


class MarkerLexer(RegexLexer):
    """
    Lexer for CODEBLOCK directive markers in markdown / MDX documents

    Example:
        <!-- CODEBLOCK_START {"value": "a.js"} -->text<!-- CODEBLOCK_END -->

    Tokens:
        <!-- CODEBLOCK_START {"value": "a.js"} --> → Comment.Marker.Html.Start
        text → Text
        <!-- CODEBLOCK_END --> → Comment.Marker.Html.End
    """

    name = 'Directive markers'
    aliases = ['mdinject-markers']
    filenames = []

    flags = re.MULTILINE | re.DOTALL

    prefix = 'CODEBLOCK'

    tokens = {
        'root': [
            *((pattern, token) for token, pattern in marker_patterns('CODEBLOCK').items()),

            # Everything else is text; stop at characters that can open a marker
            (r'[^<{]+', Text),
            (r'[<{]', Text),
        ],
    }


@lru_cache(maxsize=None)
def lexer_forPrefix(prefix: str) -> Type[MarkerLexer]:
    """
    Get a MarkerLexer class recognizing markers with the given prefix

    Args:
        prefix: Marker keyword prefix

    Returns:
        MarkerLexer subclass (the base class itself for "CODEBLOCK")
    """
    if prefix == MarkerLexer.prefix:
        return MarkerLexer
    root = [(pattern, token) for token, pattern in marker_patterns(prefix).items()]
    root.extend(MarkerLexer.tokens['root'][-2:])
    return type(f'MarkerLexer_{prefix}', (MarkerLexer,), {
        'prefix': prefix,
        'tokens': {'root': root},
    })


@lru_cache(maxsize=None)
def _patterns_compiled(prefix: str) -> Dict[_TokenType, re.Pattern]:
    return {
        token: re.compile(pattern, MarkerLexer.flags)
        for token, pattern in marker_patterns(prefix).items()
    }


def markers_tokenize(source: str, prefix: str = 'CODEBLOCK') -> List[MarkerToken]:
    """
    Scan source text for directive markers

    Runs the prefix's MarkerLexer over the text and converts each marker
    token into a MarkerToken carrying its dialect, name suffix, raw
    configuration and offsets. Text tokens are dropped.

    Args:
        source: Document text
        prefix: Marker keyword prefix

    Returns:
        MarkerTokens in document order

    Example:
        >>> tokens = markers_tokenize('{/* CODEBLOCK_END_X */}')
        >>> tokens[0].kind, tokens[0].dialect, tokens[0].name
        (<MarkerKind.END: 'END'>, <Dialect.JSX: ('{/*', '*/}')>, '_X')
    """
    lexer = lexer_forPrefix(prefix)()
    patterns = _patterns_compiled(prefix)
    markers: List[MarkerToken] = []

    for position, token, value in lexer.get_tokens_unprocessed(source):
        if token not in MARKER_TOKENS:
            continue
        kind, dialect = MARKER_TOKENS[token]
        match = patterns[token].match(value)
        config_text = match.group(2).strip() if kind is MarkerKind.START else ''
        markers.append(MarkerToken(
            kind=kind,
            dialect=dialect,
            name=match.group(1),
            config_text=config_text,
            start=position,
            end=position + len(value),
            line_number=source.count('\n', 0, position) + 1,
        ))

    return markers


def get_lexer(prefix: str = 'CODEBLOCK') -> MarkerLexer:
    """
    Get a MarkerLexer instance

    Returns:
        MarkerLexer instance ready for use with Pygments
    """
    return lexer_forPrefix(prefix)()
