"""
Block formatter

Builds the canonical body of a block from its configuration and resolved
content:

    <!-- prettier-ignore -->
    ~~~~~~~~~~js
    File: bar.js

    console.log('baz')
    ~~~~~~~~~~

The fence is ten tildes so that ``` and ~~~ fences inside the injected
content cannot close it early. The format-suppression comment is written
in the block's own comment dialect.
"""

from pathlib import PurePosixPath
from typing import Dict, Optional

from pygments.lexers import find_lexer_class_for_filename

from ..models.blocks import Dialect
from ..models.config import BlockConfig, BlockType


FENCE = '~' * 10

DEFAULT_LANGUAGE = 'bash'

# Extensions whose conventional fence tag is not the extension itself
LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    'yml': 'yaml',
    'mdx': 'jsx',
    'mjs': 'js',
    'cjs': 'js',
    'mts': 'ts',
    'cts': 'ts',
    'h': 'c',
    'hpp': 'cpp',
    'htm': 'html',
    'markdown': 'md',
}


def language_infer(value: str) -> Optional[str]:
    """
    Infer a fence language tag from a file path

    Known extensions map through LANGUAGE_BY_EXTENSION; any other
    extension is used as-is when pygments recognizes the file type.

    Args:
        value: File path as written in the block configuration

    Returns:
        Language tag, or None when nothing recognizable was found

    Example:
        >>> language_infer("bar.js")
        'js'
        >>> language_infer("config/app.yml")
        'yaml'
        >>> language_infer("shell-scripts/foo") is None
        True
    """
    path = PurePosixPath(value.replace('\\', '/'))
    extension = path.suffix[1:].lower()
    if not extension:
        return None
    if extension in LANGUAGE_BY_EXTENSION:
        return LANGUAGE_BY_EXTENSION[extension]

    lexer = find_lexer_class_for_filename(path.name)
    return extension if lexer is not None else None


def language_resolve(config: BlockConfig) -> str:
    """
    Pick the fence language for a block

    Order: explicit "language", inference from a file value, "bash".
    """
    if config.language:
        return config.language
    if config.type is BlockType.FILE:
        return language_infer(config.value) or DEFAULT_LANGUAGE
    return DEFAULT_LANGUAGE


def header_make(config: BlockConfig) -> str:
    """Header line naming the block's source ("$ cmd" or "File: path")"""
    if config.type is BlockType.COMMAND:
        return f"$ {config.value}"
    return f"File: {config.value}"


def body_format(
    config: BlockConfig,
    content: str,
    dialect: Dialect = Dialect.HTML,
    suppression: str = 'prettier-ignore',
) -> str:
    """
    Render the canonical body of a block

    Args:
        config: Validated block configuration
        content: Normalized content from the resolver
        dialect: Comment dialect of the block's markers
        suppression: Keyword of the format-suppression comment

    Returns:
        Body text without leading or trailing newline

    Example:
        >>> config = BlockConfig(type="command", value="echo hi")
        >>> print(body_format(config, "hi"))
        <!-- prettier-ignore -->
        ~~~~~~~~~~bash
        $ echo hi
        <BLANKLINE>
        hi
        ~~~~~~~~~~
    """
    lines = [
        dialect.comment_wrap(suppression),
        f"{FENCE}{language_resolve(config)}",
    ]
    if not config.hideValue:
        lines.extend([header_make(config), ""])
    lines.extend([content, FENCE])
    return "\n".join(lines)


def interior_format(body: str) -> str:
    """Wrap a body as the full interior between START and END markers"""
    return f"\n{body}\n\n"
