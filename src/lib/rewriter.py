"""
Document rewriter

Applies the block locator to a document and regenerates the body of every
non-ignored block:

    locate → parse config → resolve content → format body → substitute

START and END markers are kept verbatim; only the text between them is
replaced. The new text is assembled in document order and written back
only when it differs from what was read, so a second run over an
up-to-date document performs no write.

A failure in any block aborts the whole document: nothing is written and
the error is returned in the DocumentResult for the run controller to
report.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List

from ..models.blocks import Block
from ..models.results import DocumentResult, DocumentStatus
from .blockconfig import config_parse
from .errors import DocumentReadError, DocumentWriteError, InjectError
from .formatter import body_format, interior_format
from .locator import blocks_locate
from .log import LOG, LOG_error
from .resolver import ContentResolver, FileReader, file_read


# (path, text) -> None
FileWriter = Callable[[Path, str], None]


def file_write(path: Path, text: str) -> None:
    """Default file writer: UTF-8 text to path"""
    Path(path).write_text(text, encoding='utf-8')


@dataclass
class DocumentRewriter:
    """
    Rewrites documents so each block reflects its configured content

    Attributes:
        resolver: ContentResolver for command and file blocks
        prefix: Marker keyword prefix
        suppression: Keyword of the format-suppression comment
        read_document: Reader for the documents themselves
        write_document: Writer, called at most once per changed document
    """
    resolver: ContentResolver = field(default_factory=ContentResolver)
    prefix: str = 'CODEBLOCK'
    suppression: str = 'prettier-ignore'
    read_document: FileReader = file_read
    write_document: FileWriter = file_write

    def interior_render(self, block: Block, path: Path) -> str:
        """
        Compute the new interior of one block

        Args:
            block: Located block
            path: Document containing the block

        Returns:
            Replacement interior, or the current interior for ignored blocks

        Raises:
            ConfigParseError: If the block configuration is invalid
            ActionExecutionError: If content cannot be obtained
            EmptyContentError: If the content is empty
        """
        config = config_parse(block.config_text)
        if config.ignore:
            LOG(f"Ignoring block{block.name} at line {block.opener.line_number}", level=2)
            return block.interior

        content = self.resolver.content_resolve(config, path)
        body = body_format(config, content, dialect=block.dialect, suppression=self.suppression)
        return interior_format(body)

    def text_rewrite(self, source: str, path: Path) -> str:
        """
        Rewrite every block in a document's text

        Args:
            source: Current document text
            path: Document path (file blocks resolve relative to its directory)

        Returns:
            New document text (identical to source when nothing changed)
        """
        blocks = blocks_locate(source, self.prefix)
        return self.blocks_substitute(source, blocks, path)

    def blocks_substitute(self, source: str, blocks: List[Block], path: Path) -> str:
        """Splice regenerated interiors into source in document order"""
        parts: List[str] = []
        position = 0
        for block in blocks:
            parts.append(source[position:block.interior_start])
            parts.append(self.interior_render(block, path))
            position = block.interior_end
        parts.append(source[position:])
        return ''.join(parts)

    def document_process(self, path: Path) -> DocumentResult:
        """
        Run the rewriter over one document

        Args:
            path: Document to process

        Returns:
            DocumentResult; errors are captured rather than raised
        """
        LOG(f"Processing {path}", level=2)
        try:
            try:
                source = self.read_document(path)
            except Exception as e:
                raise DocumentReadError("Error reading file", cause=e) from e

            blocks = blocks_locate(source, self.prefix)
            updated = self.blocks_substitute(source, blocks, path)

            if updated == source:
                LOG(f"{path}: up to date", level=2)
                return DocumentResult(path=path, status=DocumentStatus.UNCHANGED, blocks=len(blocks))

            try:
                self.write_document(path, updated)
            except Exception as e:
                raise DocumentWriteError("Error writing file", cause=e) from e
            LOG(f"{path}: updated {len(blocks)} block(s)", level=1)
            return DocumentResult(path=path, status=DocumentStatus.UPDATED, blocks=len(blocks))

        except InjectError as e:
            e.path = path
            return DocumentResult(path=path, status=DocumentStatus.FAILED, error=e)


def error_report(error: InjectError) -> None:
    """
    Report a document failure: the summary, then the underlying cause

    Example output:
        foo.md: Error parsing config:
        {foo: bar}
        Expecting property name enclosed in double quotes: line 1 column 2 (char 1)
    """
    prefix = f"{error.path}: " if error.path is not None else ""
    LOG_error(f"{prefix}{error.message}")
    if error.cause is not None:
        LOG_error(error.cause)
