"""
Error taxonomy for document injection

Every failure raised while processing a document derives from InjectError
and carries a human-readable summary plus the underlying cause, so the run
controller can report both and keep processing sibling documents.
"""

from pathlib import Path
from typing import Any, Optional


class InjectError(Exception):
    """
    Base class for all document processing failures

    Attributes:
        message: Human-readable summary
        cause: Underlying exception or detail text (may be None)
        path: Document being processed when the error occurred
    """

    def __init__(self, message: str, cause: Any = None, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.path = path

    def __str__(self) -> str:
        return self.message


class DocumentReadError(InjectError):
    """The document itself could not be read"""


class DocumentWriteError(InjectError):
    """A changed document could not be persisted"""


class UnmatchedMarkerError(InjectError):
    """A START marker without its END, or an END outside any block"""


class OverlappingBlocksError(InjectError):
    """Two blocks cross each other without one containing the other"""


class ConfigParseError(InjectError):
    """A block's configuration payload is not valid JSON"""


class ConfigValidationError(ConfigParseError):
    """A block's configuration is valid JSON but violates the schema"""


class InvalidBlockTypeError(ConfigValidationError):
    """A block's "type" is neither "command" nor "file" """


class ActionExecutionError(InjectError):
    """Reading a block's file or running a block's command failed"""


class EmptyContentError(InjectError):
    """A block resolved to no content once normalized"""
