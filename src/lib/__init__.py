"""
mdinject - Inject command output and file contents into markdown

Locates CODEBLOCK directive blocks in documents and keeps their fenced
bodies in sync with a command's output or a file's contents.
"""

__version__ = "1.0.0"

from .rewriter import DocumentRewriter, error_report
from .resolver import ContentResolver, EnvironmentContext
from .locator import blocks_locate
from .blockconfig import config_parse
from .formatter import body_format
from .log import LOG, LOG_error, LOG_warn, state_connectToLogger

__all__ = [
    "DocumentRewriter",
    "error_report",
    "ContentResolver",
    "EnvironmentContext",
    "blocks_locate",
    "config_parse",
    "body_format",
    "LOG",
    "LOG_error",
    "LOG_warn",
    "state_connectToLogger",
    "__version__",
]
