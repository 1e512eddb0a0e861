"""
mdinject - Inject command output and file contents into markdown

Keeps fenced code blocks in documentation in sync with the commands and
files they illustrate.
"""

__version__ = "1.0.0"

from .lib import DocumentRewriter, ContentResolver, EnvironmentContext, LOG, state_connectToLogger

__all__ = ["DocumentRewriter", "ContentResolver", "EnvironmentContext", "LOG", "state_connectToLogger", "__version__"]
