"""
Models package for mdinject

Contains data structures and type definitions for the injection pipeline.
"""

from .state import ProgramState, pipeline
from .blocks import Block, Dialect, MarkerKind, MarkerToken
from .config import BlockConfig, BlockType
from .results import DocumentResult, DocumentStatus

__all__ = [
    "ProgramState",
    "pipeline",
    "Block",
    "Dialect",
    "MarkerKind",
    "MarkerToken",
    "BlockConfig",
    "BlockType",
    "DocumentResult",
    "DocumentStatus",
]
