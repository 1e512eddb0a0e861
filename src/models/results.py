"""
Document processing outcome models
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..lib.errors import InjectError


class DocumentStatus(Enum):
    UNCHANGED = "unchanged"    # every block already up to date, nothing written
    UPDATED = "updated"        # document written once
    FAILED = "failed"          # nothing written, see error


@dataclass
class DocumentResult:
    """
    Outcome of running the rewriter over one document

    Attributes:
        path: Document path as discovered
        status: UNCHANGED, UPDATED or FAILED
        blocks: Number of blocks located (ignored ones included)
        error: The failure for FAILED documents
    """
    path: Path
    status: DocumentStatus
    blocks: int = 0
    error: Optional['InjectError'] = None

    @property
    def failed(self) -> bool:
        return self.status is DocumentStatus.FAILED
