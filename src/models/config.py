"""
Per-block configuration model

BlockConfig is the validated, defaulted form of the JSON payload that
follows a START marker:

    <!-- CODEBLOCK_START {"type": "command", "value": "ls -1"} -->
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BlockType(str, Enum):
    """Where a block's content comes from"""
    COMMAND = "command"    # stdout of a shell command
    FILE = "file"          # contents of a file next to the document


VALID_TYPES = tuple(member.value for member in BlockType)


class BlockConfig(BaseModel):
    """
    Validated configuration of one block

    Attributes:
        type: Content source, "command" or "file" (default "file")
        value: Command line or document-relative file path
        trim: Strip leading blank lines and trailing whitespace from content
        hideValue: Omit the "$ <command>" / "File: <path>" header line
        language: Fence language tag (inferred when omitted)
        environment: Extra variables for commands; "$NAME" is substituted
                     from the process environment
        ignore: Leave the block (and any markers inside it) untouched

    Example:
        >>> BlockConfig.model_validate({"value": "bar.js"}).type
        <BlockType.FILE: 'file'>
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: BlockType = BlockType.FILE
    value: str = ""
    trim: bool = True
    hideValue: bool = False
    language: Optional[str] = None
    environment: Dict[str, str] = Field(default_factory=dict)
    ignore: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def type_check(cls, value):
        valid = ", ".join(f'"{name}"' for name in VALID_TYPES)
        if value not in VALID_TYPES:
            raise ValueError(f'Unexpected "type" of "{value}". Valid types are {valid}')
        return value

    @model_validator(mode="after")
    def value_check(self) -> "BlockConfig":
        # Ignored blocks are never resolved, so they may omit a value
        if not self.ignore and not self.value:
            raise ValueError('"value" must be a non-empty string')
        return self
