"""
Config parser for block payloads

Turns the raw JSON text captured after a START marker into a validated
BlockConfig. Validation runs in order: JSON syntax, then "type", then the
rest of the schema ("value" present and non-empty, field types).
"""

import json

from pydantic import ValidationError

from ..models.config import BlockConfig
from .errors import ConfigParseError, ConfigValidationError, InvalidBlockTypeError


def validationError_describe(error: dict) -> str:
    """Render one pydantic error entry without its "Value error, " prefix"""
    ctx_error = error.get('ctx', {}).get('error')
    if ctx_error is not None:
        return str(ctx_error)
    location = '.'.join(str(part) for part in error.get('loc', ()))
    return f'"{location}": {error["msg"]}' if location else error['msg']


def config_parse(raw: str) -> BlockConfig:
    """
    Parse and validate a block's configuration payload

    Args:
        raw: JSON text as written in the START marker (already stripped)

    Returns:
        BlockConfig with defaults applied

    Raises:
        ConfigParseError: If raw is not a JSON object
        InvalidBlockTypeError: If "type" is not "command" or "file"
        ConfigValidationError: If any other field is invalid

    Example:
        >>> config_parse('{"type": "command", "value": "echo hi"}').value
        'echo hi'
        >>> config_parse('{foo: bar}')
        Traceback (most recent call last):
        ...
        mdinject.lib.errors.ConfigParseError: Error parsing config:
        {foo: bar}
    """
    summary = f"Error parsing config:\n{raw}"

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigParseError(summary, cause=e) from e

    if not isinstance(data, dict):
        raise ConfigParseError(summary, cause=f"expected a JSON object, got {type(data).__name__}")

    try:
        return BlockConfig.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        for error in errors:
            if error.get('loc') == ('type',):
                raise InvalidBlockTypeError(validationError_describe(error), cause=raw) from e
        details = "; ".join(validationError_describe(error) for error in errors)
        raise ConfigValidationError(details, cause=raw) from e
