"""
Loguru-backed logging gated by the run's verbosity.

The active ProgramState is published through a ContextVar, so any module
can call LOG() without being handed the state. Worker threads started by
the run controller execute inside a copy of the caller's context and see
the same state.

Verbosity:
    0   quiet: warnings and errors only
    1   per-document updates and the run summary
    2   discovery, skipped blocks, commands and files being read
    3   marker tokenizing and pairing detail

Usage:
    from mdinject.lib.log import LOG, LOG_error, state_connectToLogger

    state_connectToLogger(state)
    LOG("README.md: updated 2 block(s)")
    LOG(f"Running: {command}", level=2)
    LOG_error("foo.md: Error reading file")
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

_program_state: ContextVar[Optional[Any]] = ContextVar('mdinject_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{module: <10}</cyan>:<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """Publish state (anything with a verbosity attribute) to LOG() calls in this context"""
    _program_state.set(state)


def verbosity_current() -> int:
    """Verbosity of the connected state, 0 when none is connected"""
    state = _program_state.get()
    return getattr(state, 'verbosity', 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message when the connected state's verbosity reaches level.

    Level 1 messages are emitted as INFO, deeper levels as DEBUG.

    Args:
        message: Text to log
        level: Verbosity required (1 normal, 2 verbose, 3 trace)
        **kwargs: Extra loguru record fields
    """
    if verbosity_current() < level:
        return
    emit = logger.opt(depth=1)
    if level <= 1:
        emit.info(message, **kwargs)
    else:
        emit.debug(message, **kwargs)


def LOG_warn(message: str) -> None:
    """Log a warning regardless of verbosity"""
    logger.opt(depth=1).warning(message)


def LOG_error(message: Any) -> None:
    """
    Log an error regardless of verbosity.

    Args:
        message: Summary text, or a cause object (rendered with str())
    """
    logger.opt(depth=1).error("{}", message)
