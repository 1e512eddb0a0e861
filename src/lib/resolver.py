"""
Content resolver

Obtains the raw content of a block from its configured source and
normalizes it:

- type "file": reads the path relative to the document's directory
- type "command": runs the command with a layered environment
  (process env if forwarded < FORCE_COLOR < block "environment") and
  strips ANSI escape sequences from its stdout

Then applies the trim policy and rejects empty content.

File reading and command execution are delegated to injectable callables
so the engine can be driven without touching disk or spawning processes.
"""

import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from ..models.config import BlockConfig, BlockType
from .errors import ActionExecutionError, EmptyContentError
from .log import LOG


# (command, environment, timeout) -> stdout
CommandRunner = Callable[[str, Mapping[str, str], Optional[float]], str]

# path -> text
FileReader = Callable[[Path], str]

# CSI sequences (colors, cursor movement) and OSC sequences (hyperlinks, titles)
ANSI_PATTERN = re.compile(
    r'[\u001b\u009b][\[\]()#;?]*'
    r'(?:(?:(?:;[-a-zA-Z\d/#&.:=?%@~_]+)*|[a-zA-Z\d]+(?:;[-a-zA-Z\d/#&.:=?%@~_]*)*)?\u0007'
    r'|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PR-TZcf-ntqry=><~]))'
)

ENV_REFERENCE = re.compile(r'\$(\w+)')


def ansi_strip(text: str) -> str:
    """Remove ANSI escape sequences from text"""
    return ANSI_PATTERN.sub('', text)


def file_read(path: Path) -> str:
    """Default file reader: UTF-8 text of path"""
    return Path(path).read_text(encoding='utf-8')


def command_run(command: str, environment: Mapping[str, str], timeout: Optional[float] = None) -> str:
    """
    Default command runner: execute command through the shell

    Args:
        command: Shell command line
        environment: Complete environment for the child process
        timeout: Seconds to wait before killing the command (None waits forever)

    Returns:
        Captured standard output

    Raises:
        ActionExecutionError: If the command cannot start, exits non-zero,
                              or exceeds the timeout
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            env=dict(environment),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ActionExecutionError(f"Command timed out after {timeout}s: {command}", cause=e) from e
    except OSError as e:
        raise ActionExecutionError(f"Command could not be started: {command}", cause=e) from e

    if result.returncode != 0:
        raise ActionExecutionError(
            f"Command exited with status {result.returncode}: {command}",
            cause=result.stderr.strip() or None,
        )
    return result.stdout


@dataclass
class EnvironmentContext:
    """
    Environment visible to block commands

    Built once per run from the process environment and threaded into the
    resolver instead of reading os.environ ad hoc.

    Attributes:
        system: Snapshot of the process environment
        forward: Pass the system environment through to commands
        force_color: Default FORCE_COLOR value
    """
    system: Dict[str, str] = field(default_factory=dict)
    forward: bool = True
    force_color: str = "0"

    @classmethod
    def fromProcess(cls, forward: bool = True, force_color: str = "0") -> "EnvironmentContext":
        return cls(system=dict(os.environ), forward=forward, force_color=force_color)

    def value_substitute(self, value: str) -> str:
        """
        Replace $NAME tokens that name a system variable with its value

        Unknown names are left as written; no other shell expansion happens.

        Example:
            >>> EnvironmentContext(system={"HOME": "/root"}).value_substitute("$HOME/x $NOPE")
            '/root/x $NOPE'
        """
        return ENV_REFERENCE.sub(
            lambda match: self.system.get(match.group(1), match.group(0)),
            value,
        )

    def command_environment(self, config: BlockConfig) -> Dict[str, str]:
        """
        Layer the environment for one block's command

        Precedence, lowest first: forwarded system environment,
        FORCE_COLOR default, the block's configured environment.
        """
        environment: Dict[str, str] = dict(self.system) if self.forward else {}
        environment['FORCE_COLOR'] = self.force_color
        for name, value in config.environment.items():
            environment[name] = self.value_substitute(value)
        return environment


def content_trim(content: str) -> str:
    """
    Drop leading blank lines and trailing whitespace

    Indentation of the first non-blank line is kept.

    Example:
        >>> content_trim("\\n\\n  indented\\nline\\n\\n\\n")
        '  indented\\nline'
    """
    return re.sub(r'\A(?:[ \t]*\r?\n)+', '', content).rstrip()


@dataclass
class ContentResolver:
    """
    Resolves BlockConfigs into normalized content

    Attributes:
        environment: EnvironmentContext for command blocks
        run_command: Command runner (defaults to command_run)
        read_file: File reader (defaults to file_read)
        timeout: Per-command timeout in seconds, None for no limit
    """
    environment: EnvironmentContext = field(default_factory=EnvironmentContext.fromProcess)
    run_command: CommandRunner = command_run
    read_file: FileReader = file_read
    timeout: Optional[float] = None

    def content_fetch(self, config: BlockConfig, document: Path) -> str:
        """
        Obtain raw content for a block

        Args:
            config: Validated block configuration
            document: Path of the document containing the block

        Returns:
            Raw file text or ANSI-stripped command stdout

        Raises:
            ActionExecutionError: If the file cannot be read or the command fails
        """
        if config.type is BlockType.FILE:
            path = Path(document).parent / config.value
            LOG(f"Reading {path}", level=2)
            try:
                return self.read_file(path)
            except ActionExecutionError:
                raise
            except Exception as e:
                raise ActionExecutionError(f"Error reading file: {path}", cause=e) from e

        LOG(f"Running: {config.value}", level=2)
        command_env = self.environment.command_environment(config)
        try:
            output = self.run_command(config.value, command_env, self.timeout)
        except ActionExecutionError:
            raise
        except Exception as e:
            raise ActionExecutionError(f"Error running command: {config.value}", cause=e) from e
        return ansi_strip(output)

    def content_resolve(self, config: BlockConfig, document: Path) -> str:
        """
        Obtain and normalize content for a block

        Args:
            config: Validated block configuration
            document: Path of the document containing the block

        Returns:
            Content after the trim policy, never empty

        Raises:
            ActionExecutionError: If fetching fails
            EmptyContentError: If nothing but whitespace remains
        """
        content = self.content_fetch(config, document)
        if config.trim:
            content = content_trim(content)

        if not content.strip():
            raise EmptyContentError(
                f"No content was returned for {config.type.value} \"{config.value}\"",
            )
        return content
