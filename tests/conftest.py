"""
Shared fixtures: in-memory stand-ins for the file system and the shell
"""

from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import pytest
from loguru import logger

from mdinject.lib.resolver import ContentResolver, EnvironmentContext
from mdinject.lib.rewriter import DocumentRewriter


class FakeFiles:
    """Dict-backed reader/writer that records every call"""

    def __init__(self, files: Optional[Dict[str, str]] = None) -> None:
        self.files: Dict[str, str] = dict(files or {})
        self.reads: List[str] = []
        self.writes: List[Tuple[str, str]] = []

    def read(self, path: Path) -> str:
        key = str(path)
        self.reads.append(key)
        if key not in self.files:
            raise FileNotFoundError(key)
        return self.files[key]

    def write(self, path: Path, text: str) -> None:
        self.writes.append((str(path), text))
        self.files[str(path)] = text


class FakeShell:
    """Command runner returning canned output and recording calls"""

    def __init__(self, output: str = "") -> None:
        self.output = output
        self.outputs: Dict[str, str] = {}
        self.calls: List[Tuple[str, Dict[str, str], Optional[float]]] = []

    def __call__(self, command: str, environment: Mapping[str, str], timeout: Optional[float] = None) -> str:
        self.calls.append((command, dict(environment), timeout))
        return self.outputs.get(command, self.output)

    @property
    def last_env(self) -> Dict[str, str]:
        return self.calls[-1][1]


@pytest.fixture
def files() -> FakeFiles:
    return FakeFiles()


@pytest.fixture
def shell() -> FakeShell:
    return FakeShell()


@pytest.fixture
def rewriter(files: FakeFiles, shell: FakeShell) -> DocumentRewriter:
    """Rewriter wired to the fakes, with an empty system environment"""
    resolver = ContentResolver(
        environment=EnvironmentContext(system={}),
        run_command=shell,
        read_file=files.read,
    )
    return DocumentRewriter(
        resolver=resolver,
        read_document=files.read,
        write_document=files.write,
    )


def block_document(config: str, name: str = "", contents: str = "", prettier: bool = True) -> str:
    """Build a one-block document the way most tests need it"""
    ignore_line = "<!-- prettier-ignore -->\n" if prettier else ""
    return (
        f"\n<!-- CODEBLOCK_START{name} {config} -->\n"
        f"{ignore_line}{contents}\n"
        f"<!-- CODEBLOCK_END{name} -->"
    )


@pytest.fixture
def log_messages() -> Iterator[List[str]]:
    """Messages emitted through loguru while the test runs"""
    messages: List[str] = []
    handler = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler)
