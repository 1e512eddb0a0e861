"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing run stages.
"""

from argparse import Namespace
from functools import reduce
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, List, Callable
from dataclasses import dataclass, field, fields

from .results import DocumentResult, DocumentStatus


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the run pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the run progresses.

    Pipeline stages and their state additions:
        - Initial: root, verbosity and the run-level options
        - env_check: skipped
        - documents_discover: documents
        - documents_inject: results
        - results_report: exitCode

    Attributes:
        root: Directory documents are discovered in (commands run from the cwd)
        verbosity: Logging verbosity level (0-3)
        blockPrefix: Marker keyword prefix
        globPattern: Discovery glob pattern
        followSymbolicLinks: Follow symbolic links during discovery
        useGitignore: Skip git-ignored documents
        useSystemEnvironment: Forward the process environment to commands
        timeout: Per-command timeout in seconds (None for no limit)
        jobs: Documents processed in parallel
        skipped: Run skipped (pull request build)
        documents: Discovered document paths (relative to root)
        results: One DocumentResult per processed document
        exitCode: Process exit status of the run
    """

    # CLI arguments
    root: Path = field(default=Path("."))
    verbosity: int = field(default=1)
    blockPrefix: str = field(default="CODEBLOCK")
    globPattern: str = field(default="**/*.md")
    followSymbolicLinks: bool = field(default=True)
    useGitignore: bool = field(default=True)
    useSystemEnvironment: bool = field(default=True)
    timeout: Optional[float] = field(default=None)
    jobs: int = field(default=1)

    # Pipeline state
    skipped: bool = field(default=False)
    documents: List[Path] = field(default_factory=list)
    results: List[DocumentResult] = field(default_factory=list)
    exitCode: int = field(default=0)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, **defaults: Any
    ) -> "ProgramState":
        """
        Build a ProgramState from parsed CLI options.

        Options that are not state fields (e.g. quiet) are dropped, and
        options left at None fall back to defaults, then to field defaults.

        Args:
            options: Parsed CLI arguments
            **defaults: Values for fields the CLI left unset (typically settings)

        Returns:
            ProgramState for the run

        Example:
            >>> state = ProgramState.state_createFromNamespace(
            ...     Namespace(jobs=None, quiet=False), jobs=4)
            >>> state.jobs
            4
        """
        names = {f.name for f in fields(cls)}
        given = {name: value for name, value in vars(options).items()
                 if name in names and value is not None}
        return cls(**{**defaults, **given})

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)

    def results_count(self, status: DocumentStatus) -> int:
        """Number of documents that ended with status"""
        return sum(1 for result in self.results if result.status is status)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Thread a state through run stages in order.

    Each stage takes the previous stage's ProgramState and returns a new
    one; stages copy rather than mutate their input.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            documents_discover,
            documents_inject,
            results_report
        )
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
