#!/usr/bin/env python3
"""
md-inject - Keep markdown code blocks in sync with commands and files

Finds directive blocks in markdown (and MDX) documents and replaces their
bodies with the output of a command or the contents of a file:

    <!-- CODEBLOCK_START {"type": "command", "value": "mytool --help"} -->
    <!-- CODEBLOCK_END -->

becomes

    <!-- CODEBLOCK_START {"type": "command", "value": "mytool --help"} -->
    <!-- prettier-ignore -->
    ~~~~~~~~~~bash
    $ mytool --help

    usage: mytool [-h] ...
    ~~~~~~~~~~

    <!-- CODEBLOCK_END -->

Philosophy:
    - Idempotent: documents already up to date are never written
    - Surgical: only text between START and END markers changes
    - Isolated: a failing document never stops the others

Usage:
    md-inject [--glob-pattern "**/*.md"] [--root DIR] [-q | -v]

Examples:
    # Update every markdown file in the repository
    md-inject

    # Only the docs folder, verbose
    md-inject --glob-pattern "docs/**/*.mdx" -vv

    # Do not leak the shell environment into block commands
    md-inject --no-system-environment
"""

import os
import sys
import contextvars
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .config import appsettings, AppSettings
from .lib import (
    DocumentRewriter,
    ContentResolver,
    EnvironmentContext,
    error_report,
    __version__,
    LOG,
    LOG_warn,
    state_connectToLogger,
)
from .lib.ci import ci_detect
from .lib.discovery import documents_find
from .models import DocumentResult, DocumentStatus, ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    prog="md-inject",
    description="md-inject - inject command output and file contents into markdown code blocks",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--root", dest="root", default=None, type=Path,
    help="Directory to discover documents in (default: current directory)",
)

parser.add_argument(
    "-b", "--block-prefix", dest="blockPrefix", default=None, type=str,
    help=f"Marker keyword prefix (default: {appsettings.block_prefix})",
)

parser.add_argument(
    "-g", "--glob-pattern", dest="globPattern", default=None, type=str,
    help=f"Glob pattern of documents to process (default: {appsettings.glob_pattern})",
)

parser.add_argument(
    "--no-follow-symbolic-links", dest="followSymbolicLinks", action="store_false", default=None,
    help="Do not follow symbolic links during discovery",
)

parser.add_argument(
    "--no-gitignore", dest="useGitignore", action="store_false", default=None,
    help="Also process documents ignored by git",
)

parser.add_argument(
    "-e", "--no-system-environment", dest="useSystemEnvironment", action="store_false", default=None,
    help="Do not pass the system environment to block commands",
)

parser.add_argument(
    "-t", "--timeout", dest="timeout", default=None, type=float,
    help="Seconds before a block command is abandoned",
)

parser.add_argument(
    "-j", "--jobs", dest="jobs", default=None, type=int,
    help="Number of documents to process in parallel",
)

parser.add_argument(
    "-q", "--quiet", action="store_true", default=False,
    help="Only report errors",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=None,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def state_build(options: Namespace, settings: AppSettings = appsettings) -> ProgramState:
    """
    Merge settings and CLI options into the initial ProgramState.

    CLI options win over MDINJECT_* settings; -q forces verbosity 0 and
    each -v adds one level above the default of 1.
    """
    verbosity = 0 if (options.quiet or settings.quiet) else 1
    if options.verbosity and not options.quiet:
        verbosity = 1 + options.verbosity
    options = Namespace(**{**vars(options), "verbosity": verbosity})

    return ProgramState.state_createFromNamespace(
        options,
        blockPrefix=settings.block_prefix,
        globPattern=settings.glob_pattern,
        followSymbolicLinks=settings.follow_symbolic_links,
        useGitignore=settings.use_gitignore,
        useSystemEnvironment=settings.use_system_environment,
        timeout=settings.command_timeout,
        jobs=settings.jobs,
    )


def rewriter_build(state: ProgramState, settings: AppSettings = appsettings) -> DocumentRewriter:
    """Assemble the DocumentRewriter for a run"""
    environment = EnvironmentContext.fromProcess(
        forward=state.useSystemEnvironment,
        force_color=settings.force_color,
    )
    return DocumentRewriter(
        resolver=ContentResolver(environment=environment, timeout=state.timeout),
        prefix=state.blockPrefix,
        suppression=settings.format_suppression,
    )


def env_check(inputstate: ProgramState, settings: AppSettings = appsettings) -> ProgramState:
    """
    Decide whether the run should happen at all.

    Pull request builds in CI are skipped (with a warning) so that
    generated documentation is only committed from regular builds.

    Returns:
        ProgramState with added field:
            - skipped: True on a pull request build
    """
    state = inputstate.copy()

    ci = ci_detect(os.environ)
    LOG(f"CI: {ci.isCi}, pull request: {ci.isPr}", level=2)

    if settings.skip_on_pull_request and ci.isPr:
        LOG_warn("md-inject will not run during pull request builds")
        state.skipped = True
    return state


def documents_discover(inputstate: ProgramState) -> ProgramState:
    """
    Find documents to process.

    Returns:
        ProgramState with added field:
            - documents: Paths relative to root
    """
    state = inputstate.copy()
    if state.skipped:
        return state

    LOG(f"Collecting documents matching {state.globPattern}", level=2)
    state.documents = [
        state.root / document
        for document in documents_find(
            state.root,
            state.globPattern,
            use_gitignore=state.useGitignore,
            follow_symbolic_links=state.followSymbolicLinks,
        )
    ]
    return state


def documents_inject(
    inputstate: ProgramState,
    rewriter: Optional[DocumentRewriter] = None,
    settings: AppSettings = appsettings,
) -> ProgramState:
    """
    Run the rewriter over every discovered document.

    Documents are independent; with jobs > 1 they are processed on a
    thread pool. Results keep discovery order either way.

    Args:
        inputstate: Program state with documents
        rewriter: Rewriter to use (built from state and settings if None)
        settings: Run settings the rewriter is built from

    Returns:
        ProgramState with added field:
            - results: One DocumentResult per document
    """
    state = inputstate.copy()
    if state.skipped:
        return state

    rewriter = rewriter or rewriter_build(state, settings)

    results: List[DocumentResult]
    if state.jobs > 1 and len(state.documents) > 1:
        LOG(f"Processing {len(state.documents)} documents with {state.jobs} workers", level=2)
        with ThreadPoolExecutor(max_workers=state.jobs) as ex:
            # Each worker runs in a copy of this context so LOG sees the state
            futures = [
                ex.submit(contextvars.copy_context().run, rewriter.document_process, document)
                for document in state.documents
            ]
            results = [future.result() for future in futures]
    else:
        results = [rewriter.document_process(document) for document in state.documents]

    state.results = results
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Report failures and a summary, and set the exit status.

    Returns:
        ProgramState with added field:
            - exitCode: 1 if any document failed, else 0
    """
    state: ProgramState = inputstate.copy()
    if state.skipped:
        state.exitCode = 0
        return state

    for result in state.results:
        if result.failed:
            error_report(result.error)

    updated = state.results_count(DocumentStatus.UPDATED)
    unchanged = state.results_count(DocumentStatus.UNCHANGED)
    failed = state.results_count(DocumentStatus.FAILED)
    LOG(f"{len(state.results)} document(s): {updated} updated, {unchanged} unchanged, {failed} failed", level=1)

    state.exitCode = 1 if failed else 0
    return state


def run(
    state: ProgramState,
    rewriter: Optional[DocumentRewriter] = None,
    settings: AppSettings = appsettings,
) -> ProgramState:
    """
    Execute the full run pipeline for a prepared state.

    Args:
        state: Initial ProgramState
        rewriter: Optional pre-built rewriter (injected collaborators)
        settings: Run settings (pull request policy, rewriter defaults)

    Returns:
        Final ProgramState (see exitCode)
    """
    state_connectToLogger(state)
    return pipeline(
        state,
        lambda s: env_check(s, settings),
        documents_discover,
        lambda s: documents_inject(s, rewriter, settings),
        results_report,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point - update every matching document.

    Orchestrates the run pipeline:
        1. env_check: Skip pull request builds
        2. documents_discover: Expand the glob pattern
        3. documents_inject: Rewrite each document's blocks
        4. results_report: Report failures and set the exit status

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit status
    """
    options = parser.parse_args(argv)
    state = state_build(options)
    final = run(state)
    return final.exitCode


if __name__ == "__main__":
    sys.exit(main())
