"""
Document discovery

Expands the run's glob pattern into the list of documents to process,
optionally skipping files that git ignores and paths that pass through
symbolic links.
"""

import glob
import subprocess
from pathlib import Path
from typing import List

from .log import LOG


def _run_git(args: List[str], cwd: Path, stdin: str = "") -> subprocess.CompletedProcess:
    """Run a git command and return the result."""
    return subprocess.run(
        ["git"] + args,
        cwd=cwd,
        input=stdin,
        capture_output=True,
        text=True,
    )


def symlink_traversed(root: Path, relative: str) -> bool:
    """
    Check if reaching root/relative descends through a symbolically linked directory

    The document itself may be a symbolic link; only its parent directories count.
    """
    current = root
    for part in Path(relative).parts[:-1]:
        current = current / part
        if current.is_symlink():
            return True
    return False


def gitignored_filter(root: Path, candidates: List[str]) -> List[str]:
    """
    Drop candidates that git reports as ignored

    Uses "git check-ignore --stdin". Outside a git work tree (or without git)
    every candidate is kept.

    Args:
        root: Directory the candidate paths are relative to
        candidates: Relative paths

    Returns:
        Candidates that are not ignored, order preserved
    """
    if not candidates:
        return candidates
    try:
        result = _run_git(["check-ignore", "--stdin"], root, stdin="\n".join(candidates) + "\n")
    except OSError:
        LOG("git not available, not applying ignore rules", level=2)
        return candidates

    # 0: some paths ignored, 1: none ignored, anything else: not a repository
    if result.returncode not in (0, 1):
        LOG("Not a git work tree, not applying ignore rules", level=2)
        return candidates

    ignored = {line.strip() for line in result.stdout.splitlines() if line.strip()}
    return [candidate for candidate in candidates if candidate not in ignored]


def documents_find(
    root: Path,
    pattern: str = "**/*.md",
    use_gitignore: bool = True,
    follow_symbolic_links: bool = True,
) -> List[Path]:
    """
    Find documents below root matching pattern

    Args:
        root: Directory to search from
        pattern: Glob pattern relative to root ("**" matches any depth)
        use_gitignore: Skip files ignored by git
        follow_symbolic_links: Keep paths below symbolically linked directories

    Returns:
        Sorted document paths relative to root

    Example:
        >>> documents_find(Path("."), "docs/*.md")
        [PosixPath('docs/index.md'), PosixPath('docs/usage.md')]
    """
    root = Path(root)
    candidates = sorted(
        match for match in glob.glob(pattern, root_dir=root, recursive=True)
        if (root / match).is_file()
    )
    if not follow_symbolic_links:
        candidates = [match for match in candidates if not symlink_traversed(root, match)]
    if use_gitignore:
        candidates = gitignored_filter(root, candidates)

    LOG(f"Discovered {len(candidates)} document(s) matching {pattern}", level=2)
    return [Path(match) for match in candidates]
