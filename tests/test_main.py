"""
Run controller tests - option merging, discovery, CI detection and the
full pipeline over real files
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from mdinject.__main__ import main, parser, run, state_build
from mdinject.config import AppSettings
from mdinject.lib.ci import ci_detect
from mdinject.lib.discovery import documents_find
from mdinject.lib.errors import DocumentReadError
from mdinject.lib.resolver import ContentResolver, EnvironmentContext
from mdinject.lib.rewriter import DocumentRewriter, error_report
from mdinject.models import DocumentStatus, ProgramState


FILE_BLOCK = '<!-- CODEBLOCK_START {"value": "snippet.py"} -->\n<!-- CODEBLOCK_END -->\n'


@pytest.fixture(autouse=True)
def outside_ci(monkeypatch):
    """Runs under test are never pull request builds unless a test says so"""
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("BUILD_NUMBER", raising=False)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None)


def state_for(root: Path, **fields) -> ProgramState:
    return ProgramState(root=root, verbosity=0, useGitignore=False, **fields)


class TestStateBuild:
    """CLI options merged over settings"""

    def test_defaults_from_settings(self, settings):
        state = state_build(parser.parse_args([]), settings)

        assert state.root == Path(".")
        assert state.verbosity == 1
        assert state.blockPrefix == "CODEBLOCK"
        assert state.globPattern == "**/*.md"
        assert state.useGitignore is True
        assert state.timeout is None
        assert state.jobs == 1

    def test_settings_fill_unset_options(self):
        settings = AppSettings(_env_file=None, block_prefix="SNIPPET", jobs=3, command_timeout=10)
        state = state_build(parser.parse_args([]), settings)

        assert (state.blockPrefix, state.jobs, state.timeout) == ("SNIPPET", 3, 10)

    def test_options_override_settings(self):
        settings = AppSettings(_env_file=None, block_prefix="SNIPPET", jobs=3)
        options = parser.parse_args([
            "-b", "EXAMPLE", "-j", "2", "-g", "docs/*.mdx", "--root", "site",
            "--no-gitignore", "--no-follow-symbolic-links", "-e", "-t", "1.5",
        ])
        state = state_build(options, settings)

        assert state.blockPrefix == "EXAMPLE"
        assert state.jobs == 2
        assert state.globPattern == "docs/*.mdx"
        assert state.root == Path("site")
        assert state.useGitignore is False
        assert state.followSymbolicLinks is False
        assert state.useSystemEnvironment is False
        assert state.timeout == 1.5

    @pytest.mark.parametrize("argv,expected", [
        ([], 1),
        (["-v"], 2),
        (["-vv"], 3),
        (["-q"], 0),
        (["-q", "-vv"], 0),
    ])
    def test_verbosity(self, settings, argv, expected):
        assert state_build(parser.parse_args(argv), settings).verbosity == expected

    def test_quiet_setting(self):
        state = state_build(parser.parse_args([]), AppSettings(_env_file=None, quiet=True))
        assert state.verbosity == 0


class TestCIDetection:
    """Pull request builds are recognized from the environment"""

    @pytest.mark.parametrize("environment", [
        {"CI": "true", "GITHUB_EVENT_NAME": "pull_request"},
        {"CI": "true", "TRAVIS_PULL_REQUEST": "42"},
        {"CI": "1", "CIRCLE_PULL_REQUEST": "https://github.com/o/r/pull/1"},
        {"CI": "true", "CI_MERGE_REQUEST_ID": "7"},
        {"BUILD_NUMBER": "12", "CHANGE_ID": "3"},
    ])
    def test_pull_request(self, environment):
        assert ci_detect(environment).isPr is True

    @pytest.mark.parametrize("environment", [
        {},
        {"GITHUB_EVENT_NAME": "pull_request"},
        {"CI": "true", "GITHUB_EVENT_NAME": "push"},
        {"CI": "true", "TRAVIS_PULL_REQUEST": "false"},
        {"CI": "false", "CIRCLE_PULL_REQUEST": "x"},
    ])
    def test_not_pull_request(self, environment):
        assert ci_detect(environment).isPr is False

    def test_plain_ci(self):
        info = ci_detect({"CI": "true"})
        assert (info.isCi, info.isPr) == (True, False)


class TestDiscovery:
    """Glob expansion and the discovery filters"""

    def test_recursive_pattern_sorted(self, tmp_path):
        (tmp_path / "docs" / "api").mkdir(parents=True)
        for name in ("README.md", "docs/guide.md", "docs/api/ref.md", "docs/notes.txt"):
            (tmp_path / name).write_text("x")

        found = documents_find(tmp_path, "**/*.md", use_gitignore=False)

        assert found == [Path("README.md"), Path("docs/api/ref.md"), Path("docs/guide.md")]

    def test_pattern_is_relative_to_root(self, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "README.md").write_text("x")
        (tmp_path / "docs" / "page.mdx").write_text("x")

        assert documents_find(tmp_path, "docs/*.mdx", use_gitignore=False) == [Path("docs/page.mdx")]

    def test_directories_are_not_documents(self, tmp_path):
        (tmp_path / "folder.md").mkdir()
        assert documents_find(tmp_path, "*.md", use_gitignore=False) == []

    def test_symbolic_links(self, tmp_path):
        """Linked documents are always kept; linked directories only when following"""
        (tmp_path / "real.md").write_text("x")
        (tmp_path / "alias.md").symlink_to(tmp_path / "real.md")
        (tmp_path / "real_dir").mkdir()
        (tmp_path / "real_dir" / "doc.md").write_text("x")
        (tmp_path / "linked").symlink_to(tmp_path / "real_dir", target_is_directory=True)

        assert documents_find(tmp_path, "*.md", use_gitignore=False, follow_symbolic_links=False) == [
            Path("alias.md"),
            Path("real.md"),
        ]
        assert documents_find(tmp_path, "*/*.md", use_gitignore=False) == [
            Path("linked/doc.md"),
            Path("real_dir/doc.md"),
        ]
        assert documents_find(tmp_path, "*/*.md", use_gitignore=False, follow_symbolic_links=False) == [
            Path("real_dir/doc.md"),
        ]

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_gitignored_documents_skipped(self, tmp_path):
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
        (tmp_path / ".gitignore").write_text("generated/\nscratch.md\n")
        (tmp_path / "generated").mkdir()
        for name in ("README.md", "scratch.md", "generated/out.md"):
            (tmp_path / name).write_text("x")

        assert documents_find(tmp_path, "**/*.md") == [Path("README.md")]
        assert len(documents_find(tmp_path, "**/*.md", use_gitignore=False)) == 3


class TestErrorReport:
    """Failure output: summary line, then the cause"""

    def test_read_error(self, log_messages):
        error = DocumentReadError("Error reading file", cause=FileNotFoundError("no such file"), path=Path("foo.md"))
        error_report(error)

        assert log_messages == ["foo.md: Error reading file", "no such file"]

    def test_without_cause(self, log_messages):
        error_report(DocumentReadError("Error reading file", path=Path("foo.md")))
        assert log_messages == ["foo.md: Error reading file"]


class TestRun:
    """The full pipeline over a temporary directory"""

    def test_updates_documents(self, tmp_path):
        (tmp_path / "snippet.py").write_text("print('hi')\n")
        (tmp_path / "README.md").write_text("# Demo\n\n" + FILE_BLOCK)

        final = run(state_for(tmp_path))

        assert final.exitCode == 0
        assert [result.status for result in final.results] == [DocumentStatus.UPDATED]
        assert (tmp_path / "README.md").read_text() == (
            "# Demo\n\n"
            '<!-- CODEBLOCK_START {"value": "snippet.py"} -->\n'
            "<!-- prettier-ignore -->\n"
            "~~~~~~~~~~py\n"
            "File: snippet.py\n"
            "\n"
            "print('hi')\n"
            "~~~~~~~~~~\n"
            "\n"
            "<!-- CODEBLOCK_END -->\n"
        )

        again = run(state_for(tmp_path))
        assert [result.status for result in again.results] == [DocumentStatus.UNCHANGED]

    def test_failure_does_not_stop_siblings(self, tmp_path, log_messages):
        (tmp_path / "snippet.py").write_text("x = 1")
        (tmp_path / "bad.md").write_text("<!-- CODEBLOCK_START {foo: bar} --><!-- CODEBLOCK_END -->")
        (tmp_path / "good.md").write_text(FILE_BLOCK)

        final = run(state_for(tmp_path))

        assert final.exitCode == 1
        assert [result.status for result in final.results] == [DocumentStatus.FAILED, DocumentStatus.UPDATED]
        assert (tmp_path / "bad.md").read_text() == "<!-- CODEBLOCK_START {foo: bar} --><!-- CODEBLOCK_END -->"
        assert "x = 1" in (tmp_path / "good.md").read_text()
        assert log_messages[0] == f"{tmp_path / 'bad.md'}: Error parsing config:\n{{foo: bar}}"

    def test_injected_rewriter(self, tmp_path, shell):
        shell.output = "v1.2.3"
        (tmp_path / "a.md").write_text(
            '<!-- CODEBLOCK_START {"type": "command", "value": "tool --version", '
            '"environment": {"TOKEN": "$SECRET"}} -->\n<!-- CODEBLOCK_END -->'
        )
        rewriter = DocumentRewriter(resolver=ContentResolver(
            environment=EnvironmentContext(system={"SECRET": "s3"}, forward=False),
            run_command=shell,
            timeout=2,
        ))

        final = run(state_for(tmp_path), rewriter)

        assert final.exitCode == 0
        assert shell.calls == [("tool --version", {"FORCE_COLOR": "0", "TOKEN": "s3"}, 2)]
        assert "$ tool --version\n\nv1.2.3\n~~~~~~~~~~" in (tmp_path / "a.md").read_text()

    def test_parallel_jobs_keep_order(self, tmp_path):
        (tmp_path / "snippet.py").write_text("x = 1")
        names = [f"doc{index}.md" for index in range(6)]
        for name in names:
            (tmp_path / name).write_text(FILE_BLOCK)

        final = run(state_for(tmp_path, jobs=4))

        assert [result.path.name for result in final.results] == names
        assert all(result.status is DocumentStatus.UPDATED for result in final.results)

    def test_custom_prefix(self, tmp_path):
        (tmp_path / "snippet.py").write_text("x = 1")
        (tmp_path / "a.md").write_text(FILE_BLOCK.replace("CODEBLOCK", "SNIPPET"))
        (tmp_path / "b.md").write_text(FILE_BLOCK)

        final = run(state_for(tmp_path, blockPrefix="SNIPPET"))

        assert [result.status for result in final.results] == [DocumentStatus.UPDATED, DocumentStatus.UNCHANGED]

    def test_skipped_on_pull_request(self, tmp_path, monkeypatch, log_messages):
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
        (tmp_path / "snippet.py").write_text("x = 1")
        (tmp_path / "a.md").write_text(FILE_BLOCK)

        final = run(state_for(tmp_path))

        assert final.skipped is True
        assert final.exitCode == 0
        assert final.results == []
        assert (tmp_path / "a.md").read_text() == FILE_BLOCK
        assert "md-inject will not run during pull request builds" in log_messages

    def test_pull_request_policy_from_settings(self, tmp_path, monkeypatch):
        """Injected settings decide whether pull request builds are skipped"""
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
        (tmp_path / "snippet.py").write_text("x = 1")
        (tmp_path / "a.md").write_text(FILE_BLOCK)

        final = run(state_for(tmp_path), settings=AppSettings(_env_file=None, skip_on_pull_request=False))

        assert final.skipped is False
        assert [result.status for result in final.results] == [DocumentStatus.UPDATED]

    def test_main_exit_status(self, tmp_path):
        (tmp_path / "snippet.py").write_text("x = 1")
        (tmp_path / "a.md").write_text(FILE_BLOCK)
        assert main(["--root", str(tmp_path), "--no-gitignore", "-q"]) == 0

        (tmp_path / "b.md").write_text('<!-- CODEBLOCK_START {"value": "missing.py"} -->\n<!-- CODEBLOCK_END -->')
        assert main(["--root", str(tmp_path), "--no-gitignore", "-q"]) == 1
