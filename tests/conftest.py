"""
Pytest configuration and shared fixtures.

Provides a scripted command runner for deterministic git simulations,
real git repository fixtures (a bare "remote" plus a source checkout),
and sample publish requests and contexts.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from branchpub.core.config import PublishSettings
from branchpub.core.git import CommandResult
from branchpub.core.publish import EventKind, InvocationContext, PublishRequest

# ==============================================================================
# Scripted Command Runner
# ==============================================================================


class FakeRunner:
    """
    CommandRunner that answers git commands from a script.

    Rules match on an argument prefix (without the leading "git"). Each rule
    holds a queue of results; the last result repeats once the queue drains.
    Unmatched commands succeed with empty output.

    Example:
        >>> runner = FakeRunner()
        >>> runner.on("push", returncode=1, stderr="rejected")
        >>> runner.on("push")  # appended: second push succeeds
        >>> runner.on("ls-remote", returncode=2, replace=True)
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._rules: list[tuple[tuple[str, ...], list[tuple[int, str, str]]]] = []
        self.hooks: dict[tuple[str, ...], Callable[[], None]] = {}

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        replace: bool = False,
    ) -> None:
        for rule_prefix, results in self._rules:
            if rule_prefix == prefix:
                if replace:
                    results.clear()
                results.append((returncode, stdout, stderr))
                return
        self._rules.append((prefix, [(returncode, stdout, stderr)]))

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        input_data: str | None = None,
    ) -> CommandResult:
        args = command[1:]
        self.calls.append(args)

        for prefix, hook in self.hooks.items():
            if tuple(args[: len(prefix)]) == prefix:
                hook()

        for prefix, results in self._rules:
            if tuple(args[: len(prefix)]) == prefix:
                returncode, stdout, stderr = results.pop(0) if len(results) > 1 else results[0]
                return CommandResult(command, returncode, stdout, stderr)

        return CommandResult(command, 0, "", "")

    def called(self, *prefix: str) -> list[list[str]]:
        """Recorded calls whose arguments start with prefix."""
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Scripted runner with a plausible source checkout and remote."""
    runner = FakeRunner()
    runner.on("rev-parse", "--abbrev-ref", "HEAD", stdout="main\n")
    runner.on("rev-parse", "--short", "HEAD", stdout="abc1234\n")
    runner.on("rev-parse", "HEAD", stdout="abc1234def5678\n")
    runner.on("log", "-1", stdout="Add feature\n\nLonger description\n")
    runner.on("ls-remote", returncode=0, stdout="deadbeef\trefs/heads/build\n")
    return runner


# ==============================================================================
# Request / Context Fixtures
# ==============================================================================


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    """A small built-artifact folder."""
    dist = tmp_path / "dist"
    (dist / "lib").mkdir(parents=True)
    (dist / "mod.js").write_text("export const answer = 42;\n")
    (dist / "lib" / "util.js").write_text("export {};\n")
    return dist


@pytest.fixture
def publish_request(artifact_dir: Path) -> PublishRequest:
    return PublishRequest(
        folder=artifact_dir,
        token="s3cr3t-token",
        branch="build",
        tag_prefix="release/",
    )


@pytest.fixture
def branch_context(tmp_path: Path) -> InvocationContext:
    """Context for a plain branch push event."""
    return InvocationContext(
        ref_name="refs/heads/main",
        event_kind=EventKind.OTHER,
        repository="owner/name",
        scratch_root=tmp_path / "runner-temp",
    )


@pytest.fixture
def tag_context(tmp_path: Path) -> InvocationContext:
    """Context for a tag event on v1.0.0."""
    return InvocationContext(
        ref_name="refs/tags/v1.0.0",
        event_kind=EventKind.TAG,
        repository="owner/name",
        scratch_root=tmp_path / "runner-temp",
    )


@pytest.fixture
def fast_settings() -> PublishSettings:
    """Settings with no delay between push attempts."""
    return PublishSettings(max_attempts=5, retry_delay_seconds=0)


# ==============================================================================
# Real Git Fixtures
# ==============================================================================


def git(*args: str, cwd: Path) -> str:
    """Run git and return stripped stdout, failing the test on error."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def remote_root(tmp_path: Path) -> Path:
    """Directory standing in for the git host; repositories live at owner/name."""
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def source_repo(tmp_path: Path, remote_root: Path) -> Path:
    """
    A developer checkout on branch main with one commit, pushed to a bare
    remote at <remote_root>/owner/name.
    """
    bare = remote_root / "owner" / "name"
    bare.mkdir(parents=True)
    git("init", "--bare", cwd=bare)
    git("symbolic-ref", "HEAD", "refs/heads/main", cwd=bare)

    repo = tmp_path / "source"
    repo.mkdir()
    git("init", cwd=repo)
    git("symbolic-ref", "HEAD", "refs/heads/main", cwd=repo)
    git("config", "user.email", "test@example.com", cwd=repo)
    git("config", "user.name", "Test User", cwd=repo)

    (repo / "README.md").write_text("# Source\n")
    git("add", "README.md", cwd=repo)
    git("commit", "-m", "Initial commit", cwd=repo)
    git("remote", "add", "origin", str(bare), cwd=repo)
    git("push", "origin", "main", cwd=repo)

    return repo


@pytest.fixture
def local_settings(remote_root: Path) -> PublishSettings:
    """Settings pointing the remote base URL at the local bare repositories."""
    return PublishSettings(
        remote_base_url=remote_root.as_uri(),
        retry_delay_seconds=0,
    )


@pytest.fixture
def run_git() -> Callable[..., str]:
    """The git helper, for tests that inspect repositories directly."""
    return git
