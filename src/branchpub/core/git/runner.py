"""
Command execution for git operations.

The publish workflow talks to git exclusively through a ``CommandRunner``.
The default ``SubprocessRunner`` shells out; tests substitute a scripted
runner to simulate push acceptance and rejection deterministically.

Example:
    >>> git = Git(Path("/tmp/scratch"))
    >>> sha = git.output(["rev-parse", "HEAD"])
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

REDACTED = "***"

# secrets shorter than this are not masked
MIN_SECRET_LENGTH = 6


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a single external command."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Capability to execute an external command and capture its result."""

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        input_data: str | None = None,
    ) -> CommandResult: ...


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class SubprocessRunner:
    """Runs commands with ``subprocess.run``, never raising on exit status."""

    def __init__(self, timeout: int = 300) -> None:
        self.timeout = timeout

    def run(
        self,
        command: list[str],
        *,
        cwd: Path,
        input_data: str | None = None,
    ) -> CommandResult:
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                input=input_data,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Command timed out after {self.timeout}s", command=command) from e
        except FileNotFoundError as e:
            raise GitError(f"{command[0]} not found in PATH", command=command) from e

        return CommandResult(
            command=command,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )


def redact(text: str, secrets: list[str]) -> str:
    """Replace every occurrence of each secret in text.

    Secrets shorter than MIN_SECRET_LENGTH are left alone.
    """
    for secret in secrets:
        if len(secret) >= MIN_SECRET_LENGTH:
            text = text.replace(secret, REDACTED)
    return text


class Git:
    """
    Git client bound to one working directory.

    Secrets registered with ``add_secret`` are masked in log lines and
    error messages.
    """

    def __init__(self, cwd: Path, runner: CommandRunner | None = None) -> None:
        self.cwd = cwd
        self.runner: CommandRunner = runner or SubprocessRunner()
        self._secrets: list[str] = []

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def describe(self, args: list[str]) -> str:
        return self.redact(" ".join(["git", *args]))

    def redact(self, text: str) -> str:
        """Mask registered secrets in text."""
        return redact(text, self._secrets)

    def run(
        self,
        args: list[str],
        *,
        check: bool = True,
        input_data: str | None = None,
    ) -> CommandResult:
        """
        Run a git command in the bound directory.

        Args:
            args: Git command arguments (without "git" prefix).
            check: Whether to raise on non-zero exit code.
            input_data: Optional stdin data to pass to the command.

        Returns:
            The captured CommandResult.

        Raises:
            GitError: If the command fails and check=True.
        """
        cmd = ["git", *args]
        logger.debug("Running git command: %s", self.describe(args))

        result = self.runner.run(cmd, cwd=self.cwd, input_data=input_data)

        if check and not result.ok:
            stderr = self.redact(result.stderr.strip())
            raise GitError(
                f"Git command failed: {self.describe(args)}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    def output(self, args: list[str]) -> str:
        """Run a git command and return its stripped stdout."""
        return self.run(args).stdout.strip()
