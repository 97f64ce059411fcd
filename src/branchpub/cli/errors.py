"""
Standardized error handling and exit codes for the branchpub CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for branchpub CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Publish, tag, git or build failure."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_configuration_error(message: str) -> None:
    """Print error when the invocation is misconfigured."""
    print_error(
        message,
        reason="Nothing was published; the remote was not modified",
    )


def print_convergence_error(branch: str, attempts: int, detail: str = "") -> None:
    """Print error when every push attempt was rejected."""
    print_error(
        f"Could not publish to '{branch}' after {attempts} attempts",
        reason=detail or "Every push was rejected; treat the artifacts as unpublished",
        solution="Re-run the workflow once concurrent publishers have finished",
    )


def print_tag_error(tag: str, reason: str) -> None:
    """Print error when the release tag could not be pushed."""
    print_error(
        f"Failed to publish tag '{tag}'",
        reason=f"{reason} (the branch itself was published)",
        solution=f"git push origin refs/tags/{tag}  # after creating it manually",
    )


def print_git_error(message: str, stderr: str = "") -> None:
    """Print error when an underlying git command fails."""
    print_error(message, reason=stderr or None)


__all__ = [
    "ExitCode",
    "console",
    "print_error",
    "print_configuration_error",
    "print_convergence_error",
    "print_tag_error",
    "print_git_error",
]
