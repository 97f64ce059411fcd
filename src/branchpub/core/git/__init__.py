"""
Git command execution.

Provides the narrow command-running capability the publish workflow uses
for every version-control operation.
"""

from branchpub.core.git.runner import (
    CommandResult,
    CommandRunner,
    Git,
    GitError,
    SubprocessRunner,
)

__all__ = ["CommandResult", "CommandRunner", "Git", "GitError", "SubprocessRunner"]
