"""
Exceptions raised by the publish workflow.

A push rejection is not an exception: it is recorded as a rejected
PublishAttempt and drives the retry loop. Only exhaustion surfaces.
"""

from __future__ import annotations


class PublishError(Exception):
    """Base class for publish workflow failures."""

    pass


class ConfigurationError(PublishError):
    """Invocation is misconfigured; raised before any remote mutation."""

    pass


class RemoteQueryError(PublishError):
    """Querying the remote for the target branch failed unexpectedly."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class PublishConvergenceError(PublishError):
    """
    Every push attempt was rejected.

    Attributes:
        attempts: Number of push attempts made
        branch: Target branch that could not be updated
    """

    def __init__(self, branch: str, attempts: int, last_stderr: str = ""):
        self.branch = branch
        self.attempts = attempts
        self.last_stderr = last_stderr
        super().__init__(
            f"Failed to publish to branch '{branch}' after {attempts} "
            f"attempt{'s' if attempts != 1 else ''}"
        )


class TagPublishError(PublishError):
    """Creating or pushing the release tag failed after the branch was published."""

    def __init__(self, tag: str, reason: str):
        self.tag = tag
        self.reason = reason
        super().__init__(f"Failed to publish tag '{tag}': {reason}")
