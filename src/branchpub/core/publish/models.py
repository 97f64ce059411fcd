"""
Data models for the publish workflow.

Defines Pydantic models for the publish request, the invocation context
derived from the CI environment, and the per-attempt and overall results.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from branchpub.core.config.env import MissingEnvironmentError, optional_env, require_env
from branchpub.core.publish.errors import ConfigurationError

TAG_REF_PREFIX = "refs/tags/"


class EventKind(str, Enum):
    """Kind of event that triggered the invocation."""

    TAG = "tag"
    OTHER = "other"

    @classmethod
    def from_event_name(cls, event_name: str) -> EventKind:
        return cls.TAG if event_name == cls.TAG.value else cls.OTHER


class RemoteBranchState(str, Enum):
    """Whether the target branch exists on the remote."""

    EXISTS_REMOTELY = "exists_remotely"
    ABSENT_REMOTELY = "absent_remotely"


class PushOutcome(str, Enum):
    """Result of a single push attempt."""

    PUSHED = "pushed"
    REJECTED = "rejected"


class PublishRequest(BaseModel):
    """
    Caller-supplied parameters for one publish.

    Example:
        >>> request = PublishRequest(
        ...     folder=Path("dist"),
        ...     token="ghp_xxx",
        ...     branch="build",
        ...     tag_prefix="release/",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    folder: Path = Field(description="Directory holding the built artifacts")
    token: SecretStr = Field(description="Credential with write access to the remote")
    branch: str = Field(min_length=1, description="Branch the artifacts are published to")
    tag_prefix: str = Field(description="Prefix prepended to the release tag name")
    git_user_name: str | None = Field(default=None, description="Committer name override")
    git_user_email: str | None = Field(default=None, description="Committer email override")


class InvocationContext(BaseModel):
    """
    Read-only view of the CI environment at call time.

    Constructed once per invocation with ``from_env`` and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    ref_name: str = Field(default="", description="Triggering ref, e.g. refs/tags/v1.0.0")
    event_kind: EventKind = Field(default=EventKind.OTHER)
    repository: str = Field(description="Repository identifier in owner/name form")
    scratch_root: Path = Field(description="Base path for the private scratch directory")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> InvocationContext:
        """
        Build the context from GITHUB_* and RUNNER_TEMP variables.

        Raises:
            ConfigurationError: If GITHUB_REPOSITORY or RUNNER_TEMP is missing.
        """
        try:
            repository = require_env("GITHUB_REPOSITORY", environ)
            scratch_root = require_env("RUNNER_TEMP", environ)
        except MissingEnvironmentError as e:
            raise ConfigurationError(str(e)) from e

        return cls(
            ref_name=optional_env("GITHUB_REF", environ),
            event_kind=EventKind.from_event_name(optional_env("GITHUB_EVENT_NAME", environ)),
            repository=repository,
            scratch_root=Path(scratch_root),
        )

    @property
    def is_tag_event(self) -> bool:
        return self.event_kind is EventKind.TAG

    @property
    def ref_tag(self) -> str:
        """The ref with any leading ``refs/tags/`` removed."""
        return self.ref_name.replace(TAG_REF_PREFIX, "", 1)


class SourceRevision(BaseModel):
    """The commit of the invoking checkout that produced the artifacts."""

    model_config = ConfigDict(frozen=True)

    sha: str
    short_sha: str
    message: str = ""


class PublishAttempt(BaseModel):
    """One iteration of the push retry loop."""

    number: int = Field(ge=1)
    source_sha: str
    source_message: str = ""
    commit_sha: str | None = Field(default=None, description="Local snapshot commit")
    outcome: PushOutcome | None = None
    detail: str = Field(default="", description="Push stderr when rejected")


class PublishResult(BaseModel):
    """
    Result of a completed publish.

    Provides detailed feedback about what happened during the publish.
    """

    branch: str
    remote_state: RemoteBranchState
    attempts: list[PublishAttempt] = Field(default_factory=list)
    commit_sha: str | None = None
    tag: str | None = Field(default=None, description="Release tag pushed, if any")

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate publish duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        parts = [f"published to {self.branch}"]

        if self.commit_sha:
            parts.append(f"commit {self.commit_sha[:8]}")

        if self.attempt_count > 1:
            parts.append(f"after {self.attempt_count} attempts")

        if self.remote_state is RemoteBranchState.ABSENT_REMOTELY:
            parts.append("branch created")

        if self.tag:
            parts.append(f"tagged {self.tag}")

        return ", ".join(parts)
