"""
Publish service: mirror an artifact directory onto a remote branch.

Provides the end-to-end publish workflow:
- Preflight checks against the invocation context
- Cloning the remote into a private scratch directory
- Checking out the target branch, or creating it as an orphan
- Snapshot + push with optimistic-concurrency retries
- Tagging the published tip on tag-triggered runs
"""

from __future__ import annotations

import base64
import logging
import shutil
import tempfile
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from branchpub.core.config.models import PublishSettings
from branchpub.core.git import CommandRunner, Git, GitError
from branchpub.core.publish.errors import RemoteQueryError, TagPublishError
from branchpub.core.publish.models import (
    InvocationContext,
    PublishRequest,
    PublishResult,
    RemoteBranchState,
    SourceRevision,
)
from branchpub.core.publish.preflight import check_preflight
from branchpub.core.publish.reconciler import PushRetryReconciler
from branchpub.core.publish.snapshot import SnapshotCommitter

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"

# `git ls-remote --exit-code` exits with 2 when no matching ref was found
LS_REMOTE_NO_MATCH = 2


class PublishService:
    """
    Service for publishing an artifact directory to a remote branch.

    The caller's working tree is only read (to identify the source branch
    and commit). All git mutation happens in a scratch checkout that this
    service creates, owns exclusively and discards afterwards.

    Example:
        >>> service = PublishService(request, InvocationContext.from_env())
        >>> result = service.publish()
        >>> print(result.summary())
    """

    def __init__(
        self,
        request: PublishRequest,
        context: InvocationContext,
        *,
        settings: PublishSettings | None = None,
        source_dir: Path | None = None,
        runner: CommandRunner | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize PublishService.

        Args:
            request: What to publish and where
            context: Invocation context derived from the environment
            settings: Publish tunables (defaults if omitted)
            source_dir: Working tree of the invoking checkout (defaults to cwd)
            runner: Command runner for every git call (subprocess by default)
            sleep: Delay function used between push attempts
        """
        self.request = request
        self.context = context
        self.settings = settings or PublishSettings()
        self.source_dir = (source_dir or Path.cwd()).resolve()
        self.runner = runner
        self._sleep = sleep

        self.source_git = Git(self.source_dir, runner)

    @property
    def remote_url(self) -> str:
        return self.settings.remote_url(self.context.repository)

    @property
    def user_name(self) -> str:
        return self.request.git_user_name or self.settings.default_user_name

    @property
    def user_email(self) -> str:
        return self.request.git_user_email or self.settings.default_user_email

    @property
    def auth_token(self) -> str:
        """Base64 ``user:token`` credential for HTTP basic auth."""
        raw = f"{self.user_name}:{self.request.token.get_secret_value()}"
        return base64.b64encode(raw.encode()).decode()

    def _auth_header(self) -> str:
        return f"Authorization: Basic {self.auth_token}"

    def current_branch(self) -> str:
        """Branch checked out in the invoking working tree."""
        return self.source_git.output(["rev-parse", "--abbrev-ref", "HEAD"])

    def source_revision(self) -> SourceRevision:
        """Commit of the invoking working tree that produced the artifacts."""
        return SourceRevision(
            sha=self.source_git.output(["rev-parse", "HEAD"]),
            short_sha=self.source_git.output(["rev-parse", "--short", "HEAD"]),
            message=self.source_git.run(["log", "-1", "--format=%B"]).stdout.strip(),
        )

    def create_scratch_dir(self) -> Path:
        """Create a fresh private directory for this invocation's checkout."""
        root = self.context.scratch_root
        root.mkdir(parents=True, exist_ok=True)
        scratch = Path(tempfile.mkdtemp(prefix=self.settings.scratch_prefix, dir=root))
        logger.info("Created temp dir %s", scratch)
        return scratch

    def _scratch_git(self, scratch: Path) -> Git:
        git = Git(scratch, self.runner)
        git.add_secret(self.request.token.get_secret_value())
        git.add_secret(self.auth_token)
        return git

    def clone(self, git: Git) -> None:
        """Clone the remote into the scratch directory without a checkout."""
        logger.info("Cloning repo...")
        git.run([
            "-c",
            f"http.{self.remote_url}.extraheader={self._auth_header()}",
            "clone",
            "--no-checkout",
            self.remote_url,
            ".",
        ])

    def configure(self, git: Git) -> None:
        """Set the committer identity and persist the auth header."""
        logger.info("Setting up repo...")
        git.run(["config", "user.name", self.user_name])
        git.run(["config", "user.email", self.user_email])
        git.run(["config", f"http.{self.remote_url}.extraheader", self._auth_header()])

    def resolve_remote_branch(self, git: Git) -> RemoteBranchState:
        """
        Ask the remote whether the target branch exists.

        "Not found" is a normal outcome, not a failure.

        Raises:
            RemoteQueryError: If the query fails for any other reason.
        """
        branch = self.request.branch
        result = git.run(
            ["ls-remote", "--exit-code", "--heads", REMOTE_NAME, branch],
            check=False,
        )
        if result.ok:
            return RemoteBranchState.EXISTS_REMOTELY
        if result.returncode == LS_REMOTE_NO_MATCH:
            return RemoteBranchState.ABSENT_REMOTELY
        raise RemoteQueryError(
            f"Failed to query {self.remote_url} for branch '{branch}'",
            returncode=result.returncode,
            stderr=git.redact(result.stderr.strip()),
        )

    def checkout(self, git: Git, state: RemoteBranchState) -> None:
        """Check out the existing branch, or start it as an orphan."""
        branch = self.request.branch
        if state is RemoteBranchState.EXISTS_REMOTELY:
            git.run(["fetch", REMOTE_NAME, branch])
            logger.info("Checking out branch %s from %s...", branch, self.remote_url)
            git.run(["checkout", branch])
        else:
            logger.info("Creating orphan branch %s for %s...", branch, self.remote_url)
            git.run(["checkout", "--orphan", branch])

    def release_tag(self) -> str:
        """Name of the release tag for the triggering ref."""
        return f"{self.request.tag_prefix}{self.context.ref_tag}"

    def tag_release(self, git: Git) -> str | None:
        """
        Tag the published branch tip on tag-triggered runs.

        Returns:
            The pushed tag name, or None when the run was not a tag event.

        Raises:
            TagPublishError: If the tag could not be created or pushed.
        """
        if not self.context.is_tag_event:
            logger.info("Workflow was not a tag, so not tagging with prefix.")
            return None

        final_tag = self.release_tag()
        logger.info("Publishing tag '%s'...", final_tag)
        try:
            git.run(["tag", "-a", final_tag, self.request.branch, "-m", f"Release {final_tag}"])
            git.run(["push", REMOTE_NAME, f"refs/tags/{final_tag}"])
        except GitError as e:
            raise TagPublishError(final_tag, e.stderr or str(e)) from e
        return final_tag

    def publish(self) -> PublishResult:
        """
        Run the full publish workflow.

        Returns:
            PublishResult describing the attempts and the pushed commit.

        Raises:
            ConfigurationError: If preflight checks fail
            RemoteQueryError: If the remote branch lookup fails
            PublishConvergenceError: If every push attempt was rejected
            TagPublishError: If tagging fails after a successful push
            GitError: If any other git command fails
        """
        started_at = datetime.now()

        check_preflight(self.context, self.request, self.current_branch())

        source = self.source_revision()
        logger.info("Publishing %s", source.sha)

        artifact_dir = self.request.folder.resolve()
        logger.info("Publish dir: %s", artifact_dir)

        scratch = self.create_scratch_dir()
        try:
            git = self._scratch_git(scratch)
            self.clone(git)
            self.configure(git)

            state = self.resolve_remote_branch(git)
            self.checkout(git, state)

            reconciler = PushRetryReconciler(
                git,
                SnapshotCommitter(git, artifact_dir),
                self.request.branch,
                remote=REMOTE_NAME,
                max_attempts=self.settings.max_attempts,
                retry_delay_seconds=self.settings.retry_delay_seconds,
                sleep=self._sleep,
            )
            attempts = reconciler.run(source)

            result = PublishResult(
                branch=self.request.branch,
                remote_state=state,
                attempts=attempts,
                commit_sha=attempts[-1].commit_sha,
                started_at=started_at,
            )

            result.tag = self.tag_release(git)
            result.completed_at = datetime.now()
            return result
        finally:
            if self.settings.keep_scratch:
                logger.info("Keeping scratch checkout at %s", scratch)
            else:
                shutil.rmtree(scratch, ignore_errors=True)
