"""
Push-retry reconciliation for the publish branch.

Concurrent publishers race to update the same remote branch. A git push
is a compare-and-swap on the branch ref, so the loser's push is rejected
outright. The reconciler uses optimistic concurrency on top of that:
1. Snapshot the artifacts as a commit on the current local tip
2. Push
3. If rejected, fetch the remote branch, hard-reset onto its tip
   (dropping the local commit) and snapshot again

The rejected commit is never rebased. The artifact directory is the
source of truth, so the snapshot is replayed on the new tip.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from branchpub.core.git import Git, GitError
from branchpub.core.publish.errors import PublishConvergenceError
from branchpub.core.publish.models import PublishAttempt, PushOutcome, SourceRevision
from branchpub.core.publish.snapshot import SnapshotCommitter

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
RETRY_DELAY_SECONDS = 2.0


class PushRetryReconciler:
    """
    Converges the remote branch to include a fresh snapshot.

    No lock is held anywhere; the remote ref update is the only point of
    serialization, and state is re-derived from the remote after every
    rejection.
    """

    def __init__(
        self,
        git: Git,
        committer: SnapshotCommitter,
        branch: str,
        *,
        remote: str = "origin",
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay_seconds: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.git = git
        self.committer = committer
        self.branch = branch
        self.remote = remote
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep

    def push(self) -> tuple[bool, str]:
        """Attempt a single push. Returns (accepted, stderr)."""
        logger.info("Pushing changes to %s/%s...", self.remote, self.branch)
        result = self.git.run(
            ["push", "--set-upstream", self.remote, self.branch],
            check=False,
        )
        return result.ok, result.stderr.strip()

    def reset_to_remote(self) -> None:
        """Discard local commits and move to the remote branch tip."""
        self.git.run(["fetch", self.remote, self.branch])
        self.git.run(["reset", "--hard", f"{self.remote}/{self.branch}"])

    def run(self, source: SourceRevision) -> list[PublishAttempt]:
        """
        Snapshot and push until the remote accepts or attempts run out.

        Args:
            source: Source revision being published

        Returns:
            Every attempt made; the last one has outcome PUSHED.

        Raises:
            PublishConvergenceError: If every attempt was rejected, or the
                remote branch could not be re-read after a rejection.
            GitError: If a snapshot step fails.
        """
        attempts: list[PublishAttempt] = []
        last_stderr = ""

        for number in range(1, self.max_attempts + 1):
            attempt = PublishAttempt(
                number=number,
                source_sha=source.sha,
                source_message=source.message,
            )
            attempts.append(attempt)

            attempt.commit_sha = self.committer.commit(source)

            accepted, stderr = self.push()
            if accepted:
                attempt.outcome = PushOutcome.PUSHED
                logger.info(
                    "Pushed %s to %s (attempt %d/%d)",
                    attempt.commit_sha[:8],
                    self.branch,
                    number,
                    self.max_attempts,
                )
                return attempts

            attempt.outcome = PushOutcome.REJECTED
            attempt.detail = stderr
            last_stderr = stderr
            logger.error("Push failed (attempt %d/%d)", number, self.max_attempts)
            if stderr:
                logger.debug("Push stderr: %s", stderr)

            if number == self.max_attempts:
                break

            logger.info("Retrying with the latest changes...")
            try:
                self.reset_to_remote()
            except GitError as e:
                # e.g. a policy rejection on a branch that does not exist remotely
                logger.error("Could not sync with %s/%s: %s", self.remote, self.branch, e)
                raise PublishConvergenceError(self.branch, number, stderr) from e

            if self.retry_delay_seconds > 0:
                self._sleep(self.retry_delay_seconds)

        raise PublishConvergenceError(self.branch, len(attempts), last_stderr)
