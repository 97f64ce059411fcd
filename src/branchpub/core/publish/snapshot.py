"""
Snapshot committer.

Turns the scratch checkout into an exact mirror of the artifact directory
and records it as exactly one commit. Commits are always created, even
when the tree is unchanged, so every publish leaves a commit that names
the source revision it came from.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from branchpub.core.git import Git
from branchpub.core.publish.models import SourceRevision

logger = logging.getLogger(__name__)

VCS_METADATA = ".git"


def snapshot_message(source: SourceRevision) -> str:
    """Commit message linking a published snapshot to its source commit."""
    message = f"Publish {source.short_sha}"
    body = source.message.strip()
    if body:
        message = f"{message}\n\n{body}"
    return message


class SnapshotCommitter:
    """
    Produces one commit representing the current artifact state.

    Example:
        >>> committer = SnapshotCommitter(git, Path("dist"))
        >>> sha = committer.commit(source)
    """

    def __init__(self, git: Git, artifact_dir: Path) -> None:
        self.git = git
        self.artifact_dir = artifact_dir

    @property
    def checkout_dir(self) -> Path:
        return self.git.cwd

    def clean(self) -> None:
        """Remove every tracked file, leaving the .git directory alone."""
        logger.info("Cleaning repo...")
        self.git.run(["rm", "--ignore-unmatch", "-rf", "."])

    def copy_artifacts(self) -> None:
        """Copy the artifact directory's contents into the checkout root."""
        logger.info("Copying files from %s...", self.artifact_dir)
        shutil.copytree(
            self.artifact_dir,
            self.checkout_dir,
            symlinks=True,
            ignore=shutil.ignore_patterns(VCS_METADATA),
            dirs_exist_ok=True,
        )

    def commit(self, source: SourceRevision) -> str:
        """
        Mirror the artifacts into the checkout and commit them.

        Returns:
            SHA of the new commit.

        Raises:
            GitError: If any git step fails.
        """
        self.clean()
        self.copy_artifacts()

        logger.info("Committing snapshot of %s...", source.short_sha)
        self.git.run(["add", "."])
        self.git.run(["commit", "--allow-empty", "-m", snapshot_message(source)])
        return self.git.output(["rev-parse", "HEAD"])
