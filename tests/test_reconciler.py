"""
Tests for the snapshot committer and push-retry reconciler in isolation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from branchpub.core.git import Git
from branchpub.core.publish import PublishConvergenceError, PushOutcome, SourceRevision
from branchpub.core.publish.reconciler import PushRetryReconciler
from branchpub.core.publish.snapshot import SnapshotCommitter, snapshot_message

SOURCE = SourceRevision(sha="abc1234def5678", short_sha="abc1234", message="Add feature\n")


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


def make_reconciler(fake_runner, scratch, artifact_dir, **kwargs) -> PushRetryReconciler:
    git = Git(scratch, fake_runner)
    return PushRetryReconciler(git, SnapshotCommitter(git, artifact_dir), "build", **kwargs)


class TestSnapshotMessage:
    def test_with_body(self) -> None:
        assert snapshot_message(SOURCE) == "Publish abc1234\n\nAdd feature"

    def test_without_body(self) -> None:
        source = SourceRevision(sha="abc", short_sha="abc", message="  \n")
        assert snapshot_message(source) == "Publish abc"


class TestSnapshotCommitter:
    def test_commit_sequence(self, fake_runner, scratch, artifact_dir) -> None:
        committer = SnapshotCommitter(Git(scratch, fake_runner), artifact_dir)

        sha = committer.commit(SOURCE)

        assert sha == "abc1234def5678"
        assert [c[0] for c in fake_runner.calls] == ["rm", "add", "commit", "rev-parse"]
        assert fake_runner.calls[0] == ["rm", "--ignore-unmatch", "-rf", "."]
        assert "--allow-empty" in fake_runner.calls[2]
        assert (scratch / "mod.js").read_text() == "export const answer = 42;\n"
        assert (scratch / "lib" / "util.js").exists()

    def test_skips_git_metadata(self, fake_runner, scratch, artifact_dir) -> None:
        (artifact_dir / ".git").mkdir()
        (artifact_dir / ".git" / "config").write_text("[core]\n")
        (scratch / ".git").mkdir()

        SnapshotCommitter(Git(scratch, fake_runner), artifact_dir).copy_artifacts()

        assert not (scratch / ".git" / "config").exists()


class TestPushRetryReconciler:
    def test_rejects_zero_attempts(self, fake_runner, scratch, artifact_dir) -> None:
        with pytest.raises(ValueError):
            make_reconciler(fake_runner, scratch, artifact_dir, max_attempts=0)

    def test_first_push_accepted(self, fake_runner, scratch, artifact_dir) -> None:
        reconciler = make_reconciler(fake_runner, scratch, artifact_dir)

        attempts = reconciler.run(SOURCE)

        assert len(attempts) == 1
        assert attempts[0].outcome is PushOutcome.PUSHED
        assert fake_runner.called("push") == [["push", "--set-upstream", "origin", "build"]]
        assert fake_runner.called("reset") == []

    def test_reset_after_rejection(self, fake_runner, scratch, artifact_dir) -> None:
        fake_runner.on("push", returncode=1, stderr="! [rejected] (fetch first)")
        fake_runner.on("push")
        sleeps: list[float] = []
        reconciler = make_reconciler(
            fake_runner, scratch, artifact_dir, retry_delay_seconds=2.0, sleep=sleeps.append
        )

        attempts = reconciler.run(SOURCE)

        assert [a.outcome for a in attempts] == [PushOutcome.REJECTED, PushOutcome.PUSHED]
        assert attempts[0].detail == "! [rejected] (fetch first)"
        assert fake_runner.called("fetch") == [["fetch", "origin", "build"]]
        assert fake_runner.called("reset") == [["reset", "--hard", "origin/build"]]
        assert len(fake_runner.called("commit")) == 2
        assert sleeps == [2.0]

    def test_exhaustion(self, fake_runner, scratch, artifact_dir) -> None:
        fake_runner.on("push", returncode=1, stderr="rejected")
        sleeps: list[float] = []
        reconciler = make_reconciler(
            fake_runner,
            scratch,
            artifact_dir,
            max_attempts=3,
            retry_delay_seconds=1.0,
            sleep=sleeps.append,
        )

        with pytest.raises(PublishConvergenceError) as exc_info:
            reconciler.run(SOURCE)

        assert exc_info.value.attempts == 3
        assert exc_info.value.branch == "build"
        assert exc_info.value.last_stderr == "rejected"
        assert "after 3 attempts" in str(exc_info.value)
        assert len(fake_runner.called("push")) == 3
        assert sleeps == [1.0, 1.0]

    def test_no_sync_after_final_rejection(self, fake_runner, scratch, artifact_dir) -> None:
        """A fetch that would fail after the last push never runs."""
        fake_runner.on("push", returncode=1, stderr="rejected")
        fake_runner.on("fetch", returncode=0)
        fake_runner.on("fetch", returncode=128, stderr="network down")
        reconciler = make_reconciler(fake_runner, scratch, artifact_dir, max_attempts=2)

        with pytest.raises(PublishConvergenceError) as exc_info:
            reconciler.run(SOURCE)

        assert exc_info.value.attempts == 2
        assert exc_info.value.last_stderr == "rejected"
        assert fake_runner.called("fetch") == [["fetch", "origin", "build"]]
        assert len(fake_runner.called("reset")) == 1

    def test_failed_sync_keeps_push_error(self, fake_runner, scratch, artifact_dir) -> None:
        fake_runner.on("push", returncode=1, stderr="remote: denied by policy")
        fake_runner.on("fetch", returncode=128, stderr="fatal: couldn't find remote ref build")
        reconciler = make_reconciler(fake_runner, scratch, artifact_dir, max_attempts=5)

        with pytest.raises(PublishConvergenceError) as exc_info:
            reconciler.run(SOURCE)

        assert exc_info.value.attempts == 1
        assert exc_info.value.last_stderr == "remote: denied by policy"
        assert "couldn't find remote ref" in exc_info.value.__cause__.stderr
        assert len(fake_runner.called("push")) == 1
        assert fake_runner.called("reset") == []

    def test_single_attempt_message(self, fake_runner, scratch, artifact_dir) -> None:
        fake_runner.on("push", returncode=1)
        reconciler = make_reconciler(fake_runner, scratch, artifact_dir, max_attempts=1)

        with pytest.raises(PublishConvergenceError, match="after 1 attempt$"):
            reconciler.run(SOURCE)
