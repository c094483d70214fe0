from collections.abc import Callable
from pathlib import Path

import pytest
from git import Git
from pytest_mock import MockerFixture

from vcsync.exceptions import (
    CommitError,
    ContentNotFoundError,
    GitTimeoutError,
    PathViolationError,
    WriteError,
)
from vcsync.repository import (
    DEFAULT_IDENTITY,
    HistoryReader,
    Identity,
    RepositoryHandle,
    RepositoryManager,
    VersionWriter,
)
from vcsync.sync import PushFailure, RemoteSynchronizer

AUTHOR = Identity(name="Ada Editor", email="ada@example.com")

AttachRemote = Callable[[RepositoryHandle, str], None]


class TestCommit:
    def test_writes_and_commits_one_path(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        result = writer.commit(handle, "docs/spec.md", "# Spec\n", "Add spec")

        assert not result.no_changes
        assert result.paths == ("docs/spec.md",)
        assert result.sha == git(handle.path, "rev-parse", "HEAD")
        assert (handle.path / "docs/spec.md").read_text(encoding="utf-8") == "# Spec\n"
        assert git(handle.path, "log", "-1", "--format=%B") == "Add spec"
        assert git(handle.path, "status", "--porcelain") == ""

    def test_stages_only_the_given_path(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "tracked.md", "v1", "Add tracked")
        _ = (handle.path / "tracked.md").write_text("edited outside", encoding="utf-8")
        _ = (handle.path / "stray.md").write_text("untracked", encoding="utf-8")

        result = writer.commit(handle, "spec.md", "spec", "Add spec")

        changed = git(handle.path, "show", "--name-only", "--format=", result.sha)
        assert changed.splitlines() == ["spec.md"]
        status = [line.strip() for line in git(handle.path, "status", "--porcelain").splitlines()]
        assert "M tracked.md" in status
        assert "?? stray.md" in status

    def test_accepts_entity_id(
        self, writer: VersionWriter, manager: RepositoryManager, git: Callable[..., str]
    ) -> None:
        result = writer.commit("project-9", "a.md", "a", "Add a")

        path = manager.repository_path("project-9")
        assert result.sha == git(path, "rev-parse", "HEAD")

    def test_stores_bytes_verbatim(self, writer: VersionWriter, handle: RepositoryHandle) -> None:
        data = b"\x00\x01binary\xff\r\n"

        writer.commit(handle, "blob.bin", data, "Add blob")

        assert (handle.path / "blob.bin").read_bytes() == data

    def test_passes_message_through_unchanged(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        message = "Update model: CRM\n\n# not a comment\n- bullet"

        writer.commit(handle, "model.json", "{}", message)

        assert git(handle.path, "log", "-1", "--format=%B") == message

    def test_allows_empty_message(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "a.md", "a", "")

        assert git(handle.path, "rev-list", "--count", "HEAD") == "2"

    def test_rejects_escaping_path(self, writer: VersionWriter, handle: RepositoryHandle) -> None:
        with pytest.raises(PathViolationError):
            writer.commit(handle, "../outside.md", "x", "Escape")

        assert not (handle.path.parent / "outside.md").exists()


class TestNoOpSave:
    def test_identical_content_returns_prior_head(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        first = writer.commit(handle, "spec.md", "same", "Add spec")

        second = writer.commit(handle, "spec.md", "same", "Save again")

        assert second.no_changes
        assert second.sha == first.sha
        assert git(handle.path, "rev-list", "--count", "HEAD") == "2"

    def test_noop_does_not_sync(
        self,
        storage_root: Path,
        bare_remote: Path,
        attach_remote: AttachRemote,
    ) -> None:
        with RepositoryManager(storage_root) as manager:
            writer = VersionWriter(manager, synchronizer=RemoteSynchronizer())
            handle = manager.ensure_repository("project-1")
            attach_remote(handle, str(bare_remote))
            writer.commit(handle, "spec.md", "same", "Add spec")

            result = writer.commit(handle, "spec.md", "same", "Save again")

        assert result.no_changes
        assert result.sync is None


class TestCommitFiles:
    def test_commits_all_paths_together(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        result = writer.commit_files(
            handle,
            {
                "requirements/req-7/content.json": '{"body": "Login"}',
                "requirements/req-7/metadata.json": '{"title": "Login"}',
            },
            "Save requirement: Login",
        )

        changed = git(handle.path, "show", "--name-only", "--format=", result.sha)
        assert sorted(changed.splitlines()) == [
            "requirements/req-7/content.json",
            "requirements/req-7/metadata.json",
        ]

    def test_requires_files(self, writer: VersionWriter, handle: RepositoryHandle) -> None:
        with pytest.raises(ValueError, match="at least one file"):
            writer.commit_files(handle, {}, "Nothing")


class TestIdentityAndTime:
    def test_author_is_caller_and_committer_is_platform(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "spec.md", "x", "Add spec", author=AUTHOR)

        assert git(handle.path, "log", "-1", "--format=%an|%ae") == "Ada Editor|ada@example.com"
        assert git(handle.path, "log", "-1", "--format=%cn|%ce") == (
            f"{DEFAULT_IDENTITY.name}|{DEFAULT_IDENTITY.email}"
        )

    def test_defaults_author_to_platform(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "spec.md", "x", "Add spec")

        assert git(handle.path, "log", "-1", "--format=%ae") == DEFAULT_IDENTITY.email

    def test_timestamps_strictly_increase(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        for i in range(4):
            writer.commit(handle, "spec.md", f"version {i}", f"Edit {i}")

        stamps = [int(t) for t in git(handle.path, "log", "--format=%ct").splitlines()]
        assert stamps == sorted(stamps, reverse=True)
        assert len(set(stamps)) == len(stamps)


class TestDelete:
    def test_removes_file_and_commits(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "spec.md", "x", "Add spec")

        result = writer.delete(handle, "spec.md", "Delete spec.md")

        assert not (handle.path / "spec.md").exists()
        assert git(handle.path, "rev-parse", "HEAD") == result.sha
        assert git(handle.path, "ls-files", "spec.md") == ""

    def test_removes_directory(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit_files(
            handle, {"req/1/content.json": "{}", "req/1/metadata.json": "{}"}, "Add"
        )

        writer.delete(handle, "req/1", "Delete requirement: 1")

        assert git(handle.path, "ls-files", "req") == ""

    def test_untracked_path_raises(self, writer: VersionWriter, handle: RepositoryHandle) -> None:
        with pytest.raises(ContentNotFoundError) as exc_info:
            writer.delete(handle, "missing.md", "Delete missing")

        assert exc_info.value.path == "missing.md"


class TestWriteFailure:
    def test_unwritable_path_commits_nothing(
        self, writer: VersionWriter, handle: RepositoryHandle, git: Callable[..., str]
    ) -> None:
        writer.commit(handle, "spec.md", "file", "Add spec")
        head = git(handle.path, "rev-parse", "HEAD")

        with pytest.raises(WriteError) as exc_info:
            writer.commit(handle, "spec.md/child.md", "nested", "Impossible")

        assert exc_info.value.path == "spec.md/child.md"
        assert git(handle.path, "rev-parse", "HEAD") == head
        assert git(handle.path, "diff", "--cached", "--name-only") == ""


class TestCommitFailure:
    def test_rejected_commit_raises_and_unstages(
        self,
        writer: VersionWriter,
        reader: HistoryReader,
        handle: RepositoryHandle,
        git: Callable[..., str],
    ) -> None:
        head = git(handle.path, "rev-parse", "HEAD")
        nameless = Identity(name="", email="a@b")

        with pytest.raises(CommitError) as exc_info:
            writer.commit(handle, "spec.md", "draft", "Add spec", author=nameless)

        assert exc_info.value.paths == ("spec.md",)
        assert git(handle.path, "rev-parse", "HEAD") == head
        assert git(handle.path, "diff", "--cached", "--name-only") == ""
        assert reader.log(handle, "spec.md") == []

    def test_timed_out_commit_raises_and_unstages(
        self,
        writer: VersionWriter,
        reader: HistoryReader,
        handle: RepositoryHandle,
        git: Callable[..., str],
        mocker: MockerFixture,
    ) -> None:
        head = git(handle.path, "rev-parse", "HEAD")
        execute = Git.execute

        def kill_commit(self: Git, command: list[str], **kwargs: object) -> object:
            if "commit" in command:
                return (-9, b"", 'Timeout: the command "git commit" did not complete in 1 secs.')
            return execute(self, command, **kwargs)

        _ = mocker.patch.object(Git, "execute", autospec=True, side_effect=kill_commit)

        with pytest.raises(CommitError) as exc_info:
            writer.commit(handle, "spec.md", "draft", "Add spec")

        assert isinstance(exc_info.value.__cause__, GitTimeoutError)
        mocker.stopall()
        assert git(handle.path, "rev-parse", "HEAD") == head
        assert git(handle.path, "diff", "--cached", "--name-only") == ""
        assert reader.log(handle, "spec.md") == []


class TestSyncAfterCommit:
    def test_without_remote_sync_is_skipped(
        self, writer: VersionWriter, handle: RepositoryHandle
    ) -> None:
        result = writer.commit(handle, "spec.md", "x", "Add spec")

        assert result.sync is not None
        assert result.sync.skipped_no_remote

    def test_auto_push_disabled_skips_sync(
        self, manager: RepositoryManager, handle: RepositoryHandle
    ) -> None:
        writer = VersionWriter(manager, synchronizer=RemoteSynchronizer(), auto_push=False)

        result = writer.commit(handle, "spec.md", "x", "Add spec")

        assert result.sync is None

    def test_pushes_commit_to_remote(
        self,
        writer: VersionWriter,
        handle: RepositoryHandle,
        bare_remote: Path,
        attach_remote: AttachRemote,
        git: Callable[..., str],
    ) -> None:
        attach_remote(handle, str(bare_remote))

        result = writer.commit(handle, "spec.md", "x", "Add spec")

        assert result.sync is not None
        assert result.sync.ok
        assert git(bare_remote, "rev-parse", "refs/heads/main") == result.sha

    def test_remote_failure_keeps_local_commit(
        self,
        writer: VersionWriter,
        handle: RepositoryHandle,
        tmp_path: Path,
        attach_remote: AttachRemote,
        git: Callable[..., str],
    ) -> None:
        attach_remote(handle, str(tmp_path / "does-not-exist.git"))

        result = writer.commit(handle, "spec.md", "x", "Add spec")

        assert git(handle.path, "rev-parse", "HEAD") == result.sha
        assert result.sync is not None
        assert not result.sync.ok
        assert result.sync.failure is PushFailure.UNREACHABLE
