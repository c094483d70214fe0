from collections.abc import Callable
from pathlib import Path

import httpx
import orjson
import pytest
from cyclopts import App
from pytest_mock import MockerFixture
from rich.console import Console

from vcsync.cli import ExitCode, create_app
from vcsync.provider import ProviderClient

Invoke = Callable[..., int]


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "repositories"


@pytest.fixture
def app(console: Console) -> App:
    return create_app(console=console, error_console=console)


def _run(app: App, args: list[str]) -> int:
    """Run the CLI through its meta app and return the exit code."""
    try:
        result = app.meta(args)
    except SystemExit as e:
        return int(e.code or 0)
    return int(result or 0)


@pytest.fixture
def invoke(app: App, root: Path) -> Invoke:
    """Return a runner that sets ``--root`` to a temporary storage root."""

    def _invoke(*args: str) -> int:
        return _run(app, ["--root", str(root), *args])

    return _invoke


def _stdout(capsys: pytest.CaptureFixture[str]) -> str:
    return capsys.readouterr().out


class TestInit:
    def test_initializes_then_finds(
        self, invoke: Invoke, root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert invoke("init", "project-1") == ExitCode.SUCCESS
        assert "Initialized repository for project-1" in _stdout(capsys)
        assert (root / "project-1" / ".git").is_dir()

        assert invoke("init", "project-1") == ExitCode.SUCCESS
        assert "Found repository for project-1" in _stdout(capsys)

    def test_rejects_unsafe_entity(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert invoke("init", "..") == ExitCode.VALIDATION_ERROR
        assert "Error:" in _stdout(capsys)


class TestSaveAndRead:
    def test_save_show_and_log(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert invoke("save", "project-1", "spec.md", "--content", "one\n", "-m", "Add spec") == 0
        assert "Committed" in _stdout(capsys)
        assert invoke("save", "project-1", "spec.md", "-c", "two\n", "-m", "Edit spec") == 0
        _ = capsys.readouterr()

        assert invoke("show", "project-1", "spec.md") == 0
        assert _stdout(capsys) == "two\n"

        assert invoke("log", "project-1", "spec.md", "--format", "json") == 0
        rows = orjson.loads(_stdout(capsys))
        assert [r["version"] for r in rows] == [2, 1]
        assert [r["message"] for r in rows] == ["Edit spec", "Add spec"]

        assert invoke("show", "project-1", "spec.md", "--commit", rows[1]["sha"]) == 0
        assert _stdout(capsys) == "one\n"

    def test_save_from_file_with_author(
        self,
        invoke: Invoke,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        source = tmp_path / "model.json"
        _ = source.write_bytes(b'{"objects": []}')

        code = invoke(
            "save",
            "project-1",
            "model.json",
            "--file",
            str(source),
            "-m",
            "Update model: CRM",
            "--author-name",
            "Ada",
            "--author-email",
            "ada@example.com",
        )
        _ = capsys.readouterr()

        assert code == ExitCode.SUCCESS
        assert invoke("log", "project-1", "model.json", "--format", "json") == 0
        (row,) = orjson.loads(_stdout(capsys))
        assert (row["author_name"], row["author_email"]) == ("Ada", "ada@example.com")

    def test_identical_save_reports_no_changes(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        invoke("save", "project-1", "spec.md", "-c", "same", "-m", "Add spec")
        _ = capsys.readouterr()

        assert invoke("save", "project-1", "spec.md", "-c", "same", "-m", "Again") == 0
        assert "No changes; HEAD is" in _stdout(capsys)

    @pytest.mark.parametrize(
        "content_args",
        [(), ("--content", "x", "--file", "x.md")],
    )
    def test_requires_exactly_one_source(
        self, invoke: Invoke, content_args: tuple[str, ...], capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = invoke("save", "project-1", "spec.md", *content_args, "-m", "msg")

        assert code == ExitCode.VALIDATION_ERROR
        assert "exactly one of --file or --content" in _stdout(capsys)

    def test_author_parts_must_come_together(self, invoke: Invoke) -> None:
        code = invoke(
            "save", "project-1", "spec.md", "-c", "x", "-m", "msg", "--author-name", "Ada"
        )

        assert code == ExitCode.VALIDATION_ERROR

    def test_rejects_escaping_path(self, invoke: Invoke) -> None:
        assert invoke("save", "project-1", "../x.md", "-c", "x", "-m", "msg") == 2

    def test_missing_source_file(self, invoke: Invoke, tmp_path: Path) -> None:
        code = invoke("save", "project-1", "a.md", "-f", str(tmp_path / "nope"), "-m", "msg")

        assert code == ExitCode.NOT_FOUND

    def test_show_missing_path(self, invoke: Invoke, capsys: pytest.CaptureFixture[str]) -> None:
        assert invoke("show", "project-1", "missing.md") == ExitCode.NOT_FOUND
        assert "Error: missing.md does not exist at HEAD" in _stdout(capsys)

    def test_log_without_history(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert invoke("log", "project-1", "missing.md") == 0
        assert "No history for missing.md" in _stdout(capsys)


class TestDiffAndRemove:
    def test_diff_between_versions(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        invoke("save", "project-1", "spec.md", "-c", "one\n", "-m", "Add spec")
        invoke("save", "project-1", "spec.md", "-c", "two\n", "-m", "Edit spec")
        _ = capsys.readouterr()
        invoke("log", "project-1", "spec.md", "--format", "json")
        new, old = (r["sha"] for r in orjson.loads(_stdout(capsys)))

        assert invoke("diff", "project-1", "spec.md", old, new) == 0
        out = _stdout(capsys)
        assert "-one" in out
        assert "+two" in out

        assert invoke("diff", "project-1", "spec.md", new, new) == 0
        assert "No differences" in _stdout(capsys)

    def test_remove(self, invoke: Invoke, capsys: pytest.CaptureFixture[str]) -> None:
        invoke("save", "project-1", "spec.md", "-c", "x", "-m", "Add spec")

        assert invoke("rm", "project-1", "spec.md", "-m", "Delete spec.md") == 0
        assert invoke("show", "project-1", "spec.md") == ExitCode.NOT_FOUND
        assert invoke("rm", "project-1", "spec.md", "-m", "Again") == ExitCode.NOT_FOUND
        assert "Committed" in _stdout(capsys)


class TestSyncAndStats:
    def test_sync_without_remote(
        self, invoke: Invoke, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert invoke("sync", "project-1") == 0
        assert "No remote configured" in _stdout(capsys)

        assert invoke("sync", "project-1", "--format", "json") == 0
        assert orjson.loads(_stdout(capsys))["skipped_no_remote"] is True

    def test_sync_to_remote(
        self,
        invoke: Invoke,
        root: Path,
        bare_remote: Path,
        git: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        invoke("init", "project-1")
        git(root / "project-1", "remote", "add", "origin", str(bare_remote))

        assert invoke("sync", "project-1") == 0
        assert "Synced to main" in _stdout(capsys)

    def test_sync_failure_exits_with_remote_error(
        self,
        invoke: Invoke,
        root: Path,
        tmp_path: Path,
        git: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        invoke("init", "project-1")
        git(root / "project-1", "remote", "add", "origin", str(tmp_path / "missing.git"))
        _ = capsys.readouterr()

        assert invoke("sync", "project-1") == ExitCode.REMOTE_ERROR
        assert "Sync failed" in _stdout(capsys)

        assert invoke("sync", "project-1", "--format", "json") == ExitCode.REMOTE_ERROR
        assert orjson.loads(_stdout(capsys))["failure"] == "unreachable"

    def test_stats_json(
        self, invoke: Invoke, root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        invoke("save", "project-1", "spec.md", "-c", "x", "-m", "Add spec")
        _ = capsys.readouterr()

        assert invoke("stats", "project-1", "--format", "json") == 0
        data = orjson.loads(_stdout(capsys))
        assert data["commit_count"] == 2
        assert data["tracked_files"] == 2
        assert data["branch"] == "main"
        assert data["path"] == str((root / "project-1").resolve())


class TestAttach:
    def test_creates_repository_with_token_from_environment(
        self,
        invoke: Invoke,
        root: Path,
        git: Callable[..., str],
        mocker: MockerFixture,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = {
            "full_name": "acme/kb-project-1",
            "html_url": "https://example.test/acme/kb-project-1",
            "clone_url": "https://127.0.0.1:9/acme/kb-project-1.git",
            "private": True,
        }
        transport = httpx.MockTransport(lambda _: httpx.Response(201, json=payload))

        def client(token: str, **kwargs: object) -> ProviderClient:
            return ProviderClient(token, api_url="https://api.example.test", transport=transport)

        mocker.patch("vcsync.provider._provisioner.ProviderClient", side_effect=client)
        monkeypatch.setenv("VCSYNC_TOKEN", "tok-abc")

        code = invoke("attach", "project-1", "--name", "kb-project-1")

        out = _stdout(capsys)
        assert code == ExitCode.REMOTE_ERROR
        assert "Created acme/kb-project-1" in out
        assert "Remote: https://127.0.0.1:9/acme/kb-project-1.git" in out
        assert "tok-abc" not in out
        remote_url = git(root / "project-1", "config", "--get", "remote.origin.url")
        assert remote_url == "https://tok-abc@127.0.0.1:9/acme/kb-project-1.git"

    def test_provider_error_exits_with_remote_error(
        self,
        invoke: Invoke,
        mocker: MockerFixture,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        transport = httpx.MockTransport(
            lambda _: httpx.Response(422, json={"message": "name already exists on this account"})
        )

        def client(token: str, **kwargs: object) -> ProviderClient:
            return ProviderClient(token, api_url="https://api.example.test", transport=transport)

        mocker.patch("vcsync.provider._provisioner.ProviderClient", side_effect=client)

        code = invoke("attach", "project-1", "--token", "tok", "--name", "kb")

        assert code == ExitCode.REMOTE_ERROR
        assert "Error: name already exists on this account" in _stdout(capsys)


class TestGlobalOptions:
    def test_missing_config_file(
        self, app: App, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run(app, ["--config", str(tmp_path / "missing.toml"), "stats", "project-1"])

        assert code == ExitCode.NOT_FOUND
        assert "Config file not found" in _stdout(capsys)

    def test_config_file_sets_storage_root(
        self, app: App, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "vcsync.toml"
        _ = config.write_text('[storage]\nroot = "data"\n', encoding="utf-8")

        code = _run(app, ["--config", str(config), "init", "project-1"])

        assert code == ExitCode.SUCCESS
        assert (tmp_path / "data" / "project-1" / ".git").is_dir()
        assert "Initialized" in _stdout(capsys)
