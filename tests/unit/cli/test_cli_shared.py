import orjson
import pytest
from rich.console import Console

from vcsync.cli import ExitCode
from vcsync.cli._shared import exit_code_for, format_json, handle_errors, sync_to_dict
from vcsync.exceptions import (
    CommitError,
    ConfigValidationError,
    ContentNotFoundError,
    GitTimeoutError,
    PathViolationError,
    ProviderAPIError,
    RemoteError,
    RemoteURLError,
    RepositoryInitError,
    WriteError,
)
from vcsync.sync import PushFailure, SyncResult, SyncState


class TestExitCodeFor:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ContentNotFoundError("missing", path="a.md"), ExitCode.NOT_FOUND),
            (FileNotFoundError("vcsync.toml"), ExitCode.NOT_FOUND),
            (ProviderAPIError("denied", status_code=403), ExitCode.REMOTE_ERROR),
            (RemoteURLError("Not a repository URL"), ExitCode.REMOTE_ERROR),
            (RemoteError("remote"), ExitCode.REMOTE_ERROR),
            (PathViolationError("bad", value=".."), ExitCode.VALIDATION_ERROR),
            (
                ConfigValidationError("bad", key="git.timeout_seconds", value=0, expected="> 0"),
                ExitCode.VALIDATION_ERROR,
            ),
            (ValueError("no files"), ExitCode.VALIDATION_ERROR),
            (WriteError("disk full", path="a.md"), ExitCode.IO_ERROR),
            (RepositoryInitError("init", entity_id="p"), ExitCode.IO_ERROR),
            (GitTimeoutError("slow", command="commit", timeout=1.0), ExitCode.IO_ERROR),
            (PermissionError("denied"), ExitCode.IO_ERROR),
            (CommitError("commit failed"), ExitCode.INTERNAL_ERROR),
            (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
        ],
    )
    def test_maps_errors(self, error: BaseException, expected: ExitCode) -> None:
        assert exit_code_for(error) is expected


class TestHandleErrors:
    def test_prints_message_and_exits(
        self, console: Console, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info, handle_errors(console):
            raise ContentNotFoundError("[docs/a.md] not found", path="docs/a.md")

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Error: [docs/a.md] not found" in capsys.readouterr().out

    def test_lets_unexpected_errors_propagate(self, console: Console) -> None:
        with pytest.raises(RuntimeError), handle_errors(console):
            raise RuntimeError("bug")


class TestFormatting:
    def test_format_json_indents(self) -> None:
        text = format_json({"a": 1, "b": [1, 2]})

        assert text.startswith("{\n  ")
        assert orjson.loads(text) == {"a": 1, "b": [1, 2]}

    def test_format_json_compact(self) -> None:
        assert format_json([{"a": 1}], indent=False) == '[{"a":1}]'

    def test_sync_to_dict(self) -> None:
        result = SyncResult(
            ok=False,
            error="git push failed",
            failure=PushFailure.UNREACHABLE,
            states=(SyncState.PUSH_DEFAULT, SyncState.FAIL),
        )

        assert sync_to_dict(result) == {
            "ok": False,
            "skipped_no_remote": False,
            "error": "git push failed",
            "failure": "unreachable",
            "states": ["push_default", "fail"],
            "branch": None,
        }

    def test_sync_to_dict_is_json_serializable(self) -> None:
        text = format_json(sync_to_dict(SyncResult.skipped()))

        assert orjson.loads(text)["skipped_no_remote"] is True
