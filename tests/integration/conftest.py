import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from vcsync.repository import HistoryReader, RepositoryHandle, RepositoryManager, VersionWriter
from vcsync.sync import RemoteSynchronizer


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def run_git(cwd: Path, *args: str) -> str:
    """Run a git command in the given directory and return its stdout."""
    result = subprocess.run(  # noqa: S603 - Safe: running git with controlled args
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        msg = f"git {' '.join(args)} failed: {result.stderr}"
        raise RuntimeError(msg)
    return result.stdout.strip()


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "repositories"


@pytest.fixture
def manager(storage_root: Path) -> Iterator[RepositoryManager]:
    with RepositoryManager(storage_root) as manager:
        yield manager


@pytest.fixture
def synchronizer() -> RemoteSynchronizer:
    return RemoteSynchronizer(network_timeout=30)


@pytest.fixture
def writer(manager: RepositoryManager, synchronizer: RemoteSynchronizer) -> VersionWriter:
    return VersionWriter(manager, synchronizer=synchronizer)


@pytest.fixture
def reader(manager: RepositoryManager) -> HistoryReader:
    return HistoryReader(manager)


@pytest.fixture
def handle(manager: RepositoryManager) -> RepositoryHandle:
    return manager.ensure_repository("project-1")


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """Create an empty bare repository to use as a remote."""
    remote = tmp_path / "remote.git"
    remote.mkdir()
    run_git(remote, "init", "--bare", "--quiet")
    return remote


@pytest.fixture
def attach_remote() -> Callable[[RepositoryHandle, str], None]:
    """Return a function that configures ``origin`` on a handle."""

    def _attach(handle: RepositoryHandle, url: str) -> None:
        run_git(handle.path, "remote", "add", "origin", url)

    return _attach


@pytest.fixture
def push_from_clone(tmp_path: Path) -> Callable[[Path, str, str, str], str]:
    """Return a function that commits a file in a fresh clone and pushes it.

    Simulates another writer updating the remote behind the entity's back.
    """
    counter = iter(range(1000))

    def _push(remote: Path, path: str, content: str, message: str) -> str:
        clone = tmp_path / f"clone-{next(counter)}"
        run_git(tmp_path, "clone", "--quiet", str(remote), str(clone))
        target = clone / path
        target.parent.mkdir(parents=True, exist_ok=True)
        _ = target.write_text(content, encoding="utf-8")
        run_git(clone, "add", "--", path)
        run_git(clone, "commit", "--quiet", "-m", message)
        run_git(clone, "push", "--quiet", "origin", "HEAD:refs/heads/main")
        return run_git(clone, "rev-parse", "HEAD")

    return _push


@pytest.fixture
def git() -> Callable[..., str]:
    """Return the plain git helper for assertions against real repositories."""
    return run_git
