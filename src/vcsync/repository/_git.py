"""Timeout-bounded git invocation.

Every git process the engine starts goes through GitRunner. Commands are
argument vectors, never shell strings, and each invocation carries a
timeout after which the process is killed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from git import Git
from git.exc import GitCommandError

from vcsync.exceptions import GitTimeoutError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

DEFAULT_TIMEOUT: Final = 60.0

# Prefix GitPython puts on stderr when it kills a process after its timeout.
_TIMEOUT_MARKER: Final = "Timeout:"

_BASE_ENV: Final[dict[str, str]] = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_LITERAL_PATHSPECS": "1",
    "GIT_MERGE_AUTOEDIT": "no",
    "GIT_EDITOR": "true",
}


@dataclass(frozen=True, slots=True)
class GitOutput:
    """Captured result of one git invocation.

    Attributes:
        args: Arguments passed after the git executable.
        status: Process exit status.
        stdout: Raw standard output, trailing newline preserved.
        stderr: Decoded standard error.
        timed_out: True if the process was killed after its timeout.
    """

    args: tuple[str, ...]
    status: int
    stdout: bytes
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """Return True if git exited successfully."""
        return self.status == 0 and not self.timed_out

    @property
    def text(self) -> str:
        """Return stdout decoded as UTF-8 with surrounding whitespace removed."""
        return self.stdout.decode("utf-8", errors="replace").strip()


class GitRunner:
    """Runs git subcommands in one working directory.

    Example:
        >>> runner = GitRunner(Path("/data/repos/proj-1"), timeout=30)
        >>> runner.check("rev-parse", "HEAD").text
        '3f2a...'
    """

    __slots__ = ("_env", "_git", "_timeout", "_working_dir")

    def __init__(
        self,
        working_dir: Path,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            working_dir: Directory git runs in.
            timeout: Default timeout in seconds for each invocation.
            env: Extra environment variables for every invocation.
        """
        self._working_dir: Path = working_dir
        self._git: Git = Git(working_dir)
        self._timeout: float = timeout
        self._env: dict[str, str] = {**_BASE_ENV, **(env or {})}

    @property
    def working_dir(self) -> Path:
        """Return the directory git runs in."""
        return self._working_dir

    @property
    def timeout(self) -> float:
        """Return the default timeout in seconds."""
        return self._timeout

    def run(
        self,
        *args: str,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> GitOutput:
        """Run a git subcommand and capture its output.

        A non-zero exit status is reported in the result, not raised.

        Args:
            *args: Arguments after the git executable.
            timeout: Override of the default timeout.
            env: Extra environment variables for this invocation.

        Returns:
            The captured output.
        """
        effective_env = {**self._env, **env} if env else self._env
        status, stdout, stderr = self._git.execute(
            [Git.GIT_PYTHON_GIT_EXECUTABLE or "git", *args],
            with_extended_output=True,
            with_exceptions=False,
            stdout_as_string=False,
            strip_newline_in_stdout=False,
            kill_after_timeout=timeout if timeout is not None else self._timeout,
            env=effective_env,
        )
        return GitOutput(
            args=args,
            status=status,
            stdout=stdout or b"",
            stderr=stderr or "",
            timed_out=stderr.startswith(_TIMEOUT_MARKER) if stderr else False,
        )

    def check(
        self,
        *args: str,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> GitOutput:
        """Run a git subcommand and raise if it fails.

        Raises:
            GitTimeoutError: If the process was killed after its timeout.
            GitCommandError: If git exited with a non-zero status.
        """
        output = self.run(*args, timeout=timeout, env=env)
        if output.timed_out:
            effective = timeout if timeout is not None else self._timeout
            msg = f"git {args[0]} timed out after {effective:g}s"
            raise GitTimeoutError(msg, command=args[0], timeout=effective)
        if output.status != 0:
            raise GitCommandError(["git", *args], output.status, output.stderr, output.stdout)
        return output
