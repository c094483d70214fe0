"""The command-line interface for vcsync."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from vcsync.exceptions import ConfigError
from vcsync.utils import create_cli_logger

from ._commands import register_commands
from ._context import CLIContext, load_config
from ._shared import exit_code_for, exit_with_error

APP_HELP = "Git-backed versioned content storage for platform entities."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the CLI application.

    Global options are parsed by the meta app, which loads configuration
    and sets the CLIContext before dispatching to a command. Invoke the
    returned app through ``app.meta``.

    Args:
        console: Console for command output.
        error_console: Console for errors.
        exit_on_error: Exit on parse errors instead of raising.

    Returns:
        The configured cyclopts App.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="vcsync",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        root: Annotated[
            Path | None, Parameter(name="--root", help="Storage root for entity repositories")
        ] = None,
        verbose: Annotated[bool, Parameter(help="Log at the configured level")] = False,
    ) -> int | None:
        """Launch vcsync with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
            root: Storage root, overriding the config file.
            verbose: Log at the configured level instead of warnings only.
        """
        try:
            loaded_config = load_config(config_path=config, root=root)
        except (ConfigError, FileNotFoundError) as e:
            exit_with_error(str(e), exit_code_for(e), console=error_console)

        logging_config = loaded_config.logging
        # the CLI stays quiet on stderr unless asked or logging to a file
        level = (
            logging_config.level.value if verbose or logging_config.file else "warning"
        )
        cli_logger = create_cli_logger(
            level=level,
            log_format="json" if logging_config.format.value == "json" else "text",
            log_file=logging_config.file,
            command=tokens[0] if tokens else "",
        )

        ctx = CLIContext(
            config=loaded_config,
            verbose=verbose,
            console=console,
            error_console=error_console,
            logger=cli_logger,
        )
        CLIContext.set_current(ctx)

        try:
            return app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `vcsync` CLI."""
    app = create_app()
    app.meta()


if __name__ == "__main__":
    main()
