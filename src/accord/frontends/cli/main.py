"""CLI entry point."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import rich_click as click

from accord.__version__ import __version__

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the CLI."""
    cli = build_cli()
    cli()


def build_cli() -> click.Group:
    """CLI definition."""
    # Configure rich-click styling
    click.rich_click.USE_RICH_MARKUP = True
    click.rich_click.USE_MARKDOWN = True
    click.rich_click.SHOW_ARGUMENTS = True
    click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
    click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
    click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
    click.rich_click.ERRORS_EPILOGUE = ""
    click.rich_click.MAX_WIDTH = 100

    # =========================================================================
    # Root CLI
    # =========================================================================
    @click.group()
    @click.version_option(version=__version__, prog_name="accord")
    def cli():
        """Accord - Console for the Accord peer-to-peer node.

        **Commands:**

            accord console   Full-screen command console
        """
        pass

    # =========================================================================
    # Console
    # =========================================================================
    @cli.command()
    @click.option("--port", "-p", type=int, default=None, help="Node listen port (default: 51030)")
    @click.option(
        "--data-dir",
        "-d",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Directory for local records (default: ~/.accord)",
    )
    @click.option(
        "--theme",
        "-t",
        type=click.Choice(["default", "nord", "dracula", "mono"], case_sensitive=False),
        default=None,
        help="Console theme",
    )
    @click.option("--no-autostart", is_flag=True, help="Do not start the node on launch")
    @click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        default=None,
        help="Log level for the log file",
    )
    def console(
        port: int | None,
        data_dir: Path | None,
        theme: str | None,
        no_autostart: bool,
        log_level: str | None,
    ):
        """Full-screen command console.

        Type slash commands at the prompt; **/help** lists them all.
        Logs go to the log file while the console owns the terminal.

        **Examples:**

            accord console

            accord console --port 51031 --theme nord

            accord console --data-dir ./alice --no-autostart
        """
        from accord.core.config import ConsoleConfig
        from accord.core.logging_config import configure_logging
        from accord.frontends.tui.console import run_console

        try:
            config = ConsoleConfig.load(
                listen_port=port,
                data_dir=data_dir,
                theme=theme,
                autostart=False if no_autostart else None,
                log_level=log_level,
            )
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="'--port'") from e

        configure_logging(level=config.log_level, file_path=config.log_file, console=False)

        try:
            asyncio.run(run_console(config))
        except KeyboardInterrupt:
            pass
        except Exception as e:
            logger.exception("Console terminated")
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    return cli
