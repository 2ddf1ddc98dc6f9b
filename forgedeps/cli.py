"""
Command-line interface for forgedeps.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from forgedeps.config import load_config
from forgedeps.__version__ import __version__
from forgedeps.context import ForgeDepsContext
from forgedeps.exceptions import ConfigError, ForgeDepsError
from forgedeps.utils.logger import get_logger, setup_logging
from forgedeps.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="FORGEDEPS_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="FORGEDEPS_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="forgedeps",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """forgedeps: check Puppet Forge modules against a new dependency version.

    \b
    Available commands:
      forgedeps check MODULE VERSION   Check managed modules against a version

    \b
    Examples:
      forgedeps check puppetlabs-stdlib 9.0.0
      forgedeps check puppetlabs-stdlib 9.0.0 --managed-modules modules.yaml
      forgedeps -v check puppetlabs-apt 10.0.0 --verbose-report

    Use ``forgedeps COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    forgedeps_ctx = ForgeDepsContext()
    forgedeps_ctx.config_path = config or loaded_config.source_path
    forgedeps_ctx.color = color
    forgedeps_ctx.verbose = verbose
    forgedeps_ctx.config = loaded_config
    ctx.obj = forgedeps_ctx

    logger.debug("forgedeps v%s", __version__)
    logger.debug("Config path: %s", forgedeps_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from forgedeps.commands.check import check  # noqa: E402

cli.add_command(check)


def main() -> int:
    """Main entry point for the forgedeps CLI.

    Returns:
        Exit code:
            0   Success
            1   Validation failure, delivery failure or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.exceptions.Exit as exc:
        return exc.exit_code

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except ForgeDepsError as exc:
        print_error(str(exc))
        logger.debug(
            "ForgeDepsError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
