"""Check command implementation for forgedeps.

Overrides one Puppet Forge module's version with a proposed release and
checks whether every module in a managed module list still accepts it,
and whether their other dependencies resolve inside their declared ranges.

The command wires together:

1. **ForgeRegistryClient** for module lookups (cached per invocation).
2. **load_managed_modules** for the YAML module list (file or URL).
3. **AuditRunner** for validation, concurrent evaluation and aggregation.
4. **Report sinks** (console, optional log file, optional Slack webhook).

Typical usage::

    # Check the Puppet supported modules against a new stdlib release
    $ forgedeps check puppetlabs-stdlib 9.0.0

    # Custom module list, include satisfied dependencies, save a copy
    $ forgedeps check puppetlabs-apt 10.0.0 --managed-modules modules.yaml \\
        --verbose-report --logs-file logs/apt.log

    # Machine-readable JSON output
    $ forgedeps check puppetlabs-stdlib 9.0.0 --format json
"""

from __future__ import annotations

import sys
from typing import List, Optional

import click

from forgedeps.models import ValidationFailure
from forgedeps.exceptions import ForgeDepsError
from forgedeps.constants import SLACK_WEBHOOK_ENVVAR
from forgedeps.context import pass_context, ForgeDepsContext
from forgedeps.sinks import ConsoleSink, LogFileSink, ReportSink, SlackWebhookSink
from forgedeps.core import (
    AuditRunner,
    ForgeRegistryClient,
    get_formatter,
    load_managed_modules,
)
from forgedeps.utils import HTTPClient, get_logger, print_error

logger = get_logger("commands.check")


@click.command()
@click.argument("module")
@click.argument("version")
@click.option(
    "--managed-modules",
    "-m",
    default=None,
    help="File path or URL of a YAML array of module names.",
)
@click.option(
    "--verbose-report/--no-verbose-report",
    default=None,
    help="Include satisfied dependencies in the report.",
)
@click.option(
    "--logs-file",
    "-o",
    default=None,
    help="Also write the report to this file (overwritten).",
)
@click.option(
    "--slack/--no-slack",
    default=None,
    help="Post the report to a Slack incoming webhook.",
)
@click.option(
    "--slack-webhook",
    envvar=SLACK_WEBHOOK_ENVVAR,
    default=None,
    help=f"Slack incoming webhook URL (or set {SLACK_WEBHOOK_ENVVAR}).",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=None,
    help="Number of modules evaluated concurrently (default: CPU count).",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Report format.",
)
@pass_context
def check(
    ctx: ForgeDepsContext,
    module: str,
    version: str,
    managed_modules: Optional[str],
    verbose_report: Optional[bool],
    logs_file: Optional[str],
    slack: Optional[bool],
    slack_webhook: Optional[str],
    workers: Optional[int],
    format: str,
) -> None:
    """Check managed modules against MODULE at VERSION.

    MODULE is treated as if it were released at VERSION. Every module in
    the managed module list is fetched from the Puppet Forge and each of
    its dependencies is checked: MODULE against VERSION, every other
    dependency against its latest Forge release.

    Options left unset fall back to the configuration file, then to
    built-in defaults.

    Exits:
        0 when the report was produced and delivered, 1 when MODULE,
        VERSION or the module list is invalid, or a sink failed.

    Example::

        $ forgedeps check puppetlabs-stdlib 9.0.0 --verbose-report
    """
    config = ctx.config

    source = managed_modules if managed_modules is not None else config.managed_modules
    verbose = verbose_report if verbose_report is not None else config.verbose_report
    log_path = logs_file if logs_file is not None else config.logs_file
    use_slack = slack if slack is not None else config.use_slack
    max_workers = workers if workers is not None else config.max_workers

    try:
        with HTTPClient(timeout=config.timeout) as http:
            registry = ForgeRegistryClient(http, api_url=config.forge_api_url)
            sinks = _build_sinks(http, log_path, use_slack, slack_webhook)

            runner = AuditRunner(
                registry,
                lambda src: load_managed_modules(src, http),
                sinks=sinks,
                max_workers=max_workers,
                verbose=verbose,
                formatter=get_formatter(format.lower()),
            )
            outcome = runner.run(module, version, source)

    except ForgeDepsError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in check command")
        sys.exit(1)

    if isinstance(outcome, ValidationFailure):
        print_error(outcome.message)
        sys.exit(1)

    logger.info(
        "%d of %d module(s) have mismatched dependencies",
        len(outcome.mismatched_packages),
        len(outcome.package_reports),
    )
    sys.exit(0)


def _build_sinks(
    http: HTTPClient,
    log_path: Optional[str],
    use_slack: bool,
    slack_webhook: Optional[str],
) -> List[ReportSink]:
    """Assemble report sinks in delivery order: console, log file, Slack."""
    sinks: List[ReportSink] = [ConsoleSink()]
    if log_path:
        sinks.append(LogFileSink(log_path))
    if use_slack:
        sinks.append(SlackWebhookSink(slack_webhook, http))
    return sinks
