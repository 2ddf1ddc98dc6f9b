"""Report sinks for forgedeps.

A sink delivers a finished audit report somewhere: the terminal, a log
file, or a Slack channel. Every sink receives the same formatted text.
Sinks raise :class:`~forgedeps.exceptions.DeliveryError` on failure;
:func:`deliver_all` attempts every sink before surfacing failures.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union, runtime_checkable

from forgedeps.models import AuditReport
from forgedeps.utils.http import HTTPClient
from forgedeps.utils.logger import get_logger
from forgedeps.utils.console import print_report
from forgedeps.utils.filesystem import prepare_output_file
from forgedeps.constants import LOG_DATE_FORMAT, LOG_FILE_FORMAT, SLACK_WEBHOOK_ENVVAR
from forgedeps.exceptions import DeliveryError, FileOperationError, RegistryError

logger = get_logger("sinks")

# Outside the forgedeps hierarchy so the report stays out of diagnostics.
REPORT_LOGGER_NAME = "forgedeps-report"

__all__ = [
    "ReportSink",
    "ConsoleSink",
    "LogFileSink",
    "REPORT_LOGGER_NAME",
    "SlackWebhookSink",
    "deliver_all",
]


@runtime_checkable
class ReportSink(Protocol):
    """Destination for a formatted audit report."""

    name: str

    def deliver(self, report: AuditReport, formatted: str) -> None:
        """Deliver ``formatted``.

        Raises:
            DeliveryError: The report could not be delivered.
        """
        ...


class ConsoleSink:
    """Print the report to standard output."""

    name = "console"

    def __init__(self, writer: Optional[Callable[[str], None]] = None) -> None:
        self._writer = writer or print_report

    def deliver(self, report: AuditReport, formatted: str) -> None:
        self._writer(formatted)


class LogFileSink:
    """Overwrite a log file with the report as a single timestamped record.

    Args:
        path: Destination file. Any existing file is replaced.
    """

    name = "logfile"

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def deliver(self, report: AuditReport, formatted: str) -> None:
        try:
            target = prepare_output_file(self.path)
            handler = logging.FileHandler(target, mode="w", encoding="utf-8")
        except (FileOperationError, OSError) as exc:
            raise DeliveryError(
                f"Cannot write report to {self.path}: {exc}",
                sink=self.name,
            ) from exc

        handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_DATE_FORMAT))

        report_logger = logging.getLogger(REPORT_LOGGER_NAME)
        report_logger.propagate = False
        report_logger.setLevel(logging.INFO)
        report_logger.addHandler(handler)
        try:
            report_logger.info(formatted)
        finally:
            report_logger.removeHandler(handler)
            handler.close()

        logger.info("Report written to %s", target)


class SlackWebhookSink:
    """Post the report to a Slack incoming webhook.

    Args:
        webhook_url: Incoming webhook URL. Required at delivery time.
        http_client: Client used for the POST request.
    """

    name = "slack"

    def __init__(self, webhook_url: Optional[str], http_client: HTTPClient) -> None:
        self.webhook_url = webhook_url
        self.http_client = http_client

    def deliver(self, report: AuditReport, formatted: str) -> None:
        if not self.webhook_url:
            raise DeliveryError(
                f"{SLACK_WEBHOOK_ENVVAR} env var not specified",
                sink=self.name,
            )

        try:
            response = self.http_client.post(self.webhook_url, json={"text": formatted})
        except RegistryError as exc:
            raise DeliveryError(
                f"Encountered issue posting to Slack: {exc.message}",
                sink=self.name,
            ) from exc

        if not 200 <= response.status_code < 300:
            raise DeliveryError(
                f"Encountered issue posting to Slack (HTTP {response.status_code})",
                sink=self.name,
            )

        logger.info("Report posted to Slack")


def deliver_all(
    sinks: Sequence[ReportSink],
    report: AuditReport,
    formatted: str,
) -> None:
    """Hand the report to every sink in turn.

    A failing sink does not stop later sinks, and already completed
    deliveries are kept.

    Raises:
        DeliveryError: One or more sinks failed; ``errors`` lists each.
    """
    failures: List[DeliveryError] = []

    for sink in sinks:
        try:
            sink.deliver(report, formatted)
        except DeliveryError as exc:
            logger.error("Delivery to %s failed: %s", sink.name, exc)
            failures.append(exc)

    if len(failures) == 1:
        raise failures[0]
    if failures:
        raise DeliveryError(
            f"{len(failures)} report sinks failed: "
            + "; ".join(f.message for f in failures),
            errors=failures,
        )
