"""Report formatting for forgedeps.

Turns an :class:`~forgedeps.models.AuditReport` into the text delivered to
report sinks. The text format uses Slack ``*bold*`` / ``_italic_`` markers
so that the same content reads well on a terminal, in a log file and in a
Slack channel::

    _*Starting dependency checks...*_
    Overriding *puppetlabs-stdlib* version with *9.0.0*

    Checking *puppetlabs/apache* dependencies.
        puppetlabs/stdlib (>= 4.13.1 < 9.0.0) *doesn't match* 9.0.0
        puppetlabs/concat (>= 2.2.1 < 8.0.0) *matches* 7.4.0
"""

from __future__ import annotations

import json
from typing import Callable, Dict, List

from forgedeps.core.registry import normalize_name
from forgedeps.constants import UNRESOLVED_VERSION
from forgedeps.models import AuditReport, EvaluationResult, PackageReport

__all__ = ["format_text", "format_json", "get_formatter", "FORMATTERS"]

MATCH = "matches"
MISMATCH = "doesn't match"


def format_text(report: AuditReport, *, verbose: bool = False) -> str:
    """Render a report as human-readable text.

    Args:
        report: The audit report.
        verbose: Include satisfied dependencies, not only mismatches.

    Returns:
        The full report text, ending with a blank line.
    """
    parts: List[str] = [
        "_*Starting dependency checks...*_\n"
        f"Overriding *{report.target_name}* version with *{report.target_version}*\n\n"
    ]

    if report.target_deprecated:
        parts.append(
            f"The module you are comparing against *{report.target_name}* "
            "is *deprecated*.\n\n"
        )

    if report.used_default_package_list:
        parts.append(
            "No managed_modules argument specified. "
            "Defaulting to Puppet supported modules.\n\n"
        )

    parts.extend(_format_package(p, verbose) for p in report.package_reports)
    return "".join(parts)


def _format_package(package: PackageReport, verbose: bool) -> str:
    lines = [f"Checking *{package.package_name}* dependencies.\n"]
    local_name = normalize_name(package.package_name)

    if not package.found:
        if package.error:
            lines.append(
                f"\t*Error:* Failed to fetch *{local_name}* from Puppet Forge: "
                f"{package.error}\n\n"
            )
        else:
            lines.append(
                f"\t*Error:* Could not find *{local_name}* on Puppet Forge! "
                "Ensure the module exists.\n\n"
            )
        return "".join(lines)

    if package.deprecated:
        lines.append(f"\t*Warning:* The module *{local_name}* is *deprecated*.\n")

    if not package.results:
        lines.append("\tNo dependencies listed\n\n")
        return "".join(lines)

    for result in package.results:
        if not result.satisfied:
            lines.append(f"\t{_result_line(result, MISMATCH)}\n")
        elif verbose:
            lines.append(f"\t{_result_line(result, MATCH)}\n")

        if result.deprecated:
            lines.append(
                f"\tThe dependency module *{result.dependency_name}* is *deprecated*.\n"
            )

    if package.all_satisfied and not package.has_deprecated_dependencies:
        lines.append("\tAll dependencies match\n")

    lines.append("\n")
    return "".join(lines)


def _result_line(result: EvaluationResult, verdict: str) -> str:
    resolved = (
        str(result.resolved_version)
        if result.resolved_version is not None
        else UNRESOLVED_VERSION
    )
    return f"{result.dependency_name} ({result.range}) *{verdict}* {resolved}"


def format_json(report: AuditReport, *, verbose: bool = False) -> str:
    """Render a report as indented JSON.

    ``verbose`` is accepted for signature compatibility; JSON output always
    contains every result.
    """
    return json.dumps(report.to_json(), indent=2) + "\n"


Formatter = Callable[..., str]

#: Output formats selectable from the CLI.
FORMATTERS: Dict[str, Formatter] = {
    "text": format_text,
    "json": format_json,
}


def get_formatter(name: str) -> Formatter:
    """Return the formatter registered under ``name``."""
    try:
        return FORMATTERS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown report format {name!r}; expected one of {', '.join(FORMATTERS)}"
        ) from None
