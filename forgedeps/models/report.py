"""
Audit data models for forgedeps.

This module defines the immutable records that flow through an audit:

- :class:`Dependency` and :class:`PackageMetadata` describe what a
  registry reports for a module.
- :class:`EvaluationResult` is produced once per declared dependency.
- :class:`PackageReport` and :class:`AuditReport` aggregate results for
  one module and for the whole run.
- :class:`ValidationFailure` is the alternative outcome of a run whose
  inputs were rejected before any module was examined.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from forgedeps.models.version import Version, VersionRange


@dataclass(frozen=True)
class Dependency:
    """A dependency declared in a module's metadata.

    Args:
        name: Dependency module name as declared (``owner/name`` or
            ``owner-name``).
        range: Parsed version range, or ``None`` when ``requirement``
            could not be parsed.
        requirement: Raw requirement text, used for display.
        error: Why ``requirement`` could not be parsed.
    """

    name: str
    range: Optional[VersionRange]
    requirement: str = ""
    error: Optional[str] = None

    @property
    def display_range(self) -> str:
        return self.requirement.strip() or str(self.range or "*")

    def satisfied_by(self, version: Version) -> bool:
        """``False`` for an unparsable requirement, else the range check."""
        return self.range is not None and self.range.satisfies(version)


@dataclass(frozen=True)
class PackageMetadata:
    """Registry metadata for a module's current release."""

    name: str
    dependencies: Tuple[Dependency, ...] = ()
    deprecated: bool = False
    version: Optional[Version] = None


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of checking one dependency against its resolved version.

    Attributes:
        dependency_name: Name of the dependency module.
        range: Display form of the declared range.
        resolved_version: Version the range was checked against, or
            ``None`` when the lookup failed.
        satisfied: Whether ``resolved_version`` satisfies the range.
        resolved_via_override: ``True`` when the override version was used.
        deprecated: Whether the dependency module is deprecated.
        error: Lookup failure message when the version is unresolved, or
            the parse error of an unreadable requirement.
    """

    dependency_name: str
    range: str
    resolved_version: Optional[Version]
    satisfied: bool
    resolved_via_override: bool = False
    deprecated: bool = False
    error: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "dependency": self.dependency_name,
            "range": self.range,
            "resolved_version": (
                str(self.resolved_version) if self.resolved_version else None
            ),
            "satisfied": self.satisfied,
            "resolved_via_override": self.resolved_via_override,
            "deprecated": self.deprecated,
            "error": self.error,
        }


@dataclass(frozen=True)
class PackageReport:
    """Audit outcome for one module of the managed list."""

    package_name: str
    found: bool
    deprecated: bool = False
    results: Tuple[EvaluationResult, ...] = ()
    error: Optional[str] = None

    @property
    def all_satisfied(self) -> bool:
        """``True`` when the module was found and every dependency matches."""
        return self.found and all(r.satisfied for r in self.results)

    @property
    def has_deprecated_dependencies(self) -> bool:
        return any(r.deprecated for r in self.results)

    @classmethod
    def not_found(cls, package_name: str, error: Optional[str] = None) -> "PackageReport":
        return cls(package_name=package_name, found=False, error=error)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "package": self.package_name,
            "found": self.found,
            "deprecated": self.deprecated,
            "all_satisfied": self.all_satisfied,
            "error": self.error,
            "results": [r.to_json() for r in self.results],
        }


@dataclass(frozen=True)
class AuditReport:
    """Root aggregate of one audit run.

    ``package_reports`` is ordered like the managed module list, regardless
    of the order in which concurrent evaluations completed.
    """

    target_name: str
    target_version: Version
    target_deprecated: bool = False
    used_default_package_list: bool = False
    package_reports: Tuple[PackageReport, ...] = field(default_factory=tuple)

    @property
    def mismatched_packages(self) -> Tuple[PackageReport, ...]:
        return tuple(p for p in self.package_reports if not p.all_satisfied)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "target": self.target_name,
            "target_version": str(self.target_version),
            "target_deprecated": self.target_deprecated,
            "used_default_package_list": self.used_default_package_list,
            "packages": [p.to_json() for p in self.package_reports],
        }


@dataclass(frozen=True)
class ValidationFailure:
    """A run rejected before evaluation (bad target or module list)."""

    message: str

    def __str__(self) -> str:
        return self.message


#: Result of :meth:`forgedeps.core.runner.AuditRunner.audit`.
AuditOutcome = Union[AuditReport, ValidationFailure]
