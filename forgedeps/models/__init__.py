"""
Unified data model exports for forgedeps.

Example:
    >>> from forgedeps.models import Version, VersionRange, AuditReport
"""

from __future__ import annotations

from forgedeps.models.version import Version, VersionRange
from forgedeps.models.report import (
    AuditOutcome,
    AuditReport,
    Dependency,
    EvaluationResult,
    PackageMetadata,
    PackageReport,
    ValidationFailure,
)

__all__ = [
    "Version",
    "VersionRange",
    "Dependency",
    "PackageMetadata",
    "EvaluationResult",
    "PackageReport",
    "AuditReport",
    "ValidationFailure",
    "AuditOutcome",
]
