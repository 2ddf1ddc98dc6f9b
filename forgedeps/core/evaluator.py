"""Dependency evaluation for forgedeps.

:class:`DependencyEvaluator` answers, for each dependency declared by one
module, whether the version it would resolve to satisfies the declared
range. The override target resolves to the override version; every other
dependency resolves to its current release on the registry.

Typical usage::

    evaluator = DependencyEvaluator(registry)
    results = evaluator.evaluate(metadata, "puppetlabs-stdlib", Version.parse("9.0.0"))
    broken = [r for r in results if not r.satisfied]
"""

from __future__ import annotations

from typing import List

from forgedeps.exceptions import RegistryError
from forgedeps.utils.logger import get_logger
from forgedeps.core.registry import RegistryClient, normalize_name
from forgedeps.models import Dependency, EvaluationResult, PackageMetadata, Version

logger = get_logger("evaluator")

__all__ = ["DependencyEvaluator"]


class DependencyEvaluator:
    """Check a module's declared dependency ranges.

    Args:
        registry: Registry used to resolve non-overridden dependencies.
    """

    def __init__(self, registry: RegistryClient) -> None:
        if registry is None:
            raise TypeError("registry must not be None; pass a RegistryClient")
        self.registry = registry

    def evaluate(
        self,
        metadata: PackageMetadata,
        override_name: str,
        override_version: Version,
    ) -> List[EvaluationResult]:
        """Evaluate every dependency of ``metadata`` in declared order.

        No dependency is ever dropped: the result has exactly one entry per
        declared dependency. A dependency whose current version cannot be
        looked up is reported as unresolved and unsatisfied, and one whose
        requirement could not be parsed is reported as unsatisfied.

        Args:
            metadata: Metadata of the module being checked.
            override_name: Module whose version is overridden.
            override_version: Version substituted for ``override_name``.

        Returns:
            One :class:`EvaluationResult` per dependency.
        """
        target = normalize_name(override_name)
        return [
            self._evaluate_one(dependency, target, override_version)
            for dependency in metadata.dependencies
        ]

    def _evaluate_one(
        self,
        dependency: Dependency,
        target: str,
        override_version: Version,
    ) -> EvaluationResult:
        if normalize_name(dependency.name) == target:
            return EvaluationResult(
                dependency_name=dependency.name,
                range=dependency.display_range,
                resolved_version=override_version,
                satisfied=dependency.satisfied_by(override_version),
                resolved_via_override=True,
                error=dependency.error,
            )

        try:
            current = self.registry.latest_version(dependency.name)
        except RegistryError as exc:
            logger.warning("Cannot resolve dependency %s: %s", dependency.name, exc)
            return EvaluationResult(
                dependency_name=dependency.name,
                range=dependency.display_range,
                resolved_version=None,
                satisfied=False,
                error=exc.message,
            )

        return EvaluationResult(
            dependency_name=dependency.name,
            range=dependency.display_range,
            resolved_version=current,
            satisfied=dependency.satisfied_by(current),
            error=dependency.error,
        )
