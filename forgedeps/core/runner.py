"""Audit orchestration for forgedeps.

:class:`AuditRunner` drives one audit through its states::

    VALIDATING -> LOADING -> EVALUATING -> AGGREGATING -> REPORTING -> DONE
        \\-> FAILED_VALIDATION

Validation is fail-fast: an unknown target module, an invalid target
version or an unusable managed module list ends the run with a
:class:`~forgedeps.models.ValidationFailure` before any module is
examined. Past that point every per-module failure is absorbed into the
report, so a completed run always describes every module of the list, in
list order.

Typical usage::

    with HTTPClient() as http:
        registry = ForgeRegistryClient(http)
        runner = AuditRunner(
            registry,
            lambda source: load_managed_modules(source, http),
            sinks=[ConsoleSink()],
        )
        outcome = runner.run("puppetlabs-stdlib", "9.0.0")
"""

from __future__ import annotations

import os
from enum import Enum
from dataclasses import replace
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from forgedeps.utils.logger import get_logger
from forgedeps.core.formatter import Formatter, format_text
from forgedeps.core.evaluator import DependencyEvaluator
from forgedeps.core.module_list import ManagedModuleList, ModuleListLoader
from forgedeps.core.registry import RegistryClient, normalize_name
from forgedeps.sinks import ReportSink, deliver_all
from forgedeps.exceptions import (
    MalformedVersionError,
    ModuleListError,
    RegistryError,
)
from forgedeps.models import (
    AuditOutcome,
    AuditReport,
    EvaluationResult,
    PackageReport,
    ValidationFailure,
    Version,
)

logger = get_logger("runner")

__all__ = ["AuditRunner", "RunState"]


class RunState(Enum):
    """Lifecycle of a single audit run."""

    PENDING = "pending"
    VALIDATING = "validating"
    LOADING = "loading"
    EVALUATING = "evaluating"
    AGGREGATING = "aggregating"
    REPORTING = "reporting"
    DONE = "done"
    FAILED_VALIDATION = "failed_validation"


class AuditRunner:
    """Check a managed module list against an overridden module version.

    Args:
        registry: Registry used for every lookup.
        module_list_loader: Callable returning the managed module list for
            a source (``None`` selects the default list).
        sinks: Report destinations, attempted in order by :meth:`run`.
        max_workers: Size of the evaluation thread pool. Defaults to the
            number of available CPUs.
        verbose: Include satisfied dependencies in formatted reports.
        formatter: Report formatter (text by default).
    """

    def __init__(
        self,
        registry: RegistryClient,
        module_list_loader: ModuleListLoader,
        *,
        sinks: Iterable[ReportSink] = (),
        max_workers: Optional[int] = None,
        verbose: bool = False,
        formatter: Formatter = format_text,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")

        self.registry = registry
        self.module_list_loader = module_list_loader
        self.sinks: List[ReportSink] = list(sinks)
        self.max_workers = max_workers or os.cpu_count() or 1
        self.verbose = verbose
        self.formatter = formatter
        self.evaluator = DependencyEvaluator(registry)
        self.state = RunState.PENDING

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self,
        target_name: str,
        target_version: str,
        managed_modules: Optional[str] = None,
    ) -> AuditOutcome:
        """Audit the managed modules and deliver the report to every sink.

        Returns:
            The :class:`AuditReport`, or the :class:`ValidationFailure`
            that stopped the run (sinks are not invoked in that case).

        Raises:
            DeliveryError: One or more sinks failed. Every sink has been
                attempted before this is raised.
        """
        outcome = self.audit(target_name, target_version, managed_modules)
        if isinstance(outcome, AuditReport):
            self.publish(outcome)
        return outcome

    def audit(
        self,
        target_name: str,
        target_version: str,
        managed_modules: Optional[str] = None,
    ) -> AuditOutcome:
        """Validate inputs, evaluate every managed module and aggregate.

        Args:
            target_name: Module whose version is overridden.
            target_version: SemVer string used as that module's version.
            managed_modules: File path or URL of the managed module list.

        Returns:
            An :class:`AuditReport`, or a :class:`ValidationFailure`.
        """
        self.state = RunState.VALIDATING
        validated = self._validate(target_name, target_version)
        if isinstance(validated, ValidationFailure):
            return self._fail(validated)
        version = validated

        self.state = RunState.LOADING
        try:
            module_list = self.module_list_loader(managed_modules)
        except ModuleListError as exc:
            return self._fail(ValidationFailure(exc.message))

        self.state = RunState.EVALUATING
        package_reports = self._evaluate_all(module_list, target_name, version)

        self.state = RunState.AGGREGATING
        report = AuditReport(
            target_name=target_name,
            target_version=version,
            target_deprecated=self._is_deprecated(target_name),
            used_default_package_list=module_list.used_default,
            package_reports=package_reports,
        )
        logger.info(
            "Audit complete: %d module(s), %d with mismatches",
            len(report.package_reports),
            len(report.mismatched_packages),
        )
        return report

    def publish(self, report: AuditReport) -> str:
        """Format ``report`` and hand it to every sink.

        Returns:
            The formatted report.

        Raises:
            DeliveryError: One or more sinks failed.
        """
        self.state = RunState.REPORTING
        formatted = self.formatter(report, verbose=self.verbose)
        try:
            deliver_all(self.sinks, report, formatted)
        finally:
            self.state = RunState.DONE
        return formatted

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(
        self,
        target_name: str,
        target_version: str,
    ) -> Union[Version, ValidationFailure]:
        try:
            exists = self.registry.exists(target_name)
        except RegistryError as exc:
            return ValidationFailure(
                f"Could not look up *{target_name}* on Puppet Forge: {exc.message}"
            )

        if not exists:
            return ValidationFailure(
                f"Could not find *{target_name}* on Puppet Forge! "
                "Ensure updated_module argument is valid."
            )

        try:
            return Version.parse(target_version)
        except MalformedVersionError:
            return ValidationFailure(
                f"Verify semantic versioning syntax *{target_version}* "
                "of updated_module_version argument."
            )

    def _fail(self, failure: ValidationFailure) -> ValidationFailure:
        logger.debug("Validation failed: %s", failure.message)
        self.state = RunState.FAILED_VALIDATION
        return failure

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate_all(
        self,
        module_list: ManagedModuleList,
        target_name: str,
        target_version: Version,
    ) -> Tuple[PackageReport, ...]:
        names = module_list.names
        if not names:
            return ()

        workers = min(self.max_workers, len(names))
        logger.debug("Evaluating %d module(s) with %d worker(s)", len(names), workers)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._evaluate_package, name, target_name, target_version)
                for name in names
            ]
            # Joined by submission index, not completion order
            return tuple(future.result() for future in futures)

    def _evaluate_package(
        self,
        package_name: str,
        target_name: str,
        target_version: Version,
    ) -> PackageReport:
        local_name = normalize_name(package_name)
        logger.debug("Checking %s", local_name)

        try:
            if not self.registry.exists(local_name):
                logger.warning("Module %s not found", local_name)
                return PackageReport.not_found(package_name)

            metadata = self.registry.fetch_metadata(local_name)
            results = self.evaluator.evaluate(metadata, target_name, target_version)
        except RegistryError as exc:
            logger.warning("Cannot evaluate %s: %s", local_name, exc)
            return PackageReport.not_found(package_name, error=exc.message)

        return PackageReport(
            package_name=package_name,
            found=True,
            deprecated=self._is_deprecated(local_name),
            results=self._annotate_deprecations(results),
        )

    def _annotate_deprecations(
        self,
        results: Sequence[EvaluationResult],
    ) -> Tuple[EvaluationResult, ...]:
        """Flag deprecated dependencies on their first occurrence only."""
        seen: Set[str] = set()
        annotated: List[EvaluationResult] = []

        for result in results:
            key = normalize_name(result.dependency_name)
            if key in seen:
                annotated.append(result)
                continue
            seen.add(key)

            if self._is_deprecated(result.dependency_name):
                result = replace(result, deprecated=True)
            annotated.append(result)

        return tuple(annotated)

    def _is_deprecated(self, name: str) -> bool:
        """Registry deprecation flag; lookup failures count as not deprecated."""
        try:
            return self.registry.is_deprecated(name)
        except RegistryError as exc:
            logger.debug("Deprecation lookup failed for %s: %s", name, exc)
            return False
