"""Shared fixtures: an in-memory registry and managed module list loaders."""

from __future__ import annotations

import time
import random
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

import pytest

from forgedeps.core.registry import normalize_name
from forgedeps.core.module_list import ManagedModuleList
from forgedeps.exceptions import NotFoundError, TransientError
from forgedeps.models import Dependency, PackageMetadata, Version, VersionRange


class FakeRegistry:
    """In-memory RegistryClient.

    Modules are registered with :meth:`add`. Names listed in ``failing``
    raise :class:`TransientError` from every lookup. ``max_delay`` adds a
    random sleep to each call so concurrent evaluations finish out of order.
    """

    def __init__(self, *, max_delay: float = 0.0, seed: int = 7) -> None:
        self.modules: Dict[str, PackageMetadata] = {}
        self.failing: Set[str] = set()
        self.max_delay = max_delay
        self.calls: List[Tuple[str, str]] = []
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def add(
        self,
        name: str,
        version: str,
        dependencies: Iterable[Tuple[str, str]] = (),
        *,
        deprecated: bool = False,
    ) -> "FakeRegistry":
        self.modules[normalize_name(name)] = PackageMetadata(
            name=name,
            dependencies=tuple(
                Dependency(dep, VersionRange.parse(req), req)
                for dep, req in dependencies
            ),
            deprecated=deprecated,
            version=Version.parse(version),
        )
        return self

    def _lookup(self, op: str, name: str) -> PackageMetadata:
        key = normalize_name(name)
        with self._lock:
            self.calls.append((op, key))
            delay = self._random.uniform(0, self.max_delay) if self.max_delay else 0.0
        if delay:
            time.sleep(delay)
        if key in self.failing:
            raise TransientError(f"Lookup of {key} failed", package_name=key)
        if key not in self.modules:
            raise NotFoundError(f"Module '{key}' not found", package_name=key)
        return self.modules[key]

    def exists(self, name: str) -> bool:
        try:
            self._lookup("exists", name)
        except NotFoundError:
            return False
        return True

    def fetch_metadata(self, name: str) -> PackageMetadata:
        return self._lookup("fetch_metadata", name)

    def is_deprecated(self, name: str) -> bool:
        return self._lookup("is_deprecated", name).deprecated

    def latest_version(self, name: str) -> Version:
        metadata = self._lookup("latest_version", name)
        assert metadata.version is not None
        return metadata.version

    def count(self, op: str, name: Optional[str] = None) -> int:
        return sum(
            1
            for called_op, key in self.calls
            if called_op == op and (name is None or key == normalize_name(name))
        )


@pytest.fixture
def make_registry() -> Callable[..., FakeRegistry]:
    """Provide the FakeRegistry class for tests needing custom latency."""
    return FakeRegistry


@pytest.fixture
def registry() -> FakeRegistry:
    """Provide an empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def forge_registry() -> FakeRegistry:
    """Provide a registry populated with a small Forge-like module graph.

    ``puppetlabs-stdlib`` is the usual override target; ``acme-foo``
    requires it below 5.0.0, ``acme-bar`` accepts any 5.x or later and
    ``acme-baz`` has a deprecated dependency.
    """
    reg = FakeRegistry()
    reg.add("puppetlabs/stdlib", "4.25.1")
    reg.add("puppetlabs/concat", "7.4.0")
    reg.add("puppetlabs/translate", "2.2.0", deprecated=True)
    reg.add(
        "acme/foo",
        "1.0.0",
        [("puppetlabs/stdlib", ">= 1.1.0 < 5.0.0"), ("puppetlabs/concat", ">= 2.2.1 < 8.0.0")],
    )
    reg.add("acme/bar", "2.3.0", [("puppetlabs/stdlib", ">= 5.0.0")])
    reg.add(
        "acme/baz",
        "0.6.0",
        [("puppetlabs/translate", ">= 1.0.0 < 3.0.0"), ("puppetlabs/stdlib", ">= 4.0.0")],
    )
    reg.add("acme/empty", "0.1.0")
    return reg


def modules_loader(
    *names: str, used_default: bool = False
) -> Callable[[Optional[str]], ManagedModuleList]:
    """Return a module list loader yielding ``names``."""
    def _load(source: Optional[str]) -> ManagedModuleList:
        return ManagedModuleList(
            names=tuple(names),
            source=source or "<default>",
            used_default=used_default or source is None,
        )

    return _load


@pytest.fixture
def make_loader():
    """Provide a factory for in-memory managed module list loaders."""
    return modules_loader
