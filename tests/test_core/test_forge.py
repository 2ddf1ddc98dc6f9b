"""Tests for forgedeps.core.forge.

The Forge v3 API is served by an httpx MockTransport stub. Covers payload
mapping, status code handling, tolerance of malformed release metadata and
requirements, the per-run module cache, and full audits run through
AuditRunner against the stub.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Generator, List, Optional

import httpx
import pytest

from forgedeps.core.forge import ForgeRegistryClient
from forgedeps.core.runner import AuditRunner
from forgedeps.core.registry import RegistryClient
from forgedeps.exceptions import NotFoundError, TransientError
from forgedeps.models import AuditReport, Version
from forgedeps.utils.http import HTTPClient


def _module(
    slug: str,
    version: str,
    dependencies: Optional[List[Dict[str, Any]]] = None,
    deprecated_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "slug": slug,
        "deprecated_at": deprecated_at,
        "current_release": {
            "version": version,
            "metadata": {"name": slug, "dependencies": dependencies or []},
        },
    }


MODULES: Dict[str, Any] = {
    "puppetlabs-apache": _module(
        "puppetlabs-apache",
        "12.1.0",
        [
            {"name": "puppetlabs/stdlib", "version_requirement": ">= 4.13.1 < 10.0.0"},
            {"name": "puppetlabs/concat", "version_requirement": ">= 2.2.1 < 10.0.0"},
        ],
    ),
    "puppetlabs-stdlib": _module("puppetlabs-stdlib", "9.6.0"),
    "puppetlabs-translate": _module(
        "puppetlabs-translate", "2.2.0", deprecated_at="2021-06-07 10:43:44 -0700"
    ),
    "acme-broken": _module("acme-broken", "not-semver"),
    "puppetlabs-concat": _module("puppetlabs-concat", "7.4.0"),
    "acme-badrange": _module(
        "acme-badrange",
        "1.0.0",
        [
            {"name": "puppetlabs/stdlib", "version_requirement": ">= 4.0.0 < 11.0.0"},
            {"name": "puppetlabs/concat", "version_requirement": ">= banana"},
        ],
    ),
    "acme-hyphen": _module(
        "acme-hyphen",
        "1.0.0",
        [
            {"name": "puppetlabs/stdlib", "version_requirement": ">= 4.0.0 < 9.0.0"},
            {"name": "puppetlabs/concat", "version_requirement": "1.0.0 - 8.0.0"},
        ],
    ),
    "acme-weird": {
        "slug": "acme-weird",
        "deprecated_at": None,
        "current_release": {"version": "1.0.0", "metadata": "oops"},
    },
    "acme-ok": _module(
        "acme-ok",
        "1.0.0",
        [{"name": "puppetlabs/stdlib", "version_requirement": ">= 4.0.0 < 11.0.0"}],
    ),
    "acme-norange": _module("acme-norange", "1.0.0", [{"name": "puppetlabs/stdlib"}]),
}


class ForgeStub:
    """MockTransport handler serving MODULES and counting requests."""

    def __init__(self) -> None:
        self.requests: List[str] = []
        self.fail_with: Optional[int] = None
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request.url.path)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, text="unavailable")
        name = request.url.path.rsplit("/", 1)[-1]
        if name in MODULES:
            return httpx.Response(200, json=MODULES[name])
        return httpx.Response(404, json={"message": "404 Not Found"})


@pytest.fixture
def stub() -> ForgeStub:
    """Provide a fresh Forge stub."""
    return ForgeStub()


@pytest.fixture
def forge(stub: ForgeStub) -> Generator[ForgeRegistryClient, None, None]:
    """Provide a ForgeRegistryClient backed by the stub transport."""
    with HTTPClient(transport=httpx.MockTransport(stub)) as http:
        yield ForgeRegistryClient(http, api_url="https://forge.test/")


@pytest.mark.unit
class TestForgeRegistryClient:
    """Tests for ForgeRegistryClient."""

    def test_implements_registry_protocol(self, forge: ForgeRegistryClient) -> None:
        """Test the client satisfies the RegistryClient interface."""
        assert isinstance(forge, RegistryClient)

    def test_exists(self, forge: ForgeRegistryClient) -> None:
        """Test exists distinguishes present and absent modules."""
        assert forge.exists("puppetlabs/stdlib") is True
        assert forge.exists("puppetlabs-nothing") is False

    def test_request_path(self, forge: ForgeRegistryClient, stub: ForgeStub) -> None:
        """Test names are normalized into the v3 module path."""
        forge.exists("PuppetLabs/Stdlib")

        assert stub.requests == ["/v3/modules/puppetlabs-stdlib"]

    def test_fetch_metadata(self, forge: ForgeRegistryClient) -> None:
        """Test dependencies, version and name are mapped from the payload."""
        metadata = forge.fetch_metadata("puppetlabs/apache")

        assert metadata.name == "puppetlabs-apache"
        assert metadata.version == Version.parse("12.1.0")
        assert metadata.deprecated is False
        assert [d.name for d in metadata.dependencies] == [
            "puppetlabs/stdlib",
            "puppetlabs/concat",
        ]
        stdlib = metadata.dependencies[0]
        assert stdlib.requirement == ">= 4.13.1 < 10.0.0"
        assert stdlib.range.satisfies(Version.parse("9.6.0"))

    def test_missing_requirement_accepts_anything(self, forge: ForgeRegistryClient) -> None:
        """Test a dependency without version_requirement is unconstrained."""
        [dep] = forge.fetch_metadata("acme-norange").dependencies

        assert dep.range.satisfies(Version.parse("0.0.1"))

    def test_latest_version(self, forge: ForgeRegistryClient) -> None:
        """Test the current release version is returned."""
        assert forge.latest_version("puppetlabs-stdlib") == Version.parse("9.6.0")

    def test_is_deprecated(self, forge: ForgeRegistryClient) -> None:
        """Test deprecated_at drives the deprecation flag."""
        assert forge.is_deprecated("puppetlabs-translate") is True
        assert forge.is_deprecated("puppetlabs-stdlib") is False

    def test_not_found_raises(self, forge: ForgeRegistryClient) -> None:
        """Test lookups other than exists raise NotFoundError."""
        with pytest.raises(NotFoundError):
            forge.fetch_metadata("acme-ghost")
        with pytest.raises(NotFoundError):
            forge.latest_version("acme-ghost")

    def test_invalid_release_version(self, forge: ForgeRegistryClient) -> None:
        """Test a non-SemVer release version is a transient failure."""
        with pytest.raises(TransientError):
            forge.latest_version("acme-broken")

    def test_invalid_requirement_kept_on_dependency(self, forge: ForgeRegistryClient) -> None:
        """Test an unparsable requirement only marks its own dependency."""
        stdlib, concat = forge.fetch_metadata("acme-badrange").dependencies

        assert stdlib.range is not None
        assert stdlib.error is None
        assert concat.range is None
        assert concat.requirement == ">= banana"
        assert "banana" in concat.error

    def test_hyphen_requirement(self, forge: ForgeRegistryClient) -> None:
        """Test hyphen ranges from metadata.json are inclusive on both ends."""
        _, concat = forge.fetch_metadata("acme-hyphen").dependencies

        assert concat.range.satisfies(Version.parse("1.0.0"))
        assert concat.range.satisfies(Version.parse("8.0.0"))
        assert not concat.range.satisfies(Version.parse("8.0.1"))

    def test_malformed_release_metadata(self, forge: ForgeRegistryClient) -> None:
        """Test non-object release metadata is a transient failure."""
        with pytest.raises(TransientError) as exc_info:
            forge.fetch_metadata("acme-weird")

        assert exc_info.value.package_name == "acme-weird"

    def test_server_error(self, forge: ForgeRegistryClient, stub: ForgeStub) -> None:
        """Test 5xx responses surface as TransientError with the module name."""
        stub.fail_with = 503

        with pytest.raises(TransientError) as exc_info:
            forge.exists("puppetlabs-stdlib")

        assert exc_info.value.status_code == 503
        assert exc_info.value.package_name == "puppetlabs-stdlib"


@pytest.mark.unit
class TestForgeCache:
    """Tests for the per-run module cache."""

    def test_each_module_fetched_once(
        self, forge: ForgeRegistryClient, stub: ForgeStub
    ) -> None:
        """Test all operations on one module share one request."""
        forge.exists("puppetlabs/stdlib")
        forge.fetch_metadata("puppetlabs-stdlib")
        forge.latest_version("puppetlabs/stdlib")
        forge.is_deprecated("PUPPETLABS-STDLIB")

        assert stub.requests == ["/v3/modules/puppetlabs-stdlib"]

    def test_not_found_is_cached(self, forge: ForgeRegistryClient, stub: ForgeStub) -> None:
        """Test a 404 is remembered for the rest of the run."""
        assert not forge.exists("acme-ghost")
        assert not forge.exists("acme/ghost")

        assert len(stub.requests) == 1

    def test_transient_failure_is_not_cached(
        self, forge: ForgeRegistryClient, stub: ForgeStub
    ) -> None:
        """Test a later call retries after a transient failure."""
        stub.fail_with = 500
        with pytest.raises(TransientError):
            forge.latest_version("puppetlabs-stdlib")

        stub.fail_with = None
        assert forge.latest_version("puppetlabs-stdlib") == Version.parse("9.6.0")
        assert len(stub.requests) == 2

    def test_concurrent_callers_share_one_request(
        self, forge: ForgeRegistryClient, stub: ForgeStub
    ) -> None:
        """Test concurrent lookups of one module issue a single request."""
        barrier = threading.Barrier(8)
        results: List[Version] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            version = forge.latest_version("puppetlabs-stdlib")
            with lock:
                results.append(version)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert stub.requests == ["/v3/modules/puppetlabs-stdlib"]


# ==============================================================================
# Test: Audits against the Forge client
# ==============================================================================


@pytest.mark.unit
class TestForgeAudit:
    """Tests running AuditRunner over payloads served by the stub."""

    def _audit(self, forge: ForgeRegistryClient, make_loader, *names: str) -> AuditReport:
        runner = AuditRunner(forge, make_loader(*names), max_workers=4)
        report = runner.audit("puppetlabs-stdlib", "10.0.0")
        assert isinstance(report, AuditReport)
        return report

    def test_malformed_metadata_only_affects_its_module(
        self, forge: ForgeRegistryClient, make_loader
    ) -> None:
        """Test a module with broken metadata does not abort the audit."""
        report = self._audit(forge, make_loader, "acme/weird", "acme/ok")

        weird, ok = report.package_reports
        assert weird.found is False
        assert "metadata" in weird.error
        assert ok.found is True
        assert ok.all_satisfied
        assert ok.results[0].resolved_via_override

    def test_bad_requirement_keeps_other_dependencies(
        self, forge: ForgeRegistryClient, make_loader
    ) -> None:
        """Test one unparsable range next to a valid one in the same module."""
        [package] = self._audit(forge, make_loader, "acme/badrange").package_reports

        stdlib, concat = package.results
        assert package.found is True
        assert stdlib.satisfied is True
        assert concat.satisfied is False
        assert concat.resolved_version == Version.parse("7.4.0")
        assert "banana" in concat.error
        assert not package.all_satisfied

    def test_hyphen_range_module_reports_mismatch(
        self, forge: ForgeRegistryClient, make_loader
    ) -> None:
        """Test a module using a hyphen range is fully evaluated."""
        [package] = self._audit(forge, make_loader, "acme/hyphen").package_reports

        stdlib, concat = package.results
        assert package.found is True
        assert stdlib.satisfied is False
        assert stdlib.resolved_version == Version.parse("10.0.0")
        assert concat.satisfied is True
        assert concat.error is None
