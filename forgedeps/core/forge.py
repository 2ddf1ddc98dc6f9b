"""Puppet Forge registry client for forgedeps.

Implements :class:`~forgedeps.core.registry.RegistryClient` on top of the
Forge v3 API. Every operation is answered from a single
``GET /v3/modules/{owner-name}`` response, which is cached for the lifetime
of the client so that a module requested by many workers (a popular
dependency such as ``puppetlabs-stdlib``) is fetched at most once per run.

Typical usage::

    from forgedeps.utils.http import HTTPClient
    from forgedeps.core.forge import ForgeRegistryClient

    with HTTPClient() as http:
        forge = ForgeRegistryClient(http)
        meta = forge.fetch_metadata("puppetlabs-apache")
        print([d.name for d in meta.dependencies])
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from forgedeps.models import Dependency, PackageMetadata, Version, VersionRange
from forgedeps.utils.http import HTTPClient
from forgedeps.utils.logger import get_logger
from forgedeps.core.registry import normalize_name
from forgedeps.constants import FORGE_API_URL, FORGE_MODULE_PATH
from forgedeps.exceptions import (
    MalformedRangeError,
    MalformedVersionError,
    NotFoundError,
    TransientError,
)

logger = get_logger("forge")

__all__ = ["ForgeRegistryClient"]


class ForgeRegistryClient:
    """Thread-safe, per-run cached Puppet Forge client.

    Successful responses and 404s are cached per normalised module name.
    Transient failures are not cached, so a later caller may try again.
    A per-name lock ensures concurrent callers asking for the same module
    trigger a single request, while different modules are fetched in
    parallel.

    Args:
        http_client: A pre-configured :class:`HTTPClient` instance.
        api_url: Base URL of the Forge API.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        api_url: str = FORGE_API_URL,
    ) -> None:
        self.http_client = http_client
        self.api_url = api_url.rstrip("/")

        # normalised name -> raw module payload, or None when the Forge 404s
        self._modules: Dict[str, Optional[Dict[str, Any]]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # RegistryClient interface
    # ------------------------------------------------------------------

    def exists(self, name: str) -> bool:
        try:
            self._get_module(name)
        except NotFoundError:
            return False
        return True

    def fetch_metadata(self, name: str) -> PackageMetadata:
        payload = self._get_module(name)
        release = _current_release(payload, name)
        metadata = release.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise TransientError(
                f"Malformed release metadata for '{name}'",
                package_name=name,
            )

        raw_dependencies = metadata.get("dependencies") or []
        if not isinstance(raw_dependencies, list):
            raise TransientError(
                f"Malformed dependency list for '{name}'",
                package_name=name,
            )

        return PackageMetadata(
            name=payload.get("slug") or normalize_name(name),
            dependencies=tuple(_parse_dependency(d, name) for d in raw_dependencies),
            deprecated=_is_deprecated(payload),
            version=_parse_release_version(release, name),
        )

    def is_deprecated(self, name: str) -> bool:
        return _is_deprecated(self._get_module(name))

    def latest_version(self, name: str) -> Version:
        release = _current_release(self._get_module(name), name)
        return _parse_release_version(release, name)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _get_module(self, name: str) -> Dict[str, Any]:
        """Return the cached module payload, fetching it on first use.

        Raises:
            NotFoundError: The Forge has no module called ``name``.
            TransientError: The request failed or returned invalid JSON.
        """
        key = normalize_name(name)

        with self._lock_for(key):
            if key in self._modules:
                payload = self._modules[key]
            else:
                payload = self._fetch(key)
                self._modules[key] = payload

        if payload is None:
            raise NotFoundError(
                f"Module '{key}' not found on Puppet Forge",
                package_name=key,
            )
        return payload

    def _fetch(self, key: str) -> Optional[Dict[str, Any]]:
        url = self.api_url + FORGE_MODULE_PATH.format(module=key)
        logger.debug("Fetching %s", url)
        try:
            return self.http_client.get_json(url)
        except NotFoundError:
            logger.debug("Module %s not found", key)
            return None
        except TransientError as exc:
            exc.package_name = key
            exc.details["package"] = key
            raise


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _current_release(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    release = payload.get("current_release")
    if not isinstance(release, dict):
        raise TransientError(
            f"Module '{name}' has no current release",
            package_name=name,
        )
    return release


def _parse_release_version(release: Dict[str, Any], name: str) -> Version:
    raw = release.get("version")
    try:
        return Version.parse(raw)
    except MalformedVersionError as exc:
        raise TransientError(
            f"Forge reported an invalid version {raw!r} for '{name}'",
            package_name=name,
        ) from exc


def _parse_dependency(raw: Any, owner: str) -> Dependency:
    """Build a :class:`Dependency` from one ``metadata.json`` entry.

    An unparsable requirement is kept on the dependency as an error so
    the other dependencies of the module can still be checked.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
        raise TransientError(
            f"Malformed dependency entry in '{owner}': {raw!r}",
            package_name=owner,
        )

    requirement = raw.get("version_requirement") or ""
    if not isinstance(requirement, str):
        requirement = repr(requirement)

    try:
        version_range = VersionRange.parse(requirement)
    except MalformedRangeError as exc:
        logger.warning(
            "Invalid version requirement %r for %s in %s",
            requirement,
            raw["name"],
            owner,
        )
        return Dependency(
            name=raw["name"],
            range=None,
            requirement=requirement,
            error=exc.message,
        )

    return Dependency(name=raw["name"], range=version_range, requirement=requirement)


def _is_deprecated(payload: Dict[str, Any]) -> bool:
    return bool(payload.get("deprecated_at"))
