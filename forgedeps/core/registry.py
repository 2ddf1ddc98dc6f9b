"""Registry client capability interface for forgedeps.

The audit engine never talks to a registry directly; it consumes any object
implementing :class:`RegistryClient`. :class:`~forgedeps.core.forge.ForgeRegistryClient`
is the Puppet Forge implementation; tests use in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from forgedeps.constants import FORGE_NAME_SEPARATOR
from forgedeps.models import PackageMetadata, Version

__all__ = ["RegistryClient", "normalize_name"]


@runtime_checkable
class RegistryClient(Protocol):
    """Fetch module metadata, latest release and deprecation by name.

    Calls for distinct names are independent and must be safe to issue
    concurrently from several threads.
    """

    def exists(self, name: str) -> bool:
        """Return whether ``name`` exists. Never raises for "not found"."""
        ...

    def fetch_metadata(self, name: str) -> PackageMetadata:
        """Return the current release metadata of ``name``.

        Raises:
            NotFoundError: The module does not exist.
            TransientError: Network failure or unparsable metadata.
        """
        ...

    def is_deprecated(self, name: str) -> bool:
        ...

    def latest_version(self, name: str) -> Version:
        """Return the current release version of ``name``.

        Raises:
            NotFoundError: The module does not exist.
            TransientError: Network failure or unparsable version.
        """
        ...


def normalize_name(name: str) -> str:
    """Convert a module name to its registry-local ``owner-name`` form.

    Example::

        >>> normalize_name("PuppetLabs/stdlib")
        'puppetlabs-stdlib'
    """
    return name.strip().replace("/", FORGE_NAME_SEPARATOR).lower()
