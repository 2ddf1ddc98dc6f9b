"""Managed module list loading for forgedeps.

The managed module list is a YAML array of module names, read from a local
file or downloaded from an ``http(s)`` URL::

    - puppetlabs/apache
    - puppetlabs/concat
    - puppetlabs/mysql

When no source is given, the list of Puppet supported modules published at
:data:`~forgedeps.constants.DEFAULT_MANAGED_MODULES` is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

import yaml

from forgedeps.utils.http import HTTPClient
from forgedeps.utils.logger import get_logger
from forgedeps.utils.filesystem import safe_read_file
from forgedeps.constants import DEFAULT_MANAGED_MODULES
from forgedeps.exceptions import FileOperationError, ModuleListError, RegistryError

logger = get_logger("module_list")

__all__ = ["ManagedModuleList", "ModuleListLoader", "load_managed_modules", "is_url"]


@dataclass(frozen=True)
class ManagedModuleList:
    """Module names loaded for one run."""

    names: Tuple[str, ...]
    source: str
    used_default: bool = False


#: Callable form consumed by :class:`~forgedeps.core.runner.AuditRunner`.
ModuleListLoader = Callable[[Optional[str]], ManagedModuleList]


def is_url(source: str) -> bool:
    """Return ``True`` if ``source`` is an ``http`` or ``https`` URL."""
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def load_managed_modules(
    source: Optional[str],
    http_client: HTTPClient,
) -> ManagedModuleList:
    """Load the managed module list from a file path or URL.

    Args:
        source: File path or URL; ``None`` selects the default list.
        http_client: Client used when ``source`` is a URL.

    Returns:
        The loaded :class:`ManagedModuleList`.

    Raises:
        ModuleListError: The source cannot be read, is not valid YAML, or
            is not an array of strings.
    """
    used_default = source is None
    location = DEFAULT_MANAGED_MODULES if source is None else source

    raw = _read_source(location, http_client)
    names = parse_module_list(raw, location)

    logger.info("Loaded %d managed module(s) from %s", len(names), location)
    return ManagedModuleList(
        names=tuple(names),
        source=location,
        used_default=used_default,
    )


def _read_source(location: str, http_client: HTTPClient) -> str:
    try:
        if is_url(location):
            logger.debug("Downloading managed module list from %s", location)
            return http_client.get_text(location)
        return safe_read_file(location)
    except (RegistryError, FileOperationError) as exc:
        raise ModuleListError(
            f"Ensure *{location}* is a valid file path or URL",
            source=location,
        ) from exc


def parse_module_list(raw: str, location: str = "<string>") -> List[str]:
    """Parse YAML text into a list of module names.

    Raises:
        ModuleListError: Invalid YAML, or not an array of strings.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ModuleListError(
            "Ensure syntax of managed_modules file is a valid YAML array",
            source=location,
        ) from exc

    if data is None:
        return []

    if not isinstance(data, list) or not all(isinstance(n, str) for n in data):
        raise ModuleListError(
            "Ensure syntax of managed_modules file is a valid YAML array",
            source=location,
        )

    return [n.strip() for n in data if n.strip()]
