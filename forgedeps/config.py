"""Configuration file loader for forgedeps.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``forgedeps.toml``: settings under ``[forgedeps]`` table
- ``pyproject.toml``: settings under ``[tool.forgedeps]`` table

Discovery order:

1. Explicit path from ``--config`` or ``FORGEDEPS_CONFIG``
2. ``forgedeps.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.forgedeps]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``forgedeps.toml``)::

    [forgedeps]
    managed_modules = "managed_modules.yaml"
    verbose_report = true
    logs_file = "logs/forgedeps.log"
    max_workers = 8
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type

from forgedeps.exceptions import ConfigError
from forgedeps.utils.logger import get_logger
from forgedeps.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_USE_SLACK,
    DEFAULT_VERBOSE_REPORT,
    FORGE_API_URL,
)

logger = get_logger("config")


@dataclass
class ForgeDepsConfig:
    """Parsed and validated forgedeps configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        managed_modules: File path or URL of the managed module list.
            ``None`` uses the Puppet supported modules list.
        verbose_report: Include satisfied dependencies in the report.
        logs_file: Write the report to this file as well.
        use_slack: Post the report to Slack.
        max_workers: Evaluation thread pool size (``None`` = CPU count).
        timeout: HTTP request timeout in seconds.
        forge_api_url: Base URL of the Forge API.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    managed_modules: Optional[str] = None
    verbose_report: bool = DEFAULT_VERBOSE_REPORT
    logs_file: Optional[str] = None
    use_slack: bool = DEFAULT_USE_SLACK
    max_workers: Optional[int] = None
    timeout: int = DEFAULT_TIMEOUT
    forge_api_url: str = FORGE_API_URL

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {name: getattr(self, name) for name in _OPTIONS}


#: option name -> (accepted types, must be positive)
_OPTIONS: Dict[str, Tuple[Tuple[Type, ...], bool]] = {
    "managed_modules": ((str,), False),
    "verbose_report": ((bool,), False),
    "logs_file": ((str,), False),
    "use_slack": ((bool,), False),
    "max_workers": ((int,), True),
    "timeout": ((int,), True),
    "forge_api_url": ((str,), False),
}


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    forgedeps_toml = cwd / "forgedeps.toml"
    if forgedeps_toml.is_file():
        logger.debug("Found forgedeps.toml: %s", forgedeps_toml)
        return forgedeps_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_forgedeps_section(pyproject_toml):
        logger.debug("Found [tool.forgedeps] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_forgedeps_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.forgedeps] section.

    Parse errors are ignored so that a broken unrelated pyproject.toml
    does not prevent the tool from running with defaults.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "forgedeps" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> ForgeDepsConfig:
    """Load and validate forgedeps configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`ForgeDepsConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return ForgeDepsConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("forgedeps", {})
    else:
        section = raw.get("forgedeps", {})

    if not section:
        logger.debug("Config file found but no forgedeps section, using defaults")
        return ForgeDepsConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> ForgeDepsConfig:
    """Parse and validate a ``[forgedeps]`` or ``[tool.forgedeps]`` table.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    unknown = set(section) - set(_OPTIONS)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = ForgeDepsConfig()

    for name, value in section.items():
        types, positive = _OPTIONS[name]
        # bool is an int subclass; reject it for integer options
        if not isinstance(value, types) or (bool not in types and isinstance(value, bool)):
            expected = " or ".join(t.__name__ for t in types)
            raise ConfigError(
                f"{name} must be {_article(expected)} {expected}, got {type(value).__name__}",
                config_path=config_path,
                option=name,
            )
        if positive and value < 1:
            raise ConfigError(
                f"{name} must be a positive integer, got {value}",
                config_path=config_path,
                option=name,
            )
        setattr(config, name, value)

    return config


def _article(word: str) -> str:
    return "an" if word[:1] in "aeiou" else "a"
