"""
Centralized constants for forgedeps.

This module defines immutable configuration values used across forgedeps,
including registry endpoints, network settings, report wording, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "forgedeps/{version} (https://github.com/forgedeps/forgedeps)"
)

# ---------------------------------------------------------------------------
# Puppet Forge endpoints
# ---------------------------------------------------------------------------

#: Base URL of the Puppet Forge API.
FORGE_API_URL: Final[str] = "https://forgeapi.puppet.com"

#: Path template for a single module resource.
FORGE_MODULE_PATH: Final[str] = "/v3/modules/{module}"

#: Separator used by the Forge between owner and module name.
FORGE_NAME_SEPARATOR: Final[str] = "-"

# ---------------------------------------------------------------------------
# Managed module list
# ---------------------------------------------------------------------------

#: Managed module list used when none is supplied (Puppet supported modules).
DEFAULT_MANAGED_MODULES: Final[str] = (
    "https://gist.githubusercontent.com/eimlav/"
    "6df50eda0b1c57c1ab8c33b64c82c336/raw/managed_modules.yaml"
)

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Include satisfied dependencies in the report.
DEFAULT_VERBOSE_REPORT: Final[bool] = False

#: Post the report to Slack.
DEFAULT_USE_SLACK: Final[bool] = False

#: Environment variable holding the Slack webhook URL.
SLACK_WEBHOOK_ENVVAR: Final[str] = "FORGEDEPS_SLACK_WEBHOOK"

#: Placeholder shown when a dependency version could not be resolved.
UNRESOLVED_VERSION: Final[str] = "unresolved"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading managed module lists.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging and report log files.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

#: Format of the report written by the log file sink.
LOG_FILE_FORMAT: Final[str] = "%(levelname).1s, [%(asctime)s] %(levelname)s -- : %(message)s"
