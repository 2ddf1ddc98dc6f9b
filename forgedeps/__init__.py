"""
forgedeps: Puppet Forge dependency compatibility auditor

forgedeps answers one question before a module release: if module X were
published at version V, which of the modules I maintain would declare a
dependency range that no longer accepts it?

For every module in a managed list, forgedeps fetches the declared
``metadata.json`` dependencies from the Forge, substitutes the override
version for the updated module, resolves every other dependency to its
current release, and reports matches, mismatches and deprecations.
"""

from __future__ import annotations

from forgedeps.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "forgedeps Contributors"
__license__ = "Apache-2.0"
__description__ = "Check Puppet module dependency ranges against an upcoming release."

__all__ = [
    "__version__",
]
