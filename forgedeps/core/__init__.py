"""
Core functionality exports for forgedeps.

This module provides convenient access to the core subsystems of forgedeps.
Importing from here keeps user-facing imports clean and stable:

    from forgedeps.core import AuditRunner, ForgeRegistryClient
"""

from __future__ import annotations

from forgedeps.core.registry import RegistryClient, normalize_name
from forgedeps.core.forge import ForgeRegistryClient
from forgedeps.core.evaluator import DependencyEvaluator
from forgedeps.core.module_list import ManagedModuleList, load_managed_modules
from forgedeps.core.formatter import format_json, format_text, get_formatter
from forgedeps.core.runner import AuditRunner, RunState

__all__ = [
    "RegistryClient",
    "normalize_name",
    "ForgeRegistryClient",
    "DependencyEvaluator",
    "ManagedModuleList",
    "load_managed_modules",
    "format_text",
    "format_json",
    "get_formatter",
    "AuditRunner",
    "RunState",
]
