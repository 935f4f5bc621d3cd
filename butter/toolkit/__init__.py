"""Toolkit infusion: activate, disable and remove vendored asset bundles."""

from butter.toolkit.manager import ToolkitError, ToolkitManager, ToolkitState

__all__ = [
    "ToolkitError",
    "ToolkitManager",
    "ToolkitState",
]
