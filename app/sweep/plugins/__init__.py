"""Cleanup plugins and the registry that runs them."""

from sweep.plugins.base import Plugin, PluginDescriptor, ScanContext
from sweep.plugins.large_files import LargeFilePlugin
from sweep.plugins.projects import PROFILES, ProjectPlugin, ProjectProfile
from sweep.plugins.registry import PluginRegistry, create_default_registry

__all__ = [
    "PROFILES",
    "LargeFilePlugin",
    "Plugin",
    "PluginDescriptor",
    "PluginRegistry",
    "ProjectPlugin",
    "ProjectProfile",
    "ScanContext",
    "create_default_registry",
]
