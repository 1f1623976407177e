"""Ordered, thread-safe registry of plugins."""

from typing import Dict, List, Optional

import structlog

from ._rwlock import ReadWriteLock
from .exceptions import DuplicatePluginError, PluginNotFoundError
from .plugin_base import Plugin, PluginInfo, info_from_plugin


class PluginRegistry:
    """Maps plugin names to plugins, preserving registration order.

    Iteration (``all``, ``names``, ``info``) follows the order plugins
    were first registered. ``unregister`` exists for rolling back a
    plugin whose initialization failed.
    """

    def __init__(self, logger=None):
        self._plugins: Dict[str, Plugin] = {}
        self._lock = ReadWriteLock()
        if logger is None:
            logger = structlog.get_logger("modbot.plugins")
        self._logger = logger.bind(component="plugin-registry")

    def register(self, plugin: Plugin) -> None:
        """Add a plugin.

        Raises:
            DuplicatePluginError: A plugin with the same name exists.
        """
        name = plugin.name
        with self._lock.write_locked():
            if name in self._plugins:
                raise DuplicatePluginError(name)
            self._plugins[name] = plugin

        self._logger.info("plugin_registered", plugin=name, version=plugin.version)

    def unregister(self, name: str) -> None:
        """Remove a plugin by name.

        Raises:
            PluginNotFoundError: No plugin has that name.
        """
        with self._lock.write_locked():
            if name not in self._plugins:
                raise PluginNotFoundError(name)
            del self._plugins[name]

        self._logger.info("plugin_unregistered", plugin=name)

    def get(self, name: str) -> Optional[Plugin]:
        with self._lock.read_locked():
            return self._plugins.get(name)

    def all(self) -> List[Plugin]:
        """All plugins in registration order (a fresh list)."""
        with self._lock.read_locked():
            return list(self._plugins.values())

    def names(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._plugins)

    def count(self) -> int:
        with self._lock.read_locked():
            return len(self._plugins)

    __len__ = count

    def info(self) -> List[PluginInfo]:
        return [info_from_plugin(p) for p in self.all()]
