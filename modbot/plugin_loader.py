"""Plugin loading, capability aggregation and lifecycle management."""

import importlib.util
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import structlog

from .commands.base import Command
from .exceptions import PluginError, PluginInitError, PluginLoadError
from .middleware.base import Middleware
from .plugin_base import (
    CommandProvider,
    EventHandler,
    EventHandlerProvider,
    InitContext,
    Initializable,
    MiddlewareProvider,
    Plugin,
    PluginInfo,
    Shutdownable,
)
from .plugin_registry import PluginRegistry
from .session import Session

PLUGIN_FACTORY = "create_plugin"


class PluginLoader:
    """Registers and initializes plugins and collects their contributions.

    Args:
        registry: Plugin registry that owns the loaded plugins.
        logger: Optional structlog logger.
    """

    def __init__(self, registry: PluginRegistry, logger=None):
        self.registry = registry
        if logger is None:
            logger = structlog.get_logger("modbot.plugins")
        self._logger = logger.bind(component="plugin-loader")
        self._session: Optional[Session] = None
        self._configs: Dict[str, Dict[str, Any]] = {}

    def set_session(self, session: Optional[Session]) -> None:
        """Session handed to plugins initialized from now on."""
        self._session = session

    def set_plugin_config(self, plugin_name: str, config: Dict[str, Any]) -> None:
        self._configs[plugin_name] = dict(config)

    def configure_from(self, config) -> None:
        """Copy every ``plugins.<name>`` section out of a Config."""
        for name in config.plugin_names:
            self.set_plugin_config(name, config.plugin_config(name))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, plugin: Plugin) -> None:
        """Register a plugin and run its init hook if it has one.

        Raises:
            PluginLoadError: The plugin could not be registered.
            PluginInitError: ``init`` raised; the plugin was unregistered
                again before this is raised.
        """
        name = plugin.name
        try:
            self.registry.register(plugin)
        except PluginError as e:
            raise PluginLoadError(
                f"failed to register plugin {name!r}: {e.message}", plugin=name
            ) from e

        if isinstance(plugin, Initializable):
            ctx = InitContext(
                logger=self._logger.bind(plugin=name),
                session=self._session,
                config=dict(self._configs.get(name, {})),
            )
            try:
                plugin.init(ctx)
            except Exception as e:
                self.registry.unregister(name)
                self._logger.error(
                    "plugin_init_failed",
                    plugin=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise PluginInitError(
                    f"failed to initialize plugin {name!r}: {e}", plugin=name
                ) from e

            self._logger.debug("plugin_initialized", plugin=name)

    def load_all(self, *plugins: Plugin) -> None:
        """Load plugins in order, stopping at the first failure.

        Plugins loaded before the failure stay loaded.
        """
        for plugin in plugins:
            self.load(plugin)

    def discover(self, plugins_dir: Path, allowlist: Optional[Iterable[str]] = None) -> List[Plugin]:
        """Instantiate plugins found in ``<plugins_dir>/<name>/plugin.py``.

        Each plugin module exposes a ``create_plugin()`` factory. Plugins
        outside a configured allowlist, or disabled with
        ``plugins.<name>.enabled: false``, are skipped. Import failures
        are logged and skipped; nothing is registered here.
        """
        found: List[Plugin] = []
        if not plugins_dir.is_dir():
            self._logger.info("plugin_dir_missing", path=str(plugins_dir))
            return found

        allowed = set(allowlist) if allowlist is not None else None

        for plugin_dir in sorted(plugins_dir.iterdir()):
            plugin_file = plugin_dir / "plugin.py"
            if not plugin_dir.is_dir() or not plugin_file.is_file():
                continue

            dir_name = plugin_dir.name
            if allowed is not None and dir_name not in allowed:
                self._logger.warning("plugin_blocked_not_in_allowlist", plugin=dir_name)
                continue
            if self._configs.get(dir_name, {}).get("enabled") is False:
                self._logger.info("plugin_skipped_disabled", plugin=dir_name)
                continue

            try:
                plugin = self._import_plugin(dir_name, plugin_file)
            except Exception as e:
                self._logger.error(
                    "plugin_import_failed",
                    plugin=dir_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if plugin is not None:
                found.append(plugin)

        self._logger.info("plugin_discovery_complete", found=[p.name for p in found])
        return found

    def _import_plugin(self, dir_name: str, plugin_file: Path) -> Optional[Plugin]:
        module_name = f"modbot_plugins.{dir_name}"
        spec = importlib.util.spec_from_file_location(module_name, plugin_file)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        factory = getattr(module, PLUGIN_FACTORY, None)
        if not callable(factory):
            self._logger.warning("plugin_no_factory_found", plugin=dir_name)
            return None

        plugin = factory()
        if not isinstance(plugin, Plugin):
            self._logger.warning("plugin_factory_invalid_result", plugin=dir_name)
            return None
        return plugin

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def commands(self) -> List[Command]:
        """Commands from every CommandProvider, in plugin registration order."""
        commands: List[Command] = []
        for plugin in self.registry.all():
            if isinstance(plugin, CommandProvider):
                commands.extend(plugin.commands())
        return commands

    def middleware(self) -> List[Middleware]:
        """Middleware from every MiddlewareProvider, in plugin registration order."""
        middlewares: List[Middleware] = []
        for plugin in self.registry.all():
            if isinstance(plugin, MiddlewareProvider):
                middlewares.extend(plugin.middleware())
        return middlewares

    def event_handlers(self) -> List[EventHandler]:
        handlers: List[EventHandler] = []
        for plugin in self.registry.all():
            if isinstance(plugin, EventHandlerProvider):
                handlers.extend(plugin.event_handlers())
        return handlers

    def register_event_handlers(self, session: Session) -> None:
        """Subscribe every plugin event handler on the session."""
        for handler in self.event_handlers():
            session.add_handler(handler)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown_all(self) -> None:
        """Shut down every Shutdownable plugin in registration order.

        A failing shutdown is logged and does not stop the others.
        """
        for plugin in self.registry.all():
            if not isinstance(plugin, Shutdownable):
                continue
            try:
                plugin.shutdown()
            except Exception as e:
                self._logger.error(
                    "plugin_shutdown_failed",
                    plugin=plugin.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            else:
                self._logger.debug("plugin_shutdown_complete", plugin=plugin.name)

    def info(self) -> List[PluginInfo]:
        return self.registry.info()
