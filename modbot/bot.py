"""Bot assembly for modbot.

Wires the command registry, plugin system, middleware chain and
dispatcher together and keeps the platform's command catalog in sync
with what is registered locally.

Key classes:
    ModBot: Owns every core component for one bot instance.
"""

from typing import Iterable, List, Optional

import structlog

from .commands import default_commands
from .commands.base import Command
from .commands.registry import CommandRegistry
from .config import Config
from .dispatcher import InteractionDispatcher, ReadyHandler
from .exceptions import CommandError, ErrorCategory
from .middleware import Middleware, chain, permission_guard, recovery, request_logging
from .plugin_base import Plugin
from .plugin_loader import PluginLoader
from .plugin_registry import PluginRegistry
from .session import Session

logger = structlog.get_logger("modbot.bot")


class ModBot:
    """A moderation bot instance.

    Two-phase lifecycle like the gateway it runs on: construction builds
    the registries synchronously; ``start(session)`` loads plugins with
    the live session, subscribes the handlers and uploads the command
    catalog. ``stop()`` shuts plugins down and optionally removes the
    catalog again.

    Args:
        config: Loaded configuration.
        middlewares: Middleware applied to every command, outermost first.
            Defaults to recovery, request logging and the permission
            guard. Plugin middleware is appended after these.
        plugins: Plugins to load on ``start``.
        register_defaults: Register the built-in commands.
    """

    def __init__(
        self,
        config: Config,
        *,
        middlewares: Optional[Iterable[Middleware]] = None,
        plugins: Iterable[Plugin] = (),
        register_defaults: bool = True,
    ):
        self.config = config
        self.registry = CommandRegistry()
        self.plugin_registry = PluginRegistry()
        self.plugin_loader = PluginLoader(self.plugin_registry)
        self.plugin_loader.configure_from(config)
        self.session: Optional[Session] = None

        if middlewares is None:
            middlewares = (recovery(), request_logging(), permission_guard(self.registry))
        self._middlewares: List[Middleware] = list(middlewares)
        self._pending_plugins: List[Plugin] = [
            p for p in plugins if config.plugin_enabled(p.name)
        ]

        self.ready_handler = ReadyHandler()
        self.dispatcher = InteractionDispatcher(self.registry, self._compose())

        if register_defaults:
            for cmd in default_commands():
                self.registry.register(cmd)

    def _compose(self) -> Optional[Middleware]:
        middlewares = self._middlewares + self.plugin_loader.middleware()
        if not middlewares:
            return None
        return chain(*middlewares)

    def register_command(self, cmd: Command) -> None:
        """Register a command; raises RegistryError subclasses on conflict."""
        self.registry.register(cmd)

    def start(self, session: Session) -> None:
        """Load plugins, subscribe handlers and sync the command catalog.

        Raises:
            PluginError: A plugin failed to load.
            RegistryError: A plugin command clashes with a registered one.
            CommandError: The platform rejected a command descriptor.
        """
        self.session = session
        self.plugin_loader.set_session(session)
        self.plugin_loader.load_all(*self._pending_plugins)
        self._pending_plugins = []

        for cmd in self.plugin_loader.commands():
            self.registry.register(cmd)
        self.dispatcher.middleware = self._compose()

        session.add_handler(self.ready_handler.handle)
        session.add_handler(self.dispatcher.handle)
        self.plugin_loader.register_event_handlers(session)

        self.sync_commands()
        logger.info(
            "bot_started",
            commands=self.registry.names(),
            plugins=self.plugin_registry.names(),
        )

    def sync_commands(self) -> None:
        """Upload every registered command to the platform catalog."""
        guild_id = self.config.guild_id
        descriptors = self.registry.to_descriptors()
        logger.info(
            "registering_commands",
            scope="guild" if guild_id else "global",
            guild_id=guild_id or None,
            command_count=len(descriptors),
        )
        for descriptor in descriptors:
            try:
                self.session.application_command_create(
                    self.session.application_id, guild_id, descriptor
                )
            except Exception as e:
                raise CommandError(
                    descriptor.name,
                    f"catalog registration failed: {e}",
                    category=ErrorCategory.TRANSIENT,
                    module="bot",
                ) from e
            logger.debug("command_synced", command=descriptor.name)

    def stop(self) -> None:
        """Shut plugins down and, if configured, clean up the catalog.

        Cleanup failures are logged; stop never raises for them.
        """
        logger.info("bot_stopping")
        if self.session is not None and self.config.cleanup_on_shutdown:
            self._cleanup_commands()
        self.plugin_loader.shutdown_all()
        logger.info("bot_stopped")

    def _cleanup_commands(self) -> None:
        guild_id = self.config.guild_id
        app_id = self.session.application_id
        try:
            remote = self.session.application_commands(app_id, guild_id)
        except Exception as e:
            logger.error("command_cleanup_list_failed", error=str(e))
            return
        for cmd in remote:
            try:
                self.session.application_command_delete(app_id, guild_id, cmd.id)
            except Exception as e:
                logger.error("command_delete_failed", command=cmd.name, error=str(e))
            else:
                logger.debug("command_deleted", command=cmd.name)
