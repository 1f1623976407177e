"""Plugin contract and capability protocols for modbot extensibility.

Every plugin is a plain object with ``name``, ``description`` and
``version``. Beyond that it may satisfy any combination of small,
independent capability protocols; the loader checks each one with
``isinstance`` rather than relying on a class hierarchy:

    CommandProvider       commands() -> list of Command
    MiddlewareProvider    middleware() -> list of Middleware
    EventHandlerProvider  event_handlers() -> list of callables
    Initializable         init(ctx: InitContext) -> None
    Shutdownable          shutdown() -> None
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .commands.base import Command
from .middleware.base import Middleware

# Gateway event handler: (session, event) -> None
EventHandler = Callable[..., Any]


@runtime_checkable
class Plugin(Protocol):
    name: str
    description: str
    version: str


@runtime_checkable
class CommandProvider(Protocol):
    def commands(self) -> List[Command]:
        ...


@runtime_checkable
class MiddlewareProvider(Protocol):
    def middleware(self) -> List[Middleware]:
        """Middleware in execution order (first is outermost)."""
        ...


@runtime_checkable
class EventHandlerProvider(Protocol):
    def event_handlers(self) -> List[EventHandler]:
        ...


@runtime_checkable
class Initializable(Protocol):
    def init(self, ctx: "InitContext") -> None:
        """Called once on load. Raise to refuse loading."""
        ...


@runtime_checkable
class Shutdownable(Protocol):
    def shutdown(self) -> None:
        ...


@dataclass
class InitContext:
    """What a plugin receives when it is initialized.

    Attributes:
        logger: structlog logger bound with the plugin's name.
        session: Platform session; None when loaded before connecting.
        config: The plugin's own ``plugins.<name>`` settings section.
    """
    logger: Any
    session: Optional[Any] = None
    config: Dict[str, Any] = field(default_factory=dict)

    def get_config(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)


@dataclass
class PluginInfo:
    """Summary of a registered plugin and its contributions."""
    name: str
    description: str
    version: str
    enabled: bool = True
    commands: List[str] = field(default_factory=list)
    middleware: int = 0
    handlers: int = 0


def info_from_plugin(plugin: Plugin) -> PluginInfo:
    info = PluginInfo(
        name=plugin.name,
        description=plugin.description,
        version=plugin.version,
    )
    if isinstance(plugin, CommandProvider):
        info.commands = [cmd.name for cmd in plugin.commands()]
    if isinstance(plugin, MiddlewareProvider):
        info.middleware = len(plugin.middleware())
    if isinstance(plugin, EventHandlerProvider):
        info.handlers = len(plugin.event_handlers())
    return info
