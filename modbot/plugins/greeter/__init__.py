"""Example plugin: greeting commands.

Demonstrates the capability protocols: it provides commands, has an
init hook (reads ``plugins.greeter.default_greeting``) and a shutdown
hook.
"""

from typing import List, Optional

from ...commands.base import Command
from ...plugin_base import InitContext
from .commands import PLUGIN_NAME, PLUGIN_VERSION, GreetCommand, GreeterInfoCommand


class GreeterPlugin:
    name = PLUGIN_NAME
    description = "Example plugin demonstrating the modbot plugin system"
    version = PLUGIN_VERSION

    def __init__(self):
        self.logger = None
        self._greet = GreetCommand()
        self._info = GreeterInfoCommand()

    def init(self, ctx: InitContext) -> None:
        self.logger = ctx.logger
        greeting: Optional[str] = ctx.get_config("default_greeting")
        if greeting is not None:
            if not isinstance(greeting, str) or not greeting.strip():
                raise ValueError("default_greeting must be a non-empty string")
            self._greet = GreetCommand(default_greeting=greeting.strip())
        self.logger.info("greeter_plugin_initialized", default_greeting=self._greet.default_greeting)

    def commands(self) -> List[Command]:
        return [self._greet, self._info]

    def shutdown(self) -> None:
        if self.logger is not None:
            self.logger.info("greeter_plugin_shutting_down")


__all__ = ["GreeterPlugin", "GreetCommand", "GreeterInfoCommand"]
