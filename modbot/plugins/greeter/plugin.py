"""Discovery entry point for the greeter plugin."""

from modbot.plugins.greeter import GreeterPlugin


def create_plugin() -> GreeterPlugin:
    return GreeterPlugin()
