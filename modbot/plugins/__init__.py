"""Plugins bundled with modbot."""

from .greeter import GreeterPlugin


def builtin_plugins():
    """Fresh instances of every bundled plugin."""
    return [GreeterPlugin()]
