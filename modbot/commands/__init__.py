"""Command framework for modbot.

Provides the Command contract, the thread-safe CommandRegistry, the
per-invocation CommandContext and the built-in commands.
"""

from typing import List

from .base import BaseCommand, Command
from .context import CommandContext
from .core import EchoCommand, PingCommand
from .moderation import BanCommand, KickCommand, MuteCommand, WarnCommand
from .registry import CommandRegistry


def default_commands() -> List[Command]:
    """Fresh instances of every built-in command."""
    return [
        PingCommand(),
        EchoCommand(),
        BanCommand(),
        KickCommand(),
        MuteCommand(),
        WarnCommand(),
    ]


__all__ = [
    "BaseCommand",
    "Command",
    "CommandContext",
    "CommandRegistry",
    "default_commands",
    "PingCommand",
    "EchoCommand",
    "BanCommand",
    "KickCommand",
    "MuteCommand",
    "WarnCommand",
]
