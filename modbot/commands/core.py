"""Utility commands: ping and echo."""

from typing import List

from ..exceptions import ValidationError
from ..models import CommandOption, OptionType
from .base import BaseCommand
from .context import CommandContext


class PingCommand(BaseCommand):
    """Responds with "Pong!" to show the bot is alive."""

    name = "ping"
    description = "Check if the bot is responsive"

    def execute(self, ctx: CommandContext) -> None:
        ctx.respond("Pong!")


class EchoCommand(BaseCommand):
    """Repeats the user's text back to them."""

    name = "echo"
    description = "Repeat your message back to you"

    def options(self) -> List[CommandOption]:
        return [
            CommandOption(
                type=OptionType.STRING,
                name="text",
                description="The text to echo back",
                required=True,
                max_length=2000,
            ),
        ]

    def execute(self, ctx: CommandContext) -> None:
        text = ctx.string_option("text")
        if not text:
            raise ValidationError("text", "text cannot be empty")
        ctx.respond(text)
