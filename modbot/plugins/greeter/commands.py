"""Commands contributed by the greeter plugin."""

from typing import List

from ...commands.base import BaseCommand
from ...commands.context import CommandContext
from ...exceptions import UserFriendlyError
from ...models import CommandOption, Embed, EmbedField, EmbedFooter, OptionType

PLUGIN_NAME = "greeter"
PLUGIN_VERSION = "1.0.0"

BLURPLE = 0x5865F2


class GreetCommand(BaseCommand):
    """Greets a user, or the invoker when no user is given."""

    name = "greet"
    description = "Send a personalized greeting to a user"

    def __init__(self, default_greeting: str = "Hello"):
        self.default_greeting = default_greeting

    def options(self) -> List[CommandOption]:
        return [
            CommandOption(type=OptionType.USER, name="user", description="The user to greet"),
            CommandOption(
                type=OptionType.STRING,
                name="message",
                description="Custom greeting message",
                max_length=200,
            ),
        ]

    def execute(self, ctx: CommandContext) -> None:
        target = ctx.user_option("user")
        target_id = target.id if target is not None else ctx.user_id
        if not target_id:
            raise UserFriendlyError(
                "I couldn't work out who to greet.",
                "unable to determine target user",
            )

        greeting = ctx.string_option("message") or self.default_greeting
        ctx.respond(f"{greeting}, <@{target_id}>! Welcome to the server!")


class GreeterInfoCommand(BaseCommand):
    """Shows what the greeter plugin provides."""

    name = PLUGIN_NAME
    description = "Show information about the greeter plugin"

    def execute(self, ctx: CommandContext) -> None:
        ctx.respond_embed(
            Embed(
                title="Greeter Plugin",
                description="An example plugin demonstrating the modbot plugin system.",
                color=BLURPLE,
                fields=[
                    EmbedField(name="Version", value=PLUGIN_VERSION, inline=True),
                    EmbedField(
                        name="Commands",
                        value=f"`/greet` - Send a greeting\n`/{PLUGIN_NAME}` - Show this info",
                    ),
                ],
                footer=EmbedFooter(text="modbot plugin system"),
            )
        )
