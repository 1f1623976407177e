"""Gateway event handlers: interaction dispatch and ready logging.

Key classes:
    InteractionDispatcher: Routes application-command interactions to
        registered commands through the middleware chain and turns
        failures into a single ephemeral reply.
    ReadyHandler: Logs the READY event.
"""

from typing import Optional

import structlog

from .commands.context import CommandContext
from .commands.registry import CommandRegistry
from .exceptions import ModbotError, find_user_message
from .middleware.base import HandlerFunc, Middleware
from .models import Interaction, InteractionType, Ready
from .session import Session

NOT_FOUND_MESSAGE = "Command not found. This might be a configuration issue."
GENERIC_ERROR_MESSAGE = "An error occurred while executing the command."


class InteractionDispatcher:
    """Handles inbound interaction events.

    One call to ``handle`` is one invocation; it runs to completion on
    the caller's thread. Many threads may call ``handle`` concurrently.

    Args:
        registry: Command registry to resolve command names against.
        middleware: Optional composed middleware (see ``chain``).
        logger: Optional structlog logger.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        middleware: Optional[Middleware] = None,
        logger=None,
    ):
        self.registry = registry
        self.middleware = middleware
        self.logger = logger if logger is not None else structlog.get_logger("modbot.bot")

    def handle(self, session: Optional[Session], interaction: Optional[Interaction]) -> None:
        """Dispatch one interaction. Never raises for command failures."""
        if interaction is None:
            self.logger.warning("interaction_missing")
            return

        if interaction.type != InteractionType.APPLICATION_COMMAND:
            self.logger.debug("interaction_ignored", type=int(interaction.type))
            return

        if interaction.data is None or not interaction.data.name:
            self.logger.warning("interaction_data_missing", interaction_id=interaction.id)
            return

        command_name = interaction.data.name
        ctx = CommandContext(session, interaction)

        cmd = self.registry.get(command_name)
        if cmd is None:
            self.logger.error(
                "command_not_found",
                command=command_name,
                user_id=ctx.user_id,
                guild_id=ctx.guild_id,
            )
            self._reply_error(ctx, NOT_FOUND_MESSAGE)
            return

        def execute(ctx: CommandContext) -> None:
            cmd.execute(ctx)

        handler: HandlerFunc = execute
        if self.middleware is not None:
            handler = self.middleware(handler)

        try:
            handler(ctx)
        except ModbotError as e:
            self._handle_error(ctx, e)

    def _handle_error(self, ctx: CommandContext, err: ModbotError) -> None:
        self.logger.error(
            "command_execution_failed",
            command=ctx.command_name,
            user_id=ctx.user_id,
            guild_id=ctx.guild_id,
            error=str(err),
            error_type=type(err).__name__,
            category=err.category.value,
        )
        self._reply_error(ctx, find_user_message(err) or GENERIC_ERROR_MESSAGE)

    def _reply_error(self, ctx: CommandContext, message: str) -> None:
        try:
            ctx.respond_ephemeral(message)
        except Exception as e:
            self.logger.error(
                "error_response_failed",
                command=ctx.command_name,
                error=str(e),
                error_type=type(e).__name__,
            )


class ReadyHandler:
    """Logs the bot identity and guild count when the gateway is ready."""

    def __init__(self, logger=None):
        self.logger = logger if logger is not None else structlog.get_logger("modbot.bot")

    def handle(self, session: Optional[Session], ready: Optional[Ready]) -> None:
        if ready is None or ready.user is None:
            self.logger.warning("ready_event_missing_data")
            return
        self.logger.info(
            "bot_ready",
            username=ready.user.username,
            discriminator=ready.user.discriminator,
            guild_count=len(ready.guilds),
        )
