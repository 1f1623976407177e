"""Middleware that turns runtime faults into a generic user-facing error."""

import traceback

import structlog

from ..commands.context import CommandContext
from ..exceptions import ModbotError, UserFriendlyError
from .base import HandlerFunc, Middleware

FAULT_USER_MESSAGE = "An unexpected error occurred. The issue has been logged."


def recovery(logger=None) -> Middleware:
    """Catch unexpected exceptions raised downstream.

    ModbotErrors are ordinary command failures and pass through
    untouched. Anything else is logged at error level with its stack
    trace and replaced by a UserFriendlyError whose user message reveals
    nothing about the fault.
    """
    log = logger if logger is not None else structlog.get_logger("modbot.middleware")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: CommandContext) -> None:
            try:
                next_handler(ctx)
            except ModbotError:
                raise
            except Exception as e:
                log.error(
                    "command_fault_recovered",
                    fault=repr(e),
                    fault_type=type(e).__name__,
                    stack=traceback.format_exc(),
                    command=ctx.command_name,
                    user_id=ctx.user_id,
                    guild_id=ctx.guild_id,
                )
                raise UserFriendlyError(
                    FAULT_USER_MESSAGE,
                    f"fault recovered: {e!r}",
                    module="middleware.recovery",
                ) from e

        return handler

    return middleware
