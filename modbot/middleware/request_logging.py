"""Middleware that logs one structured entry per command execution."""

import time

import structlog

from ..commands.context import CommandContext
from ..exceptions import ModbotError
from .base import HandlerFunc, Middleware


def request_logging(logger=None) -> Middleware:
    """Log command name, invoker, guild, duration and outcome.

    Success is logged at info; a ModbotError at error with the error
    attached, then re-raised unchanged.
    """
    log = logger if logger is not None else structlog.get_logger("modbot.middleware")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: CommandContext) -> None:
            start = time.perf_counter()
            command = ctx.command_name
            try:
                next_handler(ctx)
            except ModbotError as e:
                log.error(
                    "command_failed",
                    command=command,
                    user_id=ctx.user_id,
                    guild_id=ctx.guild_id,
                    duration_ms=round((time.perf_counter() - start) * 1000, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            log.info(
                "command_executed",
                command=command,
                user_id=ctx.user_id,
                guild_id=ctx.guild_id,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
            )

        return handler

    return middleware
