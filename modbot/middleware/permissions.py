"""Middleware enforcing a command's required member permissions."""

import structlog

from ..commands.context import CommandContext
from ..commands.registry import CommandRegistry
from ..exceptions import MissingPermissionError
from ..models import Permissions, permission_names
from .base import HandlerFunc, Middleware


def permission_guard(registry: CommandRegistry, logger=None) -> Middleware:
    """Refuse to run commands the invoking member lacks permissions for.

    The platform already hides commands based on their default member
    permissions, but guild admins can override that, so the check is
    repeated here against the bitfield sent with the interaction.
    ADMINISTRATOR satisfies every requirement. Invocations without a
    permission bitfield (direct messages) pass through.
    """
    log = logger if logger is not None else structlog.get_logger("modbot.middleware")

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: CommandContext) -> None:
            cmd = registry.get(ctx.command_name)
            required = getattr(cmd, "required_permissions", None) if cmd else None
            granted = ctx.member_permissions
            if required and granted is not None:
                if not (granted & Permissions.ADMINISTRATOR) and (granted & required) != required:
                    missing = required & ~granted
                    log.warning(
                        "command_permission_denied",
                        command=ctx.command_name,
                        user_id=ctx.user_id,
                        guild_id=ctx.guild_id,
                        missing=missing,
                    )
                    raise MissingPermissionError(permission_names(missing))
            next_handler(ctx)

        return handler

    return middleware
