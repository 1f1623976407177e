"""Moderation commands: ban, kick, mute (timeout) and warn.

All four share the same preamble: resolve the target user, refuse to
act on the invoker or on bots, require a guild and a live session.
Platform API failures are wrapped in a UserFriendlyError so the user
sees a hint about permissions while the log keeps the real cause.
"""

from datetime import datetime, timedelta, timezone
from typing import List

from ..exceptions import NoSessionError, UserFriendlyError, ValidationError
from ..models import CommandOption, OptionType, Permissions, User
from .base import BaseCommand
from .context import CommandContext
from .duration import format_duration, parse_duration

NO_REASON = "No reason provided"

MIN_TIMEOUT = timedelta(minutes=1)
MAX_TIMEOUT = timedelta(days=28)
MAX_DELETE_DAYS = 7


def _user_option(description: str) -> CommandOption:
    return CommandOption(
        type=OptionType.USER, name="user", description=description, required=True
    )


def _reason_option(description: str, required: bool = False) -> CommandOption:
    return CommandOption(
        type=OptionType.STRING,
        name="reason",
        description=description,
        required=required,
        max_length=512,
    )


def _resolve_target(ctx: CommandContext, verb: str) -> User:
    """Validate the common preconditions and return the target user."""
    target = ctx.user_option("user")
    if target is None:
        raise ValidationError("user", "user is required")

    if target.id == ctx.user_id:
        raise UserFriendlyError(
            f"You cannot {verb} yourself.",
            f"user attempted to {verb} themselves",
        )
    if target.bot:
        raise UserFriendlyError(
            f"You cannot {verb} bots.",
            f"user attempted to {verb} a bot",
            target_id=target.id,
        )
    if not ctx.guild_id:
        raise UserFriendlyError(
            "This command can only be used in a server.",
            f"{verb} command used outside of a guild",
        )
    if ctx.session is None:
        raise NoSessionError(f"cannot {verb}: no platform session")
    return target


def _action_failed(verb: str, target: User, cause: Exception) -> UserFriendlyError:
    return UserFriendlyError(
        f"Failed to {verb} {target.username or target.id}. "
        "I may lack permissions or the user may have a higher role.",
        f"failed to {verb} user {target.id}: {cause}",
        target_id=target.id,
    )


class BanCommand(BaseCommand):
    """Bans a member, optionally deleting up to a week of their messages."""

    name = "ban"
    description = "Ban a member from the server"
    required_permissions = int(Permissions.BAN_MEMBERS)

    def options(self) -> List[CommandOption]:
        return [
            _user_option("The user to ban"),
            _reason_option("The reason for banning this user"),
            CommandOption(
                type=OptionType.INTEGER,
                name="delete_days",
                description="Number of days of messages to delete (0-7)",
                min_value=0,
                max_value=MAX_DELETE_DAYS,
            ),
        ]

    def execute(self, ctx: CommandContext) -> None:
        delete_days = ctx.int_option("delete_days")
        if not 0 <= delete_days <= MAX_DELETE_DAYS:
            raise ValidationError(
                "delete_days", f"delete_days must be between 0 and {MAX_DELETE_DAYS}"
            )
        target = _resolve_target(ctx, "ban")
        reason = ctx.string_option("reason") or NO_REASON

        try:
            ctx.session.guild_ban_create(ctx.guild_id, target.id, reason, delete_days)
        except Exception as e:
            raise _action_failed("ban", target, e) from e

        ctx.logger.info("member_banned", target_id=target.id, delete_days=delete_days)
        message = f"Successfully banned {target.display_name}. Reason: {reason}"
        if delete_days > 0:
            message += f" (Deleted {delete_days} days of messages)"
        ctx.respond_ephemeral(message)


class KickCommand(BaseCommand):
    """Removes a member from the guild."""

    name = "kick"
    description = "Kick a member from the server"
    required_permissions = int(Permissions.KICK_MEMBERS)

    def options(self) -> List[CommandOption]:
        return [
            _user_option("The user to kick"),
            _reason_option("The reason for kicking this user"),
        ]

    def execute(self, ctx: CommandContext) -> None:
        target = _resolve_target(ctx, "kick")
        reason = ctx.string_option("reason") or NO_REASON

        try:
            ctx.session.guild_member_delete(ctx.guild_id, target.id, reason)
        except Exception as e:
            raise _action_failed("kick", target, e) from e

        ctx.logger.info("member_kicked", target_id=target.id)
        ctx.respond_ephemeral(f"Successfully kicked {target.display_name}. Reason: {reason}")


class MuteCommand(BaseCommand):
    """Times a member out for 1 minute up to 28 days."""

    name = "mute"
    description = "Timeout a member (1m to 28d)"
    required_permissions = int(Permissions.MODERATE_MEMBERS)

    def options(self) -> List[CommandOption]:
        return [
            _user_option("The user to timeout"),
            CommandOption(
                type=OptionType.STRING,
                name="duration",
                description="Timeout duration (e.g., 30m, 1h, 2d, 1d12h)",
                required=True,
            ),
            _reason_option("The reason for timing out this user"),
        ]

    def execute(self, ctx: CommandContext) -> None:
        raw_duration = ctx.string_option("duration")
        if not raw_duration:
            raise ValidationError("duration", "duration is required")
        try:
            duration = parse_duration(raw_duration)
        except ValueError as e:
            raise UserFriendlyError(
                "Invalid duration format. Use formats like: 30m, 1h, 2d, 1d12h",
                f"failed to parse duration {raw_duration!r}",
            ) from e
        if duration < MIN_TIMEOUT:
            raise ValidationError("duration", "duration must be at least 1 minute")
        if duration > MAX_TIMEOUT:
            raise ValidationError("duration", "duration cannot exceed 28 days")

        target = _resolve_target(ctx, "timeout")
        reason = ctx.string_option("reason") or NO_REASON
        until = datetime.now(timezone.utc) + duration

        try:
            ctx.session.guild_member_timeout(ctx.guild_id, target.id, until)
        except Exception as e:
            raise _action_failed("timeout", target, e) from e

        ctx.logger.info("member_timed_out", target_id=target.id, until=until.isoformat())
        ctx.respond_ephemeral(
            f"Successfully timed out {target.display_name} for "
            f"{format_duration(duration)}. Reason: {reason}"
        )


class WarnCommand(BaseCommand):
    """Warns a member by direct message and confirms to the moderator.

    A failed DM (closed DMs, blocked bot) does not fail the command.
    """

    name = "warn"
    description = "Warn a member"
    required_permissions = int(Permissions.MODERATE_MEMBERS)

    def options(self) -> List[CommandOption]:
        return [
            _user_option("The user to warn"),
            _reason_option("The reason for warning this user", required=True),
        ]

    def execute(self, ctx: CommandContext) -> None:
        reason = ctx.string_option("reason")
        if not reason:
            raise ValidationError("reason", "reason is required")
        target = _resolve_target(ctx, "warn")

        guild_name = "this server"
        try:
            guild = ctx.session.guild(ctx.guild_id)
            if guild is not None and guild.name:
                guild_name = guild.name
        except Exception as e:
            ctx.logger.debug("guild_lookup_failed", error=str(e))

        dm_sent = False
        try:
            channel = ctx.session.user_channel_create(target.id)
            ctx.session.channel_message_send(
                channel.id, f"You have been warned in {guild_name}.\nReason: {reason}"
            )
            dm_sent = True
        except Exception as e:
            ctx.logger.info("warn_dm_failed", target_id=target.id, error=str(e))

        ctx.logger.info("member_warned", target_id=target.id, dm_sent=dm_sent)
        if dm_sent:
            message = (
                f"Successfully warned {target.display_name}. "
                f"They have been notified via DM.\nReason: {reason}"
            )
        else:
            message = (
                f"Successfully warned {target.display_name}. "
                f"(Unable to send DM - user may have DMs disabled)\nReason: {reason}"
            )
        ctx.respond_ephemeral(message)
