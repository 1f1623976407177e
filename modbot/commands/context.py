"""Per-invocation execution context handed to commands.

Bundles the platform session, the inbound interaction and a logger
bound with the invocation's identifiers. Accessors never raise: with no
interaction, or with a missing or mistyped option, they return the zero
value for the requested type.
"""

from typing import Any, Optional

import structlog

from ..exceptions import NoSessionError, ValidationError
from ..models import (
    Embed,
    Interaction,
    InteractionDataOption,
    InteractionResponse,
    InteractionResponseData,
    MessageFlags,
    OptionType,
    User,
)
from ..session import Session


def user_id_from_interaction(interaction: Optional[Interaction]) -> str:
    """Invoking user's id; the member's user wins over the top-level user."""
    if interaction is None:
        return ""
    if interaction.member is not None and interaction.member.user is not None:
        return interaction.member.user.id
    if interaction.user is not None:
        return interaction.user.id
    return ""


def guild_id_from_interaction(interaction: Optional[Interaction]) -> str:
    if interaction is None:
        return ""
    return interaction.guild_id or ""


def channel_id_from_interaction(interaction: Optional[Interaction]) -> str:
    if interaction is None:
        return ""
    return interaction.channel_id or ""


def command_name_from_interaction(interaction: Optional[Interaction]) -> str:
    if interaction is None or interaction.data is None:
        return ""
    return interaction.data.name


class CommandContext:
    """Execution context for a single command invocation.

    Attributes:
        session: Platform session, or None when there is no live
            connection (e.g. in tests).
        interaction: The inbound interaction, or None.
        logger: structlog logger bound with guild_id, channel_id and
            user_id of the invocation.
    """

    def __init__(self, session: Optional[Session], interaction: Optional[Interaction], logger=None):
        self.session = session
        self.interaction = interaction
        if logger is None:
            logger = structlog.get_logger("modbot.commands")
        if interaction is not None:
            logger = logger.bind(
                guild_id=guild_id_from_interaction(interaction),
                channel_id=channel_id_from_interaction(interaction),
                user_id=user_id_from_interaction(interaction),
            )
        self.logger = logger

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        """ID of the user who invoked the command ("" if unknown)."""
        return user_id_from_interaction(self.interaction)

    @property
    def guild_id(self) -> str:
        """ID of the guild the command ran in ("" in direct messages)."""
        return guild_id_from_interaction(self.interaction)

    @property
    def channel_id(self) -> str:
        return channel_id_from_interaction(self.interaction)

    @property
    def command_name(self) -> str:
        return command_name_from_interaction(self.interaction)

    @property
    def member_permissions(self) -> Optional[int]:
        """The invoking member's permission bitfield, if the platform sent one."""
        if self.interaction is None or self.interaction.member is None:
            return None
        raw = self.interaction.member.permissions
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            self.logger.warning("member_permissions_unparseable", value=raw)
            return None

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def _find_option(self, name: str, option_type: OptionType) -> Optional[InteractionDataOption]:
        if self.interaction is None or self.interaction.data is None:
            return None
        for opt in self.interaction.data.options:
            if opt.name == name and opt.type == option_type:
                return opt
        return None

    def string_option(self, name: str) -> str:
        opt = self._find_option(name, OptionType.STRING)
        if opt is None or opt.value is None:
            return ""
        return str(opt.value)

    def int_option(self, name: str) -> int:
        opt = self._find_option(name, OptionType.INTEGER)
        return _coerce(opt, int, 0)

    def number_option(self, name: str) -> float:
        opt = self._find_option(name, OptionType.NUMBER)
        return _coerce(opt, float, 0.0)

    def bool_option(self, name: str) -> bool:
        opt = self._find_option(name, OptionType.BOOLEAN)
        if opt is None or opt.value is None:
            return False
        if isinstance(opt.value, str):
            return opt.value.lower() == "true"
        return bool(opt.value)

    def user_option(self, name: str) -> Optional[User]:
        """Resolve a user option.

        Prefers the interaction's resolved users (no network round trip)
        and falls back to fetching the user through the session.
        """
        opt = self._find_option(name, OptionType.USER)
        if opt is None or opt.value is None:
            return None
        user_id = str(opt.value)

        resolved = self.interaction.data.resolved
        if resolved is not None and user_id in resolved.users:
            return resolved.users[user_id]

        if self.session is None:
            return None
        try:
            return self.session.user(user_id)
        except Exception as e:
            self.logger.warning(
                "user_option_lookup_failed",
                option=name,
                target_id=user_id,
                error=str(e),
            )
            return None

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _send(self, data: InteractionResponseData) -> None:
        if self.session is None or self.interaction is None:
            raise NoSessionError()
        self.session.interaction_respond(
            self.interaction, InteractionResponse(data=data)
        )

    def respond(self, content: str) -> None:
        """Send a response visible to everyone in the channel."""
        self._send(InteractionResponseData(content=content))

    def respond_ephemeral(self, content: str) -> None:
        """Send a response only the invoking user can see."""
        self._send(InteractionResponseData(content=content, flags=int(MessageFlags.EPHEMERAL)))

    def respond_embed(self, embed: Optional[Embed]) -> None:
        """Send a public response with a single rich embed."""
        if self.session is None or self.interaction is None:
            raise NoSessionError()
        if embed is None:
            raise ValidationError("embed", "embed cannot be empty")
        self._send(InteractionResponseData(embeds=[embed]))


def _coerce(opt: Optional[InteractionDataOption], kind, zero: Any):
    if opt is None or opt.value is None or isinstance(opt.value, bool):
        return zero
    try:
        return kind(opt.value)
    except (TypeError, ValueError):
        return zero
