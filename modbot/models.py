"""Pydantic models for the chat platform's wire payloads.

Inbound (parsed from gateway events):
    Interaction, ApplicationCommandData, InteractionDataOption,
    ResolvedData, User, Member, Ready, Guild, Channel

Outbound (sent through the session):
    InteractionResponse, InteractionResponseData, Embed, EmbedField,
    EmbedFooter

Command catalog descriptors:
    ApplicationCommand, CommandOption, OptionChoice

Enums:
    InteractionType, OptionType, InteractionResponseType, MessageFlags,
    Permissions
"""

from enum import IntEnum, IntFlag
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(IntEnum):
    """Kind of inbound interaction."""
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class OptionType(IntEnum):
    """Declared type of a command option."""
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10
    ATTACHMENT = 11


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5


class MessageFlags(IntFlag):
    EPHEMERAL = 1 << 6


class Permissions(IntFlag):
    """Member permission bits used by the moderation commands."""
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_GUILD = 1 << 5
    MANAGE_MESSAGES = 1 << 13
    MODERATE_MEMBERS = 1 << 40


def permission_names(bits: int) -> str:
    """Render a permission bitmask as ``"Ban Members, Kick Members"``."""
    names = [
        perm.name.replace("_", " ").title()
        for perm in Permissions
        if perm.value & bits
    ]
    return ", ".join(names) if names else str(bits)


# ---------------------------------------------------------------------------
# Inbound payloads
# ---------------------------------------------------------------------------

class _Payload(BaseModel):
    """Base for inbound payloads; unknown platform fields are ignored."""
    model_config = ConfigDict(extra="ignore")


class User(_Payload):
    id: str
    username: str = ""
    discriminator: str = "0"
    global_name: Optional[str] = None
    bot: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    @property
    def display_name(self) -> str:
        if self.discriminator and self.discriminator != "0":
            return f"{self.username}#{self.discriminator}"
        return self.username or self.id


class Member(_Payload):
    user: Optional[User] = None
    nick: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    # Platform sends the computed permission bitfield as a decimal string
    permissions: Optional[str] = None


class InteractionDataOption(_Payload):
    name: str
    type: int
    value: Any = None
    options: List["InteractionDataOption"] = Field(default_factory=list)


class ResolvedData(_Payload):
    users: Dict[str, User] = Field(default_factory=dict)
    members: Dict[str, Member] = Field(default_factory=dict)


class ApplicationCommandData(_Payload):
    id: str = ""
    name: str = ""
    type: int = 1
    options: List[InteractionDataOption] = Field(default_factory=list)
    resolved: Optional[ResolvedData] = None


class Interaction(_Payload):
    """One inbound invocation as delivered by the gateway."""
    id: str = ""
    application_id: str = ""
    type: int
    data: Optional[ApplicationCommandData] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    member: Optional[Member] = None
    user: Optional[User] = None
    token: str = Field(default="", repr=False)


class Guild(_Payload):
    id: str
    name: str = ""


class Channel(_Payload):
    id: str
    type: int = 1


class Ready(_Payload):
    """Payload of the gateway READY event."""
    user: Optional[User] = None
    guilds: List[Guild] = Field(default_factory=list)
    session_id: str = ""


# ---------------------------------------------------------------------------
# Outbound payloads
# ---------------------------------------------------------------------------

class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class EmbedFooter(BaseModel):
    text: str


class Embed(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    fields: List[EmbedField] = Field(default_factory=list)
    footer: Optional[EmbedFooter] = None


class InteractionResponseData(BaseModel):
    content: Optional[str] = None
    embeds: List[Embed] = Field(default_factory=list)
    flags: int = 0


class InteractionResponse(BaseModel):
    type: InteractionResponseType = InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE
    data: Optional[InteractionResponseData] = None

    @property
    def ephemeral(self) -> bool:
        return bool(self.data and self.data.flags & MessageFlags.EPHEMERAL)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Command catalog descriptors
# ---------------------------------------------------------------------------

class OptionChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: Union[str, int, float]


class CommandOption(BaseModel):
    """One declared parameter of a command."""
    model_config = ConfigDict(frozen=True)

    type: OptionType
    name: str
    description: str
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    choices: List[OptionChoice] = Field(default_factory=list)


class ApplicationCommand(BaseModel):
    """Declarative command description uploaded to the platform catalog."""
    id: Optional[str] = None
    name: str
    description: str
    options: List[CommandOption] = Field(default_factory=list)
    default_member_permissions: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for catalog upload; the bitmask travels as a string."""
        payload = self.model_dump(mode="json", exclude_none=True)
        payload.pop("id", None)
        if self.default_member_permissions is not None:
            payload["default_member_permissions"] = str(self.default_member_permissions)
        for option in payload.get("options", []):
            if not option.get("choices"):
                option.pop("choices", None)
        return payload
