"""Platform session contract consumed by the dispatch pipeline.

The real session (gateway connection plus REST client) lives outside
modbot. Commands, the context and the bot assembly only ever talk to
it through this protocol, which keeps every component testable with a
MagicMock or a small fake.
"""

from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

from .models import (
    ApplicationCommand,
    Channel,
    Guild,
    Interaction,
    InteractionResponse,
    User,
)


@runtime_checkable
class Session(Protocol):
    """Synchronous platform session.

    Every method may raise whatever the underlying client raises; callers
    in modbot wrap those failures into ModbotError subclasses.
    """

    application_id: str

    def interaction_respond(
        self, interaction: Interaction, response: InteractionResponse
    ) -> None:
        """Send the (single) response to an interaction."""
        ...

    def user(self, user_id: str) -> User:
        ...

    def guild(self, guild_id: str) -> Guild:
        ...

    def guild_ban_create(
        self, guild_id: str, user_id: str, reason: str, delete_days: int
    ) -> None:
        ...

    def guild_member_delete(self, guild_id: str, user_id: str, reason: str) -> None:
        ...

    def guild_member_timeout(
        self, guild_id: str, user_id: str, until: Optional[datetime]
    ) -> None:
        ...

    def user_channel_create(self, user_id: str) -> Channel:
        ...

    def channel_message_send(self, channel_id: str, content: str) -> Any:
        ...

    def application_command_create(
        self, application_id: str, guild_id: str, command: ApplicationCommand
    ) -> ApplicationCommand:
        ...

    def application_commands(
        self, application_id: str, guild_id: str
    ) -> List[ApplicationCommand]:
        ...

    def application_command_delete(
        self, application_id: str, guild_id: str, command_id: str
    ) -> None:
        ...

    def add_handler(self, handler: Callable[..., Any]) -> None:
        """Subscribe a gateway event handler."""
        ...
