"""Shared fixtures for modbot tests."""

from unittest.mock import MagicMock

import pytest
import structlog

from modbot.models import Interaction, InteractionType


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Each test starts from structlog's default (capturable) configuration."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


def build_interaction(
    name="ping",
    options=None,
    user_id="user-1",
    guild_id="guild-1",
    channel_id="channel-1",
    resolved_users=None,
    permissions=None,
    in_guild=True,
    interaction_type=InteractionType.APPLICATION_COMMAND,
):
    """Build an Interaction the way the gateway delivers it (raw JSON dict)."""
    payload = {
        "id": "interaction-123",
        "application_id": "app-1",
        "type": int(interaction_type),
        "channel_id": channel_id,
        "token": "tok",
        "data": {
            "id": "cmd-data-123",
            "name": name,
            "options": options or [],
        },
    }
    if resolved_users:
        payload["data"]["resolved"] = {"users": resolved_users}
    invoker = {"id": user_id, "username": "moderator"}
    if in_guild:
        payload["guild_id"] = guild_id
        payload["member"] = {"user": invoker}
        if permissions is not None:
            payload["member"]["permissions"] = str(permissions)
    else:
        payload["user"] = invoker
    return Interaction.model_validate(payload)


@pytest.fixture
def make_interaction():
    return build_interaction


@pytest.fixture
def session():
    """A MagicMock standing in for the platform session."""
    mock = MagicMock()
    mock.application_id = "app-1"
    return mock


@pytest.fixture
def sent_responses(session):
    """Returns the InteractionResponse objects sent through the session so far."""
    def _sent():
        return [c.args[1] for c in session.interaction_respond.call_args_list]
    return _sent
