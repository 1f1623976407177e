"""Tests for the interaction dispatcher and ready handler."""

import threading
from unittest.mock import MagicMock

import pytest
import structlog
from structlog.testing import capture_logs

from modbot.commands import MuteCommand
from modbot.commands.base import BaseCommand
from modbot.commands.registry import CommandRegistry
from modbot.dispatcher import (
    GENERIC_ERROR_MESSAGE,
    NOT_FOUND_MESSAGE,
    InteractionDispatcher,
    ReadyHandler,
)
from modbot.exceptions import (
    CommandError,
    NoSessionError,
    UserFriendlyError,
    ValidationError,
)
from modbot.middleware import FAULT_USER_MESSAGE, chain, recovery, request_logging
from modbot.models import InteractionType, Ready


class _Recorder(BaseCommand):
    """Command that records invocations and optionally raises."""

    description = "records calls"

    def __init__(self, name="record", error=None, reply=None):
        self.name = name
        self.error = error
        self.reply = reply
        self.calls = []

    def execute(self, ctx):
        self.calls.append(ctx)
        if self.error is not None:
            raise self.error
        if self.reply is not None:
            ctx.respond(self.reply)


@pytest.fixture
def registry():
    return CommandRegistry()


def _errors(logs):
    return [e for e in logs if e["log_level"] == "error"]


class TestIgnoredInteractions:
    """Interactions the dispatcher drops without a reply."""

    def test_missing_interaction_is_logged_and_ignored(self, registry, session):
        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(session, None)
        assert logs[0]["event"] == "interaction_missing"
        session.interaction_respond.assert_not_called()

    def test_non_command_interaction_is_ignored(self, registry, session, make_interaction):
        cmd = _Recorder()
        registry.register(cmd)
        interaction = make_interaction(
            name="record", interaction_type=InteractionType.MESSAGE_COMPONENT
        )
        InteractionDispatcher(registry).handle(session, interaction)
        assert cmd.calls == []
        session.interaction_respond.assert_not_called()

    def test_command_without_data_is_ignored(self, registry, session, make_interaction):
        interaction = make_interaction()
        interaction.data = None
        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(session, interaction)
        assert logs[0]["event"] == "interaction_data_missing"
        session.interaction_respond.assert_not_called()


class TestDispatch:
    """Tests for routing to registered commands."""

    def test_registered_command_executes_once(self, registry, session, make_interaction, sent_responses):
        cmd = _Recorder(reply="done")
        registry.register(cmd)
        interaction = make_interaction(name="record")

        InteractionDispatcher(registry).handle(session, interaction)

        assert len(cmd.calls) == 1
        ctx = cmd.calls[0]
        assert ctx.interaction is interaction
        assert ctx.session is session
        (response,) = sent_responses()
        assert response.data.content == "done"
        assert not response.ephemeral

    def test_unknown_command_replies_once_ephemerally(self, registry, session, make_interaction, sent_responses):
        cmd = _Recorder()
        registry.register(cmd)

        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(session, make_interaction(name="missing"))

        assert cmd.calls == []
        (response,) = sent_responses()
        assert response.ephemeral
        assert response.data.content == NOT_FOUND_MESSAGE
        (entry,) = _errors(logs)
        assert entry["event"] == "command_not_found"
        assert entry["command"] == "missing"

    def test_unknown_command_skips_middleware(self, registry, session, make_interaction):
        calls = []

        def spy(next_handler):
            def handler(ctx):
                calls.append(ctx.command_name)
                next_handler(ctx)
            return handler

        InteractionDispatcher(registry, chain(spy)).handle(session, make_interaction(name="missing"))
        assert calls == []

    def test_middleware_wraps_execution(self, registry, session, make_interaction):
        cmd = _Recorder()
        registry.register(cmd)
        calls = []

        def spy(next_handler):
            def handler(ctx):
                calls.append("before")
                next_handler(ctx)
                calls.append("after")
            return handler

        InteractionDispatcher(registry, chain(spy)).handle(session, make_interaction(name="record"))
        assert calls == ["before", "after"]
        assert len(cmd.calls) == 1


class TestErrorReplies:
    """Failures become exactly one ephemeral reply."""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (UserFriendlyError("You cannot ban yourself."), "You cannot ban yourself."),
            (ValidationError("user", "user is required"), "Invalid `user`: user is required"),
            (NoSessionError(), GENERIC_ERROR_MESSAGE),
            (CommandError("record", "boom"), GENERIC_ERROR_MESSAGE),
        ],
    )
    def test_error_reply_message(self, registry, session, make_interaction, sent_responses, error, expected):
        registry.register(_Recorder(error=error))

        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(session, make_interaction(name="record"))

        (response,) = sent_responses()
        assert response.ephemeral
        assert response.data.content == expected
        (entry,) = _errors(logs)
        assert entry["event"] == "command_execution_failed"
        assert entry["error_type"] == type(error).__name__

    def test_user_message_found_through_cause_chain(self, registry, session, make_interaction, sent_responses):
        inner = UserFriendlyError("Failed to ban target.", "api 403")
        try:
            try:
                raise inner
            except UserFriendlyError as e:
                raise CommandError("record", "wrapped") from e
        except CommandError as e:
            outer = e
        registry.register(_Recorder(error=outer))

        InteractionDispatcher(registry).handle(session, make_interaction(name="record"))

        (response,) = sent_responses()
        assert response.data.content == "Failed to ban target."

    def test_fault_recovered_by_middleware(self, registry, session, make_interaction, sent_responses):
        registry.register(_Recorder(error=RuntimeError("nil pointer in target")))
        dispatcher = InteractionDispatcher(registry, chain(recovery(), request_logging()))

        with capture_logs() as logs:
            dispatcher.handle(session, make_interaction(name="record"))

        (response,) = sent_responses()
        assert response.data.content == FAULT_USER_MESSAGE
        assert "nil pointer" not in response.data.content
        events = [e["event"] for e in _errors(logs)]
        assert events == ["command_fault_recovered", "command_execution_failed"]

    def test_failed_error_reply_is_logged(self, registry, session, make_interaction):
        registry.register(_Recorder(error=UserFriendlyError("nope")))
        session.interaction_respond.side_effect = RuntimeError("interaction expired")

        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(session, make_interaction(name="record"))

        events = [e["event"] for e in _errors(logs)]
        assert events == ["command_execution_failed", "error_response_failed"]
        assert session.interaction_respond.call_count == 1

    def test_no_session_error_reply_is_logged(self, registry, make_interaction):
        registry.register(_Recorder(error=UserFriendlyError("nope")))

        with capture_logs() as logs:
            InteractionDispatcher(registry).handle(None, make_interaction(name="record"))

        assert logs[-1]["event"] == "error_response_failed"
        assert logs[-1]["error_type"] == "NoSessionError"

    def test_concurrent_invocations_are_independent(self, registry, make_interaction):
        cmd = _Recorder(reply="ok")
        registry.register(cmd)
        dispatcher = InteractionDispatcher(registry)
        sessions = [MagicMock() for _ in range(16)]

        threads = [
            threading.Thread(
                target=dispatcher.handle,
                args=(s, make_interaction(name="record", user_id=f"user-{i}")),
            )
            for i, s in enumerate(sessions)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(c.user_id for c in cmd.calls) == sorted(f"user-{i}" for i in range(16))
        for s in sessions:
            s.interaction_respond.assert_called_once()

    def test_oversized_mute_duration_gets_one_reply(self, registry, session, make_interaction, sent_responses):
        registry.register(MuteCommand())
        interaction = make_interaction(
            name="mute",
            options=[
                {"name": "user", "type": 6, "value": "target-9"},
                {"name": "duration", "type": 3, "value": "9999999999d"},
            ],
            resolved_users={"target-9": {"id": "target-9", "username": "troll"}},
        )

        InteractionDispatcher(registry).handle(session, interaction)

        (response,) = sent_responses()
        assert response.ephemeral
        assert response.data.content.startswith("Invalid duration format")
        session.guild_member_timeout.assert_not_called()

    def test_context_logger_uses_commands_subsystem(self, registry, session, make_interaction, monkeypatch):
        registry.register(_Recorder())
        dispatcher = InteractionDispatcher(registry)
        names = []
        real_get_logger = structlog.get_logger

        def spy(*args):
            names.append(args)
            return real_get_logger(*args)

        monkeypatch.setattr(structlog, "get_logger", spy)
        dispatcher.handle(session, make_interaction(name="record"))

        assert names == [("modbot.commands",)]


class TestReadyHandler:
    """Tests for the READY event handler."""

    def test_logs_identity_and_guild_count(self, session):
        ready = Ready.model_validate({
            "user": {"id": "bot-1", "username": "modbot", "discriminator": "1234"},
            "guilds": [{"id": "g1"}, {"id": "g2"}],
        })
        with capture_logs() as logs:
            ReadyHandler().handle(session, ready)
        assert logs == [{
            "event": "bot_ready",
            "username": "modbot",
            "discriminator": "1234",
            "guild_count": 2,
            "log_level": "info",
        }]

    @pytest.mark.parametrize("ready", [None, Ready()])
    def test_missing_data_warns(self, session, ready):
        with capture_logs() as logs:
            ReadyHandler().handle(session, ready)
        assert logs[0]["event"] == "ready_event_missing_data"
        assert logs[0]["log_level"] == "warning"
