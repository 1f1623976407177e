"""Tests for plugin loading, discovery, aggregation and shutdown."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

import modbot
from modbot.commands.base import BaseCommand
from modbot.exceptions import PluginInitError, PluginLoadError
from modbot.plugin_loader import PluginLoader
from modbot.plugin_registry import PluginRegistry
from modbot.plugins.greeter import GreeterPlugin


class _Cmd(BaseCommand):
    description = "plugin command"

    def __init__(self, name):
        self.name = name

    def execute(self, ctx):
        pass


class _BasePlugin:
    description = "test plugin"
    version = "1.0"

    def __init__(self, name):
        self.name = name


class _CommandPlugin(_BasePlugin):
    def __init__(self, name, *command_names):
        super().__init__(name)
        self._commands = [_Cmd(n) for n in command_names]

    def commands(self):
        return list(self._commands)


class _MiddlewarePlugin(_BasePlugin):
    def __init__(self, name, *middlewares):
        super().__init__(name)
        self._middlewares = list(middlewares)

    def middleware(self):
        return list(self._middlewares)


class _HandlerPlugin(_BasePlugin):
    def __init__(self, name, *handlers):
        super().__init__(name)
        self._handlers = list(handlers)

    def event_handlers(self):
        return list(self._handlers)


class _InitPlugin(_BasePlugin):
    def __init__(self, name, error=None):
        super().__init__(name)
        self.error = error
        self.init_ctx = None

    def init(self, ctx):
        self.init_ctx = ctx
        if self.error is not None:
            raise self.error


class _ShutdownPlugin(_BasePlugin):
    def __init__(self, name, calls, error=None):
        super().__init__(name)
        self.calls = calls
        self.error = error

    def shutdown(self):
        self.calls.append(self.name)
        if self.error is not None:
            raise self.error


def _make_loader():
    """Create a PluginLoader over a fresh registry."""
    registry = PluginRegistry()
    return PluginLoader(registry), registry


class TestLoad:
    """Tests for load() and load_all()."""

    def test_plugin_without_capabilities_loads(self):
        loader, registry = _make_loader()
        loader.load(_BasePlugin("plain"))
        assert registry.names() == ["plain"]

    def test_init_receives_session_and_config_copy(self):
        loader, _ = _make_loader()
        session = MagicMock()
        config = {"default_greeting": "Howdy"}
        loader.set_session(session)
        loader.set_plugin_config("init", config)
        plugin = _InitPlugin("init")

        loader.load(plugin)

        ctx = plugin.init_ctx
        assert ctx.session is session
        assert ctx.get_config("default_greeting") == "Howdy"
        assert ctx.get_config("missing", "fallback") == "fallback"
        ctx.config["default_greeting"] = "changed"
        assert config["default_greeting"] == "Howdy"

    def test_init_logger_is_bound_with_plugin_name(self):
        loader, _ = _make_loader()
        plugin = _InitPlugin("init")
        loader.load(plugin)

        with capture_logs() as logs:
            plugin.init_ctx.logger.info("hello")
        assert logs[0]["plugin"] == "init"

    def test_init_failure_rolls_back_registration(self):
        loader, registry = _make_loader()
        plugin = _InitPlugin("broken", error=RuntimeError("bad config"))

        with capture_logs() as logs:
            with pytest.raises(PluginInitError) as exc_info:
                loader.load(plugin)

        assert exc_info.value.plugin == "broken"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert registry.get("broken") is None
        assert "plugin_init_failed" in [e["event"] for e in logs]

    def test_duplicate_plugin_raises_load_error(self):
        loader, registry = _make_loader()
        first = _BasePlugin("twin")
        loader.load(first)

        with pytest.raises(PluginLoadError):
            loader.load(_BasePlugin("twin"))
        assert registry.get("twin") is first

    def test_load_all_stops_at_first_failure(self):
        loader, registry = _make_loader()
        third = _InitPlugin("third")

        with pytest.raises(PluginInitError):
            loader.load_all(
                _BasePlugin("first"),
                _InitPlugin("second", error=ValueError("nope")),
                third,
            )

        assert registry.names() == ["first"]
        assert third.init_ctx is None


class TestAggregation:
    """Contributions are collected in plugin registration order."""

    def test_commands_in_registration_order(self):
        loader, _ = _make_loader()
        loader.load_all(
            _CommandPlugin("b", "b1", "b2"),
            _BasePlugin("plain"),
            _CommandPlugin("a", "a1"),
        )
        assert [c.name for c in loader.commands()] == ["b1", "b2", "a1"]

    def test_middleware_in_registration_order(self):
        loader, _ = _make_loader()

        def mw1(h):
            return h

        def mw2(h):
            return h

        def mw3(h):
            return h

        loader.load_all(_MiddlewarePlugin("x", mw1, mw2), _MiddlewarePlugin("y", mw3))
        assert loader.middleware() == [mw1, mw2, mw3]

    def test_event_handlers_registered_on_session(self):
        loader, _ = _make_loader()

        def on_ready(session, event):
            pass

        def on_message(session, event):
            pass

        loader.load_all(_HandlerPlugin("h1", on_ready), _HandlerPlugin("h2", on_message))
        session = MagicMock()
        loader.register_event_handlers(session)

        assert [c.args[0] for c in session.add_handler.call_args_list] == [on_ready, on_message]

    def test_no_plugins_means_nothing_to_aggregate(self):
        loader, _ = _make_loader()
        assert loader.commands() == []
        assert loader.middleware() == []
        assert loader.event_handlers() == []


class TestShutdown:
    """Tests for shutdown_all()."""

    def test_every_plugin_shut_down_despite_failures(self):
        loader, _ = _make_loader()
        calls = []
        loader.load_all(
            _ShutdownPlugin("one", calls),
            _ShutdownPlugin("two", calls, error=RuntimeError("stuck")),
            _BasePlugin("plain"),
            _ShutdownPlugin("three", calls),
        )

        with capture_logs() as logs:
            loader.shutdown_all()

        assert calls == ["one", "two", "three"]
        failures = [e for e in logs if e["event"] == "plugin_shutdown_failed"]
        assert len(failures) == 1
        assert failures[0]["plugin"] == "two"


PLUGIN_SOURCE = (
    "class _P:\n"
    "    name = {name!r}\n"
    "    description = 'discovered'\n"
    "    version = '0.0.1'\n"
    "\n"
    "def create_plugin():\n"
    "    return _P()\n"
)


def _write_plugin(root: Path, dir_name: str, source: str = None) -> None:
    plugin_dir = root / dir_name
    plugin_dir.mkdir()
    (plugin_dir / "plugin.py").write_text(source or PLUGIN_SOURCE.format(name=dir_name))


class TestDiscover:
    """Tests for directory discovery with allowlist."""

    def test_plugin_allowlist_blocks_unlisted_plugin(self, tmp_path):
        _write_plugin(tmp_path, "evil_plugin")
        loader, registry = _make_loader()

        with capture_logs() as logs:
            found = loader.discover(tmp_path, allowlist=["safe_plugin"])

        assert found == []
        assert registry.count() == 0
        assert "plugin_blocked_not_in_allowlist" in [e["event"] for e in logs]

    def test_plugin_allowlist_allows_listed_plugin(self, tmp_path):
        _write_plugin(tmp_path, "safe_plugin")
        _write_plugin(tmp_path, "other_plugin")
        loader, registry = _make_loader()

        found = loader.discover(tmp_path, allowlist=["safe_plugin"])

        assert [p.name for p in found] == ["safe_plugin"]
        assert registry.count() == 0

    def test_plugin_no_allowlist_finds_all(self, tmp_path):
        _write_plugin(tmp_path, "beta")
        _write_plugin(tmp_path, "alpha")
        loader, _ = _make_loader()

        found = loader.discover(tmp_path)

        assert [p.name for p in found] == ["alpha", "beta"]

    def test_disabled_plugin_skipped(self, tmp_path):
        _write_plugin(tmp_path, "muted")
        loader, _ = _make_loader()
        loader.set_plugin_config("muted", {"enabled": False})

        assert loader.discover(tmp_path) == []

    def test_import_failure_logged_and_skipped(self, tmp_path):
        _write_plugin(tmp_path, "broken", source="raise ImportError('missing dep')\n")
        _write_plugin(tmp_path, "fine")
        loader, _ = _make_loader()

        with capture_logs() as logs:
            found = loader.discover(tmp_path)

        assert [p.name for p in found] == ["fine"]
        failures = [e for e in logs if e["event"] == "plugin_import_failed"]
        assert failures[0]["plugin"] == "broken"

    def test_module_without_factory_skipped(self, tmp_path):
        _write_plugin(tmp_path, "nofactory", source="X = 1\n")
        loader, _ = _make_loader()
        assert loader.discover(tmp_path) == []

    def test_missing_directory_returns_nothing(self, tmp_path):
        loader, _ = _make_loader()
        assert loader.discover(tmp_path / "absent") == []

    def test_discovered_plugins_can_be_loaded(self, tmp_path):
        _write_plugin(tmp_path, "loadable")
        loader, registry = _make_loader()

        loader.load_all(*loader.discover(tmp_path))

        assert registry.names() == ["loadable"]

    def test_failed_import_not_left_in_sys_modules(self, tmp_path):
        _write_plugin(tmp_path, "halfway", source="X = 1\nraise RuntimeError('boom')\n")
        loader, _ = _make_loader()

        assert loader.discover(tmp_path) == []
        assert "modbot_plugins.halfway" not in sys.modules

    def test_bundled_plugins_are_discoverable(self):
        loader, _ = _make_loader()

        found = loader.discover(Path(modbot.__file__).parent / "plugins")

        assert [p.name for p in found] == ["greeter"]
        assert isinstance(found[0], GreeterPlugin)
