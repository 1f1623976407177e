"""Custom exception hierarchy for modbot.

Every error a command, middleware or registry raises on purpose is a
ModbotError. The dispatch pipeline treats a raised ModbotError as the
command's "returned error" and any other exception as an unrecoverable
runtime fault (handled by the recovery middleware).

Errors carry two messages: the internal ``message`` used for logs and
an optional ``user_message`` that is safe to show in the chat client.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (platform hiccup, rate limit)
    PERMANENT = "permanent"          # Not worth retrying (bad input, rule violation)
    INFRASTRUCTURE = "infrastructure"  # No session, misconfiguration


class ModbotError(Exception):
    """Base exception for all modbot errors.

    Attributes:
        message: Internal error description for logs.
        category: Error classification.
        module: Originating module name (e.g. "commands.registry").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    @property
    def user_message(self) -> Optional[str]:
        """Message safe to show to the end user, if any."""
        return None

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


def find_user_message(exc: Optional[BaseException]) -> Optional[str]:
    """Return the first non-empty user message along an error's cause chain."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, ModbotError) and exc.user_message:
            return exc.user_message
        exc = exc.__cause__ or exc.__context__
    return None


# ---------------------------------------------------------------------------
# Command execution exceptions
# ---------------------------------------------------------------------------

class ValidationError(ModbotError):
    """A command argument failed validation.

    Attributes:
        field: Name of the offending option.
    """

    def __init__(
        self,
        field: str,
        message: str,
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.field = field
        super().__init__(
            f"validation error for {field}: {message}",
            category=ErrorCategory.PERMANENT,
            module=module or "commands",
            **context,
        )
        self.reason = message

    @property
    def user_message(self) -> Optional[str]:
        return f"Invalid `{self.field}`: {self.reason}"


class UserFriendlyError(ModbotError):
    """A business-rule failure with a message that is safe to show.

    ``str(err)`` stays the internal diagnostic; ``user_message`` is what
    the dispatcher sends back to the invoking user.
    """

    def __init__(
        self,
        user_message: str,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self._user_message = user_message
        super().__init__(
            message or user_message,
            category=category,
            module=module or "commands",
            **context,
        )

    @property
    def user_message(self) -> Optional[str]:
        return self._user_message


class MissingPermissionError(ModbotError):
    """The invoking member lacks a required permission.

    Attributes:
        permission: Human-readable name of the missing permission.
    """

    def __init__(
        self,
        permission: str,
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.permission = permission
        super().__init__(
            f"missing permission: {permission}",
            category=ErrorCategory.PERMANENT,
            module=module or "middleware",
            **context,
        )

    @property
    def user_message(self) -> Optional[str]:
        return f"You need the {self.permission} permission to use this command."


class NoSessionError(ModbotError):
    """No live platform session (or no interaction) to respond through.

    Defaults to INFRASTRUCTURE; the user only ever sees a generic apology.
    """

    def __init__(
        self,
        message: str = "cannot respond: session or interaction is missing",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.INFRASTRUCTURE,
            module=module or "commands.context",
            **context,
        )


class CommandError(ModbotError):
    """Error raised while executing a named command.

    Attributes:
        command: Name of the failing command.
    """

    def __init__(
        self,
        command: str,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            f"command {command} failed: {message}" if message else f"command {command} failed",
            category=category,
            module=module or "commands",
            **context,
        )


# ---------------------------------------------------------------------------
# Command registry exceptions
# ---------------------------------------------------------------------------

class RegistryError(ModbotError):
    """Error registering a command."""

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.PERMANENT,
            module=module or "commands.registry",
            **context,
        )


class NilCommandError(RegistryError):
    """Attempted to register ``None`` as a command."""

    def __init__(self) -> None:
        super().__init__("cannot register nil command")


class EmptyCommandNameError(RegistryError):
    """Attempted to register a command with a blank name."""

    def __init__(self) -> None:
        super().__init__("cannot register command with empty name")


class InvalidCommandNameError(RegistryError):
    """Command name is not lowercase letters, digits, '-' or '_'."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"invalid command name {name!r}", command=name)


class DuplicateCommandError(RegistryError):
    """A command with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"command {name!r} is already registered", command=name)


# ---------------------------------------------------------------------------
# Plugin exceptions
# ---------------------------------------------------------------------------

class PluginError(ModbotError):
    """Error in the plugin registry or loader.

    Attributes:
        plugin: Name of the plugin involved.
    """

    def __init__(
        self,
        message: str = "",
        *,
        plugin: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.plugin = plugin
        super().__init__(
            message, category=category, module=module or "plugins", **context
        )


class DuplicatePluginError(PluginError):
    """A plugin with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name!r} already registered", plugin=name)


class PluginNotFoundError(PluginError):
    """No plugin registered under the given name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name!r} not found", plugin=name)


class PluginLoadError(PluginError):
    """A plugin could not be registered."""


class PluginInitError(PluginError):
    """A plugin's init hook failed; the plugin has been rolled back."""


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(ModbotError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )
