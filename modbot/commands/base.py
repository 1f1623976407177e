"""Base classes for the command framework.

Defines the contract every slash command implements. The registry and
dispatcher only rely on the ``Command`` protocol; ``BaseCommand`` is a
convenience ABC that most built-in commands extend.

Key classes:
    Command: Protocol checked by the registry and plugin loader.
    BaseCommand: ABC with sensible defaults for options and permissions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

from ..models import CommandOption

if TYPE_CHECKING:
    from .context import CommandContext


@runtime_checkable
class Command(Protocol):
    """A slash command.

    ``name`` is lowercase with no spaces and is what users type after the
    slash. ``execute`` raises a ModbotError to report failure; any other
    exception is treated as a runtime fault.
    """

    name: str
    description: str

    def options(self) -> List[CommandOption]:
        ...

    def execute(self, ctx: "CommandContext") -> None:
        ...


class BaseCommand(ABC):
    """Abstract base class for commands.

    Subclasses set ``name`` and ``description`` as class attributes,
    override ``options()`` if they take arguments, and implement
    ``execute()``. Commands that need a member permission set
    ``required_permissions`` to a ``Permissions`` bitmask; it is exported
    as the command's default member permissions and enforced by the
    permission guard middleware.
    """

    name: str = ""
    description: str = ""
    required_permissions: Optional[int] = None

    def options(self) -> List[CommandOption]:
        return []

    @abstractmethod
    def execute(self, ctx: "CommandContext") -> None:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
