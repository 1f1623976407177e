"""Thread-safe registry mapping command names to commands."""

import re
from typing import Dict, List, Optional

import structlog

from .._rwlock import ReadWriteLock
from ..exceptions import (
    DuplicateCommandError,
    EmptyCommandNameError,
    InvalidCommandNameError,
    NilCommandError,
)
from ..models import ApplicationCommand
from .base import Command

COMMAND_NAME_RE = re.compile(r"^[-_a-z0-9]{1,32}$")


class CommandRegistry:
    """Maps command names to Command instances.

    Registration is append-only: a name can be registered once and is
    never replaced. Lookups and listings may run concurrently with each
    other; registration is exclusive.
    """

    def __init__(self, logger=None):
        self._commands: Dict[str, Command] = {}
        self._lock = ReadWriteLock()
        self._logger = logger if logger is not None else structlog.get_logger("modbot.commands")

    def register(self, cmd: Optional[Command]) -> None:
        """Add a command to the registry.

        Raises:
            NilCommandError: ``cmd`` is None.
            EmptyCommandNameError: The command's name is blank.
            InvalidCommandNameError: The name is not lowercase letters,
                digits, '-' or '_' (max 32 characters).
            DuplicateCommandError: The name is already registered.
        """
        if cmd is None:
            raise NilCommandError()

        name = getattr(cmd, "name", "") or ""
        if not name.strip():
            raise EmptyCommandNameError()
        if not COMMAND_NAME_RE.match(name):
            raise InvalidCommandNameError(name)

        with self._lock.write_locked():
            if name in self._commands:
                raise DuplicateCommandError(name)
            self._commands[name] = cmd

        self._logger.debug("command_registered", command=name)

    def get(self, name: str) -> Optional[Command]:
        """Look up a command by name. Returns None when not registered."""
        with self._lock.read_locked():
            return self._commands.get(name)

    def all(self) -> List[Command]:
        """All registered commands in registration order (a fresh list)."""
        with self._lock.read_locked():
            return list(self._commands.values())

    def names(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._commands)

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._commands

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._commands)

    def to_descriptors(self) -> List[ApplicationCommand]:
        """Render every command into the platform's catalog format.

        Commands declaring ``required_permissions`` get it attached as
        the default member permissions.
        """
        descriptors = []
        for cmd in self.all():
            descriptor = ApplicationCommand(
                name=cmd.name,
                description=cmd.description,
                options=list(cmd.options() or []),
            )
            permissions = getattr(cmd, "required_permissions", None)
            if permissions is not None:
                descriptor.default_member_permissions = int(permissions)
            descriptors.append(descriptor)
        return descriptors
