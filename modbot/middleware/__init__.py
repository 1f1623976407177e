"""Composable middleware around command execution."""

from .base import HandlerFunc, Middleware, chain
from .permissions import permission_guard
from .recovery import FAULT_USER_MESSAGE, recovery
from .request_logging import request_logging

__all__ = [
    "HandlerFunc",
    "Middleware",
    "chain",
    "recovery",
    "request_logging",
    "permission_guard",
    "FAULT_USER_MESSAGE",
]
