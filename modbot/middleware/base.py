"""Handler and middleware types plus chain composition.

A HandlerFunc runs one command invocation: it returns normally on
success and raises a ModbotError on failure. A Middleware wraps a
HandlerFunc into another HandlerFunc and may act before and after the
inner call, transform or swallow its error, or skip it entirely.
"""

from functools import reduce
from typing import Callable

from ..commands.context import CommandContext

HandlerFunc = Callable[[CommandContext], None]
Middleware = Callable[[HandlerFunc], HandlerFunc]


def chain(*middlewares: Middleware) -> Middleware:
    """Compose middlewares into one; the first listed is the outermost.

    ``chain(a, b, c)(handler)`` is ``a(b(c(handler)))``, so an invocation
    runs a → b → c → handler → c → b → a. With no middlewares the
    composed middleware returns the handler unchanged.
    """
    stack = tuple(middlewares)

    def compose(final: HandlerFunc) -> HandlerFunc:
        return reduce(lambda handler, mw: mw(handler), reversed(stack), final)

    return compose
