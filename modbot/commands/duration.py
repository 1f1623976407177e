"""Duration parsing and formatting for timeouts.

Grammar (case-insensitive, whitespace between parts allowed)::

    duration := [<int> "d"] [<int> "h"] [<int> "m"]     (at least one part)

so ``30m``, ``2h``, ``1d12h``, ``1h 30m`` parse; ``90``, ``5x``, ``1m2h``
and ``d`` do not.
"""

import re
from datetime import timedelta

_DURATION_RE = re.compile(
    r"^(?:(?P<days>\d+)\s*d)?\s*(?:(?P<hours>\d+)\s*h)?\s*(?:(?P<minutes>\d+)\s*m)?$"
)


def parse_duration(text: str) -> timedelta:
    """Parse a ``1d12h30m``-style duration.

    Raises:
        ValueError: If the text does not match the grammar or is too
            large to represent.
    """
    value = (text or "").strip().lower()
    match = _DURATION_RE.match(value)
    if not value or match is None or not any(match.groupdict().values()):
        raise ValueError(f"invalid duration {text!r}")
    parts = {k: int(v) for k, v in match.groupdict().items() if v is not None}
    try:
        return timedelta(**parts)
    except OverflowError as e:
        raise ValueError(f"duration {text!r} out of range") from e


def format_duration(delta: timedelta) -> str:
    """Render a duration as ``2d``, ``1d 4h``, ``3h 15m`` or ``45m``.

    Only the two most significant units are shown.
    """
    total_minutes = int(delta.total_seconds() // 60)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    if days:
        return f"{days}d {hours}h" if hours else f"{days}d"
    if hours:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    return f"{minutes}m"
