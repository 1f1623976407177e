"""modbot: a moderation bot built around a pluggable command pipeline."""

__version__ = "1.0.0"
