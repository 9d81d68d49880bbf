"""Input helpers for reading dotenv sources."""

from .lines import iterate_lines, iterate_stream_lines

__all__ = ["iterate_lines", "iterate_stream_lines"]
