"""Utility modules for the prompt catalog."""

from .timestamps import format_iso, parse_iso, utc_now

__all__ = ["format_iso", "parse_iso", "utc_now"]
