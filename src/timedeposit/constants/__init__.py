"""Static configuration data."""

from .rates import DEFAULT_RATE_ROWS, RECOMMENDED_TERMS

__all__ = ["DEFAULT_RATE_ROWS", "RECOMMENDED_TERMS"]
