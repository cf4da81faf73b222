"""
Utility functions
"""

from togo.utils.clock import day_window, next_reset, to_utc, utc_now
from togo.utils.jwt_utils import TokenService, parse_bearer

__all__ = [
    "day_window",
    "next_reset",
    "to_utc",
    "utc_now",
    "TokenService",
    "parse_bearer",
]
