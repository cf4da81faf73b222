"""
togo

Task tracking backend with per-user daily task creation quotas.
"""

__version__ = "0.3.0"
