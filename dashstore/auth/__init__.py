"""
Authentication package for dashstore.
"""

from .provider import TokenProvider
from .session import SessionConfig, SessionManager

__all__ = [
    "TokenProvider",
    "SessionConfig",
    "SessionManager",
]
