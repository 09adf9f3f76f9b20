"""Model session lifecycle management"""

from .manager import SessionManager
from .pool import SessionPool

__all__ = ["SessionManager", "SessionPool"]
