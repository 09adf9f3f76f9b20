"""Core configuration and utilities"""

from .config import PagePixieConfig

__all__ = ["PagePixieConfig"]
