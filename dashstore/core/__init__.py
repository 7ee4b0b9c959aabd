"""
Core dashstore functionality.
"""

from .config import Config, StorageConfig
from .dashboard import Dashboard

__all__ = ["Config", "StorageConfig", "Dashboard"]
