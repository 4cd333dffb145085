"""
Store module: append-only log table and its query adapter.
"""

from src.store.adapter import LogStore, create_store
from src.store.models import Base, LogRow

__all__ = [
    "LogStore",
    "create_store",
    "Base",
    "LogRow",
]
