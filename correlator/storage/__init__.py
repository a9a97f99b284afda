"""Persistence layer."""

from .base import Store
from .mysql import MySQLStore

__all__ = ["Store", "MySQLStore"]
