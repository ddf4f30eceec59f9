"""Database configuration and utilities."""

from .session import Base, Store

__all__ = ["Base", "Store"]
