"""API routes"""

from devpool_sync.api import sync

__all__ = ["sync"]
