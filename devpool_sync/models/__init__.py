"""Database models"""

from devpool_sync.models.base import Base
from devpool_sync.models.mirror_record import MirrorRecord
from devpool_sync.models.sync_log import SyncLog

__all__ = [
    "Base",
    "MirrorRecord",
    "SyncLog",
]
