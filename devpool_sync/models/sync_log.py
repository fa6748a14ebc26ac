"""Sync log model"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Enum
import enum

from devpool_sync.models.base import Base
from devpool_sync.models.mirror_record import utcnow


class SyncStatus(str, enum.Enum):
    """Sync status enumeration"""
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"
    CONFLICT = "conflict"
    SKIPPED = "skipped"


class SyncAction(str, enum.Enum):
    """What a sync step did to the mirror repository"""
    CREATED = "created"
    UPDATED = "updated"
    NO_UPDATES = "no_updates"
    ASSIGNED = "assigned"
    RUN = "run"


class SyncLog(Base):
    """Log of sync operations"""

    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, index=True)

    # "<owner>/<repo>" of the partner repository, if any
    partner = Column(String, nullable=True, index=True)

    # Issue information
    partner_issue_url = Column(String, nullable=True)
    mirror_issue_number = Column(Integer, nullable=True)

    # Sync details
    status = Column(Enum(SyncStatus), nullable=False)
    action = Column(Enum(SyncAction), nullable=True)
    message = Column(Text, nullable=True)

    # Timestamp
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"<SyncLog(status={self.status}, action={self.action})>"
