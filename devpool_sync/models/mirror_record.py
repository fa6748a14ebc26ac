"""Mirror record model"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from devpool_sync.models.base import Base


def utcnow() -> datetime:
    """UTC 'now' as tz-naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MirrorRecord(Base):
    """Structured metadata of a mirror issue, keyed by partner issue id"""

    __tablename__ = "mirror_records"

    id = Column(Integer, primary_key=True, index=True)

    # Partner issue
    partner_id = Column(String, unique=True, nullable=False, index=True)
    partner_owner = Column(String, nullable=False)
    partner_repo = Column(String, nullable=False)
    partner_url = Column(String, nullable=True)

    # Mirror issue
    mirror_issue_number = Column(Integer, nullable=False)
    price_label = Column(String, nullable=False)
    state = Column(String, nullable=True)
    assignee = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    last_synced_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def partner(self) -> str:
        return f"{self.partner_owner}/{self.partner_repo}"

    def __repr__(self):
        return f"<MirrorRecord(partner_id={self.partner_id}, mirror=#{self.mirror_issue_number})>"
