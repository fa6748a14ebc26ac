"""Sync management endpoints"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from devpool_sync.models import MirrorRecord, SyncLog
from devpool_sync.models.base import get_db
from devpool_sync.scheduler import SyncAlreadyRunning, run_configured_sync

router = APIRouter(prefix="/api/sync", tags=["sync"])


class SyncLogResponse(BaseModel):
    id: int
    partner: Optional[str] = None
    partner_issue_url: Optional[str] = None
    mirror_issue_number: Optional[int] = None
    status: str
    action: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MirrorRecordResponse(BaseModel):
    id: int
    partner_id: str
    partner_owner: str
    partner_repo: str
    partner_url: Optional[str] = None
    mirror_issue_number: int
    price_label: str
    state: Optional[str] = None
    assignee: Optional[str] = None
    last_synced_at: datetime

    class Config:
        from_attributes = True


@router.post("/trigger")
def trigger_sync(
    urls: Optional[List[str]] = Body(None, embed=True),
    db: Session = Depends(get_db),
):
    """Run a sync now, over the configured partners or the given `urls`"""
    try:
        return run_configured_sync(db, partner_urls=urls)
    except SyncAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/logs", response_model=List[SyncLogResponse])
def list_sync_logs(
    limit: int = 100,
    partner: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List sync logs"""
    query = db.query(SyncLog).order_by(SyncLog.created_at.desc(), SyncLog.id.desc())
    if partner:
        query = query.filter(SyncLog.partner == partner)
    return query.limit(limit).all()


@router.get("/mirrors", response_model=List[MirrorRecordResponse])
def list_mirror_records(
    partner: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List mirror records, optionally for one "<owner>/<repo>" partner"""
    query = db.query(MirrorRecord).order_by(MirrorRecord.mirror_issue_number)
    if partner:
        owner, _, repo = partner.partition("/")
        query = query.filter(MirrorRecord.partner_owner == owner, MirrorRecord.partner_repo == repo)
    return query.all()
