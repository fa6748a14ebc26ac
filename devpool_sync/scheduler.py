"""Background scheduler for periodic sync"""

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from devpool_sync.config import Settings, load_partner_urls, settings
from devpool_sync.models.base import SessionLocal
from devpool_sync.services.github_client import GitHubClient
from devpool_sync.services.issue import IssueStore
from devpool_sync.services.sync_service import SyncService

logger = logging.getLogger(__name__)

JOB_ID = "sync_partners"

# Every run writes the same mirror repository, so at most one may be in
# flight per process (scheduled job and API triggers alike).
_sync_lock = threading.Lock()


class SyncAlreadyRunning(RuntimeError):
    """Raised when a sync is requested while another one is in progress."""


def run_configured_sync(
    db: Optional[Session],
    partner_urls: Optional[Sequence[str]] = None,
    client: Optional[IssueStore] = None,
    config: Settings = settings,
) -> Dict[str, Any]:
    """Build a SyncService from settings and run it once.

    `partner_urls` defaults to the contents of the configured partners file.
    Raises SyncAlreadyRunning instead of waiting when a run is in progress.
    """
    if not _sync_lock.acquire(blocking=False):
        raise SyncAlreadyRunning("sync already running")
    try:
        return _run_sync(db, partner_urls, client, config)
    finally:
        _sync_lock.release()


def _run_sync(
    db: Optional[Session],
    partner_urls: Optional[Sequence[str]],
    client: Optional[IssueStore],
    config: Settings,
) -> Dict[str, Any]:
    if partner_urls is None:
        partner_urls = load_partner_urls(config.partners_file)
    if client is None:
        client = GitHubClient(config.github_token)
    service = SyncService(
        client,
        config.mirror_owner,
        config.mirror_repo,
        db=db,
        duplicate_policy=config.duplicate_policy,
        assignee_workers=config.assignee_workers,
    )
    return service.sync(list(partner_urls))


class SyncScheduler:
    """Scheduler for periodic issue synchronization"""

    def __init__(self, interval_minutes: int = settings.sync_interval_minutes):
        self.scheduler = BackgroundScheduler()
        self.interval_minutes = interval_minutes

    def start(self):
        """Start the scheduler"""
        self.scheduler.start()
        logger.info("Sync scheduler started")
        self.schedule()

    def stop(self):
        """Stop the scheduler"""
        self.scheduler.shutdown()
        logger.info("Sync scheduler stopped")

    def schedule(self):
        """(Re)schedule the periodic sync job"""
        self.scheduler.add_job(
            func=self._sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            replace_existing=True,
            # Runs must never overlap: they all write the same mirror repository.
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled partner sync every {self.interval_minutes} minutes")

    def _sync_job(self):
        """Job function to sync all partner repositories"""
        db = SessionLocal()
        try:
            logger.info("Running scheduled sync")
            result = run_configured_sync(db)
            logger.info(f"Scheduled sync finished: {result['status']} {result['stats']}")
        except SyncAlreadyRunning:
            logger.warning("Skipping scheduled sync: another sync is still running")
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}")
        finally:
            db.close()


# Global scheduler instance
scheduler = SyncScheduler()
