"""Issue synchronization service"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from devpool_sync.models import MirrorRecord, SyncLog
from devpool_sync.models.sync_log import SyncAction, SyncStatus
from devpool_sync.services.assignees import AssigneePropagator, AssigneeResult, AssigneeStatus
from devpool_sync.services.issue import Issue, IssueStore
from devpool_sync.services.labels import MirrorMetadata, parse_repo_url
from devpool_sync.services.reconciler import (
    Action,
    CreateMirror,
    DuplicatePolicy,
    NoOp,
    Reconciler,
    UpdateMirror,
)

logger = logging.getLogger(__name__)


def _partner_name(url: str) -> str:
    try:
        return parse_repo_url(url).full_name
    except ValueError:
        return url


def _empty_stats() -> Dict[str, int]:
    return {
        "created": 0,
        "updated": 0,
        "unchanged": 0,
        "skipped": 0,
        "assigned": 0,
        "assignee_failures": 0,
        "errors": 0,
    }


class SyncService:
    """Keeps the mirror repository in line with every partner repository"""

    def __init__(
        self,
        client: IssueStore,
        mirror_owner: str,
        mirror_repo: str,
        db: Optional[Session] = None,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST,
        assignee_workers: int = 4,
    ):
        self.client = client
        self.mirror_owner = mirror_owner
        self.mirror_repo = mirror_repo
        self.db = db
        self.reconciler = Reconciler(duplicate_policy)
        self.propagator = AssigneePropagator(
            client, mirror_owner, mirror_repo, max_workers=assignee_workers
        )

    @property
    def mirror_name(self) -> str:
        return f"{self.mirror_owner}/{self.mirror_repo}"

    def sync(self, partner_urls: Sequence[str]) -> Dict[str, Any]:
        """Run assignee propagation, then reconcile each partner repository in order.

        A failing partner repository is reported and the run moves on to the
        next one; only failing to read the mirror repository aborts the run.
        """
        stats = _empty_stats()
        errors: List[Dict[str, str]] = []
        logger.info(f"Starting sync of {len(partner_urls)} partner repositories into {self.mirror_name}")

        try:
            mirror_issues = self.client.list_issues(self.mirror_owner, self.mirror_repo)
        except Exception as e:
            logger.error(f"Sync failed: could not list mirror issues of {self.mirror_name}: {e}")
            self._log_sync(SyncStatus.FAILED, SyncAction.RUN, message=f"Sync failed: {e}")
            stats["errors"] += 1
            return {"status": "failed", "error": str(e), "stats": stats, "errors": errors}

        # Finish with assignees before any title/state/label write, so the two
        # passes never touch the same mirror issue at once.
        for _issue, result in self.propagate_assignees(mirror_issues):
            if result.status == AssigneeStatus.ASSIGNED:
                stats["assigned"] += 1
            elif result.status == AssigneeStatus.FAILED:
                stats["assignee_failures"] += 1

        mirror_issues = list(mirror_issues)
        for partner_url in partner_urls:
            try:
                self.sync_repository(partner_url, mirror_issues, stats)
            except Exception as e:
                # A failed write must not poison the session for the next partner.
                if self.db is not None:
                    self.db.rollback()
                logger.error(f"Failed to sync partner {partner_url}: {e}")
                self._log_sync(
                    SyncStatus.FAILED,
                    partner=_partner_name(partner_url),
                    message=f"Failed to sync partner: {e}",
                )
                stats["errors"] += 1
                errors.append({"partner": partner_url, "error": str(e)})

        if stats["errors"] and len(errors) == len(partner_urls) and partner_urls:
            status = "failed"
        elif stats["errors"] or stats["assignee_failures"]:
            status = "partial"
        else:
            status = "success"

        logger.info(f"Sync completed ({status}): {stats}")
        self._log_sync(
            SyncStatus(status),
            SyncAction.RUN,
            message=f"Sync {status}: {stats}",
        )
        return {"status": status, "stats": stats, "errors": errors}

    def propagate_assignees(self, mirror_issues: Sequence[Issue]) -> List[Tuple[Issue, AssigneeResult]]:
        results = self.propagator.propagate(mirror_issues)
        for mirror_issue, result in results:
            if result.status == AssigneeStatus.ASSIGNED:
                self._record_assignee(mirror_issue, result.assignee)
                self._log_sync(
                    SyncStatus.SUCCESS,
                    SyncAction.ASSIGNED,
                    partner_issue_url=mirror_issue.body,
                    mirror_issue_number=mirror_issue.number,
                    message=f"Updated: {mirror_issue.url}",
                )
            elif result.status == AssigneeStatus.FAILED:
                self._log_sync(
                    SyncStatus.FAILED,
                    SyncAction.ASSIGNED,
                    partner_issue_url=mirror_issue.body,
                    mirror_issue_number=mirror_issue.number,
                    message=f"Failed to propagate assignee: {result.error}",
                )
        return results

    def sync_repository(
        self,
        partner_url: str,
        mirror_issues: List[Issue],
        stats: Optional[Dict[str, int]] = None,
    ) -> Dict[str, int]:
        """Reconcile one partner repository; `mirror_issues` is kept current in place."""
        ref = parse_repo_url(partner_url)
        if stats is None:
            stats = _empty_stats()

        partner_issues = self.client.list_issues(ref.owner, ref.repo)
        actions = self.reconciler.reconcile(mirror_issues, partner_issues, ref.owner, ref.repo)
        for action in actions:
            self._apply(action, ref.owner, ref.repo, mirror_issues, stats)
        return stats

    def _apply(
        self,
        action: Action,
        owner: str,
        repo: str,
        mirror_issues: List[Issue],
        stats: Dict[str, int],
    ) -> None:
        partner = f"{owner}/{repo}"

        if isinstance(action, CreateMirror):
            created = self.client.create_issue(self.mirror_owner, self.mirror_repo, action.payload())
            if isinstance(created, Issue):
                mirror_issues.append(created)
            number = getattr(created, "number", None)
            logger.info(f"Created: {action.partner_issue.url}")
            stats["created"] += 1
            self._record_mirror(action.partner_issue, owner, repo, number)
            self._log_sync(
                SyncStatus.SUCCESS,
                SyncAction.CREATED,
                partner=partner,
                partner_issue_url=action.partner_issue.url,
                mirror_issue_number=number,
                message=f"Created: {action.partner_issue.url}",
            )
            return

        if isinstance(action, UpdateMirror):
            self._warn_duplicates(action.duplicates, action.partner_issue, partner)
            updated = self.client.update_issue(
                self.mirror_owner, self.mirror_repo, action.number, action.payload()
            )
            if isinstance(updated, Issue):
                for i, existing in enumerate(mirror_issues):
                    if existing.number == updated.number:
                        mirror_issues[i] = updated
                        break
            url = action.partner_issue.url if action.partner_issue else ""
            logger.info(f"Updated: {url}")
            stats["updated"] += 1
            if action.partner_issue is not None:
                self._record_mirror(action.partner_issue, owner, repo, action.number)
            self._log_sync(
                SyncStatus.SUCCESS,
                SyncAction.UPDATED,
                partner=partner,
                partner_issue_url=url,
                mirror_issue_number=action.number,
                message=f"Updated: {url}",
            )
            return

        if isinstance(action, NoOp):
            if action.reason == "ambiguous":
                logger.warning(
                    f"Skipped: {action.partner_issue.url} (mirrors {list(action.duplicates)} share its id)"
                )
                stats["skipped"] += 1
                self._log_sync(
                    SyncStatus.SKIPPED,
                    SyncAction.NO_UPDATES,
                    partner=partner,
                    partner_issue_url=action.partner_issue.url,
                    message=f"Skipped: duplicate mirror issues {list(action.duplicates)}",
                )
                return
            self._warn_duplicates(action.duplicates, action.partner_issue, partner)
            logger.info(f"No updates: {action.partner_issue.url}")
            stats["unchanged"] += 1
            self._log_sync(
                SyncStatus.SUCCESS,
                SyncAction.NO_UPDATES,
                partner=partner,
                partner_issue_url=action.partner_issue.url,
                message=f"No updates: {action.partner_issue.url}",
            )
            return

        raise TypeError(f"Unknown action {action!r}")

    def _warn_duplicates(self, duplicates: Tuple[int, ...], partner_issue: Optional[Issue], partner: str) -> None:
        if not duplicates:
            return
        url = partner_issue.url if partner_issue else ""
        logger.warning(f"Ignoring duplicate mirror issues {list(duplicates)} for {url}")
        self._log_sync(
            SyncStatus.CONFLICT,
            partner=partner,
            partner_issue_url=url,
            message=f"Duplicate mirror issues ignored: {list(duplicates)}",
        )

    def _record_mirror(self, partner_issue: Issue, owner: str, repo: str, number: Optional[int]) -> None:
        """Upsert the structured metadata of a mirror issue"""
        if self.db is None or number is None:
            return
        meta = MirrorMetadata.for_partner_issue(partner_issue, owner, repo)
        row = self.db.query(MirrorRecord).filter(MirrorRecord.partner_id == meta.partner_id).first()
        if row is None:
            row = MirrorRecord(partner_id=meta.partner_id)
        row.partner_owner = meta.partner_owner
        row.partner_repo = meta.partner_repo
        row.partner_url = partner_issue.url
        row.price_label = meta.price_label
        row.state = partner_issue.state
        row.mirror_issue_number = int(number)
        self._safe_commit(row)

    def _record_assignee(self, mirror_issue: Issue, assignee: Optional[str]) -> None:
        if self.db is None:
            return
        row = (
            self.db.query(MirrorRecord)
            .filter(MirrorRecord.mirror_issue_number == mirror_issue.number)
            .first()
        )
        if row is None:
            meta = MirrorMetadata.from_labels(mirror_issue.labels)
            if meta is None:
                return
            row = MirrorRecord(
                partner_id=meta.partner_id,
                partner_owner=meta.partner_owner,
                partner_repo=meta.partner_repo,
                partner_url=mirror_issue.body,
                price_label=meta.price_label,
                state=mirror_issue.state,
                mirror_issue_number=mirror_issue.number,
            )
        row.assignee = assignee
        self._safe_commit(row)

    def _safe_commit(self, row: MirrorRecord) -> bool:
        """Commit a MirrorRecord row, swallowing duplicate-record races."""
        try:
            self.db.add(row)
            self.db.commit()
            return True
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Mirror record for {row.partner_id} already exists")
            return False

    def _log_sync(
        self,
        status: SyncStatus,
        action: Optional[SyncAction] = None,
        partner: Optional[str] = None,
        partner_issue_url: Optional[str] = None,
        mirror_issue_number: Optional[int] = None,
        message: str = "",
    ):
        """Log sync operation"""
        if self.db is None:
            return
        log = SyncLog(
            partner=partner,
            partner_issue_url=partner_issue_url,
            mirror_issue_number=mirror_issue_number,
            status=status,
            action=action,
            message=message,
        )
        self.db.add(log)
        self.db.commit()
