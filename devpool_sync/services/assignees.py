"""Propagation of partner assignees onto mirror issues

Only ever assigns: when the partner issue loses its assignee the mirror keeps
the last one it was given.
"""

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from devpool_sync.services.issue import Issue, IssueStore
from devpool_sync.services.labels import MalformedUrlError, parse_repo_url
from devpool_sync.services.reconciler import UpdateMirror

logger = logging.getLogger(__name__)


class AssigneeStatus(str, enum.Enum):
    """Outcome of propagating the assignee of a single mirror issue"""
    ASSIGNED = "assigned"
    UNCHANGED = "unchanged"
    UNASSIGNED = "unassigned"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AssigneeResult:
    status: AssigneeStatus
    assignee: Optional[str] = None
    error: Optional[str] = None


class AssigneePropagator:
    """Copies the live partner assignee onto each mirror issue."""

    def __init__(self, client: IssueStore, mirror_owner: str, mirror_repo: str, max_workers: int = 4):
        self.client = client
        self.mirror_owner = mirror_owner
        self.mirror_repo = mirror_repo
        self.max_workers = max(1, int(max_workers))

    def plan(self, mirror_issue: Issue) -> Tuple[Optional[UpdateMirror], AssigneeResult]:
        """Look up the partner issue and decide on the write, without applying it."""
        if not mirror_issue.body:
            return None, AssigneeResult(AssigneeStatus.SKIPPED)

        ref = parse_repo_url(mirror_issue.body)
        if ref.issue_number is None:
            raise MalformedUrlError(f"mirror body is not an issue URL: {mirror_issue.body!r}")

        partner = self.client.get_issue(ref.owner, ref.repo, ref.issue_number)
        if not partner.assignee:
            return None, AssigneeResult(AssigneeStatus.UNASSIGNED)
        if partner.assignee == mirror_issue.assignee:
            return None, AssigneeResult(AssigneeStatus.UNCHANGED, assignee=partner.assignee)
        update = UpdateMirror(number=mirror_issue.number, assignees=[partner.assignee])
        return update, AssigneeResult(AssigneeStatus.ASSIGNED, assignee=partner.assignee)

    def propagate_one(self, mirror_issue: Issue) -> AssigneeResult:
        try:
            update, result = self.plan(mirror_issue)
            if update is not None:
                self.client.update_issue(
                    self.mirror_owner, self.mirror_repo, update.number, update.payload()
                )
                logger.info(f"Updated: {mirror_issue.url}")
            return result
        except Exception as e:
            # One bad mirror issue must not stop the rest of the batch.
            logger.warning(f"Failed to propagate assignee for {mirror_issue.url}: {e}")
            return AssigneeResult(AssigneeStatus.FAILED, error=str(e))

    def propagate(self, mirror_issues: Sequence[Issue]) -> List[Tuple[Issue, AssigneeResult]]:
        """Propagate assignees for every mirror issue; results keep input order."""
        issues = list(mirror_issues)
        if not issues:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self.propagate_one, issues))
        return list(zip(issues, results))
