"""Reconciliation of mirror issues against one partner repository"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from devpool_sync.config import DuplicatePolicy
from devpool_sync.services.issue import Issue, IssueState
from devpool_sync.services.labels import identity_label, mirror_labels, price_label


@dataclass(frozen=True)
class Found:
    issue: Issue


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Ambiguous:
    issues: Tuple[Issue, ...]


MatchResult = Union[Found, NotFound, Ambiguous]


@dataclass(frozen=True)
class CreateMirror:
    partner_issue: Issue
    labels: List[str]

    def payload(self) -> Dict[str, Any]:
        return {
            "title": self.partner_issue.title,
            "body": self.partner_issue.url,
            "labels": list(self.labels),
        }


@dataclass(frozen=True)
class UpdateMirror:
    """Write to an existing mirror issue; unset fields are left untouched."""

    number: int
    title: Optional[str] = None
    state: Optional[str] = None
    labels: Optional[List[str]] = None
    assignees: Optional[List[str]] = None
    partner_issue: Optional[Issue] = None
    # Numbers of other mirror issues carrying the same identity label
    duplicates: Tuple[int, ...] = field(default_factory=tuple)

    def payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.title is not None:
            data["title"] = self.title
        if self.state is not None:
            data["state"] = self.state
        if self.labels is not None:
            data["labels"] = list(self.labels)
        if self.assignees is not None:
            data["assignees"] = list(self.assignees)
        return data


@dataclass(frozen=True)
class NoOp:
    partner_issue: Issue
    reason: str = "unchanged"
    duplicates: Tuple[int, ...] = field(default_factory=tuple)


Action = Union[CreateMirror, UpdateMirror, NoOp]


def match_mirror(mirror_issues: Sequence[Issue], partner_issue_id: str) -> MatchResult:
    """Find mirror issues labelled with the identity of `partner_issue_id`."""
    wanted = identity_label(partner_issue_id)
    matches = tuple(m for m in mirror_issues if wanted in (m.labels or []))
    if not matches:
        return NotFound()
    if len(matches) == 1:
        return Found(matches[0])
    return Ambiguous(matches)


def needs_update(mirror: Issue, partner: Issue) -> bool:
    return (
        mirror.title != partner.title
        or mirror.state != partner.state
        or price_label(mirror) != price_label(partner)
    )


class Reconciler:
    """Decides, per partner issue, whether to create, update or leave a mirror."""

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST):
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)

    def reconcile(
        self,
        mirror_issues: Sequence[Issue],
        partner_issues: Sequence[Issue],
        owner: str,
        repo: str,
    ) -> List[Action]:
        actions: List[Action] = []
        for partner in partner_issues:
            action = self._decide(mirror_issues, partner, owner, repo)
            if action is not None:
                actions.append(action)
        return actions

    def _decide(
        self, mirror_issues: Sequence[Issue], partner: Issue, owner: str, repo: str
    ) -> Optional[Action]:
        match = match_mirror(mirror_issues, partner.id)

        duplicates: Tuple[int, ...] = ()
        if isinstance(match, Ambiguous):
            numbers = tuple(m.number for m in match.issues)
            # Reported by the caller, which owns the audit trail.
            if self.duplicate_policy == DuplicatePolicy.SKIP:
                return NoOp(partner, reason="ambiguous", duplicates=numbers)
            duplicates = numbers[1:]
            match = Found(match.issues[0])

        if isinstance(match, Found):
            mirror = match.issue
            if not needs_update(mirror, partner):
                return NoOp(partner, duplicates=duplicates)
            return UpdateMirror(
                number=mirror.number,
                title=partner.title,
                state=partner.state,
                labels=mirror_labels(partner, owner, repo),
                partner_issue=partner,
                duplicates=duplicates,
            )

        # Closed issues that were never mirrored are not copied over.
        if partner.state == IssueState.CLOSED.value:
            return None
        return CreateMirror(partner, mirror_labels(partner, owner, repo))


def reconcile(
    mirror_issues: Sequence[Issue],
    partner_issues: Sequence[Issue],
    owner: str,
    repo: str,
) -> List[Action]:
    """Reconcile with the default (first match wins) duplicate policy."""
    return Reconciler().reconcile(mirror_issues, partner_issues, owner, repo)
