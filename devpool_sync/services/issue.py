"""Issue value type shared by the mirror and partner trackers"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


class IssueState(str, enum.Enum):
    """Issue state enumeration"""
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Issue:
    """Tracker-agnostic view of an issue.

    `id` is the opaque identifier assigned by the source tracker (GitHub's
    `node_id`) and is the join key between mirror and partner issues.
    `number` is only used to address update calls.
    """

    id: str
    number: int
    url: str
    title: str
    state: str = IssueState.OPEN.value
    labels: List[str] = field(default_factory=list)
    body: Optional[str] = None
    assignee: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.state == IssueState.CLOSED.value


class IssueStore(Protocol):
    """Issue tracker operations the sync depends on (see GitHubClient)"""

    def list_issues(self, owner: str, repo: str) -> List[Issue]: ...

    def get_issue(self, owner: str, repo: str, number: int) -> Issue: ...

    def create_issue(self, owner: str, repo: str, issue_data: Dict[str, Any]) -> Issue: ...

    def update_issue(
        self, owner: str, repo: str, number: int, issue_data: Dict[str, Any]
    ) -> Issue: ...
