"""GitHub API client wrapper"""
import logging
from typing import Any, Dict, List, Optional

from github import Auth, Github, GithubException

from devpool_sync.services.issue import Issue

logger = logging.getLogger(__name__)


class GitHubClient:
    """Wrapper for the GitHub issue operations the sync needs"""

    def __init__(self, access_token: Optional[str] = None, base_url: Optional[str] = None):
        """Initialize GitHub client"""
        kwargs: Dict[str, Any] = {}
        if access_token:
            kwargs["auth"] = Auth.Token(access_token)
        if base_url:
            kwargs["base_url"] = base_url
        self.gh = Github(**kwargs)
        self._repos: Dict[str, Any] = {}

    @staticmethod
    def _to_issue(raw: Any) -> Issue:
        """Convert a PyGithub issue into our Issue value."""
        assignee = getattr(raw, "assignee", None)
        return Issue(
            id=str(raw.node_id),
            number=int(raw.number),
            url=raw.html_url,
            title=raw.title,
            state=raw.state,
            labels=[label.name for label in (raw.labels or [])],
            body=raw.body,
            assignee=getattr(assignee, "login", None) if assignee else None,
        )

    @staticmethod
    def _normalize_issue_payload(issue_data: Dict[str, Any]) -> Dict[str, Any]:
        """Drop unset fields; PyGithub treats every passed kwarg as a change."""
        data = {k: v for k, v in issue_data.items() if v is not None}
        if "labels" in data:
            data["labels"] = [str(label) for label in data["labels"]]
        return data

    def get_repo(self, owner: str, repo: str):
        """Get repository by owner/name"""
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            try:
                self._repos[full_name] = self.gh.get_repo(full_name)
            except GithubException as e:
                logger.error(f"Failed to get repository {full_name}: {e}")
                raise
        return self._repos[full_name]

    def list_issues(self, owner: str, repo: str) -> List[Issue]:
        """Get all issues (open and closed) of a repository, pull requests excluded"""
        try:
            repository = self.get_repo(owner, repo)
            # PaginatedList walks every page lazily.
            raw_issues = repository.get_issues(state="all")
            return [self._to_issue(i) for i in raw_issues if i.pull_request is None]
        except GithubException as e:
            logger.error(f"Failed to get issues for {owner}/{repo}: {e}")
            raise

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Get a specific issue by number"""
        try:
            repository = self.get_repo(owner, repo)
            return self._to_issue(repository.get_issue(number=int(number)))
        except GithubException as e:
            logger.error(f"Failed to get issue #{number} from {owner}/{repo}: {e}")
            raise

    def create_issue(self, owner: str, repo: str, issue_data: Dict[str, Any]) -> Issue:
        """Create a new issue"""
        try:
            repository = self.get_repo(owner, repo)
            payload = self._normalize_issue_payload(issue_data)
            created = repository.create_issue(**payload)
            logger.debug(f"Created issue #{created.number} in {owner}/{repo}")
            return self._to_issue(created)
        except GithubException as e:
            logger.error(f"Failed to create issue in {owner}/{repo}: {e}")
            raise

    def update_issue(self, owner: str, repo: str, number: int, issue_data: Dict[str, Any]) -> Issue:
        """Update title, state, labels and/or assignees of an existing issue"""
        try:
            repository = self.get_repo(owner, repo)
            issue = repository.get_issue(number=int(number))
            payload = self._normalize_issue_payload(issue_data)
            issue.edit(**payload)
            logger.debug(f"Updated issue #{number} in {owner}/{repo}")
            return self._to_issue(issue)
        except GithubException as e:
            logger.error(f"Failed to update issue #{number} in {owner}/{repo}: {e}")
            raise
