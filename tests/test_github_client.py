import unittest
from types import SimpleNamespace
from unittest.mock import Mock

from github import GithubException


def _raw_issue(number, pull_request=None, assignee=None, labels=("bug",), state="open"):
    issue = Mock()
    issue.node_id = f"I_{number}"
    issue.number = number
    issue.html_url = f"https://github.com/o/r/issues/{number}"
    issue.title = f"Issue {number}"
    issue.state = state
    issue.labels = [SimpleNamespace(name=n) for n in labels]
    issue.body = None
    issue.assignee = SimpleNamespace(login=assignee) if assignee else None
    issue.pull_request = pull_request
    return issue


class GitHubClientTests(unittest.TestCase):
    def _client(self, repo):
        from devpool_sync.services.github_client import GitHubClient

        # Avoid running GitHubClient.__init__; patch get_repo.
        client = GitHubClient.__new__(GitHubClient)
        client.get_repo = lambda owner, name: repo
        return client

    def test_list_issues_requests_all_states_and_drops_pull_requests(self):
        repo = Mock()
        repo.get_issues.return_value = [
            _raw_issue(1, assignee="alice", labels=("Price: 5",)),
            _raw_issue(2, pull_request=SimpleNamespace(url="https://api.github.com/pulls/2")),
            _raw_issue(3, state="closed", labels=()),
        ]

        issues = self._client(repo).list_issues("o", "r")

        repo.get_issues.assert_called_once_with(state="all")
        self.assertEqual([i.number for i in issues], [1, 3])
        first = issues[0]
        self.assertEqual(first.id, "I_1")
        self.assertEqual(first.url, "https://github.com/o/r/issues/1")
        self.assertEqual(first.labels, ["Price: 5"])
        self.assertEqual(first.assignee, "alice")
        self.assertEqual(issues[1].state, "closed")
        self.assertIsNone(issues[1].assignee)

    def test_create_issue_passes_title_body_labels(self):
        repo = Mock()
        repo.create_issue.return_value = _raw_issue(7)

        created = self._client(repo).create_issue(
            "ubiquity",
            "devpool-directory",
            {"title": "T", "body": "https://github.com/o/r/issues/1", "labels": ["id: X"]},
        )

        repo.create_issue.assert_called_once_with(
            title="T", body="https://github.com/o/r/issues/1", labels=["id: X"]
        )
        self.assertEqual(created.number, 7)

    def test_update_issue_only_sends_set_fields(self):
        raw = _raw_issue(5)
        repo = Mock()
        repo.get_issue.return_value = raw

        self._client(repo).update_issue("ubiquity", "devpool-directory", 5, {"assignees": ["bob"], "title": None})

        repo.get_issue.assert_called_once_with(number=5)
        raw.edit.assert_called_once_with(assignees=["bob"])

    def test_errors_are_logged_and_reraised(self):
        repo = Mock()
        repo.get_issue.side_effect = GithubException(404, {"message": "Not Found"}, None)

        with self.assertLogs("devpool_sync.services.github_client", level="ERROR"):
            with self.assertRaises(GithubException):
                self._client(repo).get_issue("o", "r", 99)

    def test_get_repo_is_cached(self):
        from devpool_sync.services.github_client import GitHubClient

        client = GitHubClient.__new__(GitHubClient)
        client.gh = Mock()
        client._repos = {}

        first = client.get_repo("o", "r")
        second = client.get_repo("o", "r")

        self.assertIs(first, second)
        client.gh.get_repo.assert_called_once_with("o/r")


if __name__ == "__main__":
    unittest.main()
