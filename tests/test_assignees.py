import unittest

from devpool_sync.services.assignees import AssigneePropagator, AssigneeStatus
from devpool_sync.services.issue import Issue


def _mirror(number, body, assignee=None):
    return Issue(
        id=f"M{number}",
        number=number,
        url=f"https://github.com/ubiquity/devpool-directory/issues/{number}",
        title="T",
        labels=[f"id: P{number}"],
        body=body,
        assignee=assignee,
    )


class _PartnerStore:
    def __init__(self, assignees, failing=()):
        # (owner, repo, number) -> login or None
        self.assignees = assignees
        self.failing = set(failing)
        self.get_calls = []
        self.update_calls = []

    def get_issue(self, owner, repo, number):
        self.get_calls.append((owner, repo, number))
        if (owner, repo, number) in self.failing:
            raise LookupError(f"{owner}/{repo}#{number} not found")
        return Issue(
            id=f"P{number}",
            number=number,
            url=f"https://github.com/{owner}/{repo}/issues/{number}",
            title="T",
            assignee=self.assignees.get((owner, repo, number)),
        )

    def update_issue(self, owner, repo, number, issue_data):
        self.update_calls.append((owner, repo, number, issue_data))


class AssigneePropagationTests(unittest.TestCase):
    def _propagator(self, store, workers=1):
        return AssigneePropagator(store, "ubiquity", "devpool-directory", max_workers=workers)

    def test_assigns_partner_assignee_to_mirror(self):
        store = _PartnerStore({("o", "r", 3): "alice"})
        mirror = _mirror(11, "https://github.com/o/r/issues/3")

        results = self._propagator(store).propagate([mirror])

        self.assertEqual(results[0][0], mirror)
        self.assertEqual(results[0][1].status, AssigneeStatus.ASSIGNED)
        self.assertEqual(results[0][1].assignee, "alice")
        self.assertEqual(
            store.update_calls,
            [("ubiquity", "devpool-directory", 11, {"assignees": ["alice"]})],
        )

    def test_unassigned_partner_never_clears_mirror(self):
        store = _PartnerStore({})
        mirror = _mirror(11, "https://github.com/o/r/issues/3", assignee="bob")

        results = self._propagator(store).propagate([mirror])

        self.assertEqual(results[0][1].status, AssigneeStatus.UNASSIGNED)
        self.assertEqual(store.update_calls, [])

    def test_same_assignee_is_not_rewritten(self):
        store = _PartnerStore({("o", "r", 3): "alice"})
        mirror = _mirror(11, "https://github.com/o/r/issues/3", assignee="alice")

        results = self._propagator(store).propagate([mirror])

        self.assertEqual(results[0][1].status, AssigneeStatus.UNCHANGED)
        self.assertEqual(store.update_calls, [])

    def test_mirror_without_body_is_skipped(self):
        store = _PartnerStore({})
        results = self._propagator(store).propagate([_mirror(11, None), _mirror(12, "")])

        self.assertEqual([r.status for _, r in results], [AssigneeStatus.SKIPPED] * 2)
        self.assertEqual(store.get_calls, [])

    def test_failures_are_isolated_per_issue(self):
        store = _PartnerStore(
            {("o", "r", 1): "alice", ("o", "r", 4): "carol"},
            failing={("o", "r", 2)},
        )
        mirrors = [
            _mirror(10, "https://github.com/o/r/issues/1"),
            _mirror(11, "https://github.com/o/r/issues/2"),  # lookup fails
            _mirror(12, "not a url"),
            _mirror(13, "https://github.com/o/r"),  # no issue number
            _mirror(14, "https://github.com/o/r/issues/4"),
        ]

        with self.assertLogs("devpool_sync.services.assignees", level="WARNING"):
            results = self._propagator(store, workers=3).propagate(mirrors)

        self.assertEqual([m.number for m, _ in results], [10, 11, 12, 13, 14])
        self.assertEqual(
            [r.status for _, r in results],
            [
                AssigneeStatus.ASSIGNED,
                AssigneeStatus.FAILED,
                AssigneeStatus.FAILED,
                AssigneeStatus.FAILED,
                AssigneeStatus.ASSIGNED,
            ],
        )
        self.assertIn("not found", results[1][1].error)
        self.assertEqual(sorted(c[2] for c in store.update_calls), [10, 14])

    def test_empty_batch(self):
        self.assertEqual(self._propagator(_PartnerStore({})).propagate([]), [])


if __name__ == "__main__":
    unittest.main()
