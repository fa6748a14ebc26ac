import unittest
from unittest.mock import Mock, patch


class SyncSchedulerTests(unittest.TestCase):
    def test_schedule_registers_single_non_overlapping_job(self):
        from devpool_sync.scheduler import JOB_ID, SyncScheduler

        sched = SyncScheduler(interval_minutes=15)
        sched.scheduler = Mock()

        sched.schedule()

        kwargs = sched.scheduler.add_job.call_args.kwargs
        self.assertEqual(kwargs["id"], JOB_ID)
        self.assertEqual(kwargs["max_instances"], 1)
        self.assertTrue(kwargs["replace_existing"])

    def test_job_failure_is_logged_and_session_closed(self):
        from devpool_sync.scheduler import SyncScheduler

        db = Mock()
        with patch("devpool_sync.scheduler.SessionLocal", return_value=db), patch(
            "devpool_sync.scheduler.run_configured_sync", side_effect=RuntimeError("boom")
        ):
            with self.assertLogs("devpool_sync.scheduler", level="ERROR") as logs:
                SyncScheduler()._sync_job()

        self.assertIn("boom", "\n".join(logs.output))
        db.close.assert_called_once()

    def test_job_skips_while_another_sync_runs(self):
        from devpool_sync.scheduler import SyncAlreadyRunning, SyncScheduler

        db = Mock()
        with patch("devpool_sync.scheduler.SessionLocal", return_value=db), patch(
            "devpool_sync.scheduler.run_configured_sync",
            side_effect=SyncAlreadyRunning("sync already running"),
        ):
            with self.assertLogs("devpool_sync.scheduler", level="WARNING") as logs:
                SyncScheduler()._sync_job()

        self.assertIn("Skipping scheduled sync", "\n".join(logs.output))
        self.assertFalse(any(r.levelname == "ERROR" for r in logs.records))
        db.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
