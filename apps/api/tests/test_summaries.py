import unittest
from datetime import datetime, timedelta, timezone

from app.schemas import ActivityRecord, PredictedActivity
from app.summaries import compare_windows, predicted_interval_for_date, summarize_window, todays_summary

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def record(kind: str, hours_ago: float, **fields) -> ActivityRecord:
    return ActivityRecord(type=kind, start_time=NOW - timedelta(hours=hours_ago), **fields)


class SummaryTests(unittest.TestCase):
    def test_summarize_window_totals(self):
        activities = [
            record("bottle", 1, amount_ml=120),
            record("nursing", 3, duration=20),
            record("feeding", 5, amount=90),
            record("feeding", 2, details={"skipped": True}),
            record("sleep", 4, duration=60),
        ]
        summary = summarize_window(activities, PredictedActivity.FEEDING, NOW - timedelta(hours=6), NOW)
        self.assertEqual(summary["count"], 3)
        self.assertIsInstance(summary["count"], int)
        self.assertEqual(summary["total_amount_ml"], 210)
        self.assertEqual(summary["total_duration_minutes"], 20)
        self.assertAlmostEqual(summary["average_interval_hours"], 2.0)

    def test_todays_summary_starts_at_midnight(self):
        activities = [record("wet", 1), record("dirty", 11), record("diaper", 13)]
        summary = todays_summary(activities, PredictedActivity.DIAPER, NOW)
        self.assertEqual(summary["count"], 2)
        self.assertEqual(summary["daily_goal"], 8)

    def test_todays_summary_has_no_goal_for_pumping(self):
        summary = todays_summary([record("pumping", 1, amount_ml=80)], PredictedActivity.PUMPING, NOW)
        self.assertNotIn("daily_goal", summary)
        self.assertEqual(summary["total_amount_ml"], 80)

    def test_compare_windows(self):
        activities = [
            record("sleep", 2, duration=90),
            record("sleep", 6, duration=60),
            record("sleep", 30, duration=45),
        ]
        result = compare_windows(activities, PredictedActivity.SLEEP, now=NOW)
        self.assertEqual(result["current"]["count"], 2)
        self.assertEqual(result["baseline"]["count"], 1)
        self.assertEqual(result["metrics"]["total_duration_minutes"]["delta"], 105)

    def test_predicted_interval_for_date_ignores_later_history(self):
        activities = [record("feeding", hours) for hours in (1, 3, 5, 24, 27)]
        result = predicted_interval_for_date(activities, NOW - timedelta(hours=20), None)
        self.assertEqual(result["data_points"], 1)
        self.assertIsInstance(result["data_points"], int)
        self.assertAlmostEqual(result["average_interval_hours"], 3.0)
        self.assertAlmostEqual(result["predicted_interval_hours"], 3.0)


if __name__ == "__main__":
    unittest.main()
