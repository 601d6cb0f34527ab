import unittest
from datetime import datetime, timedelta, timezone

from app.predictions.feeding import predict_next_feeding
from app.predictions.pumping import predict_next_pumping
from app.predictions.registry import predict_all, predict_next
from app.predictions.sleep import predict_next_sleep, suggested_sleep_duration
from app.schemas import ActivityRecord, BabyProfile, ConfidenceLevel, PredictedActivity

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def record(kind: str, hours_ago: float, **fields) -> ActivityRecord:
    return ActivityRecord(type=kind, start_time=NOW - timedelta(hours=hours_ago), **fields)


def assert_close_time(testcase, actual: datetime, expected: datetime) -> None:
    testcase.assertLess(abs((actual - expected).total_seconds()), 1)


class EmptyHistoryTests(unittest.TestCase):
    def test_every_category_falls_back_to_three_hours_from_now(self):
        baby = BabyProfile(id="baby-1", first_name="Ada")
        predictions = predict_all([], baby, now=NOW)
        self.assertEqual(set(predictions), set(PredictedActivity))
        for prediction in predictions.values():
            self.assertEqual(prediction.next_time, NOW + timedelta(hours=3))
            self.assertEqual(prediction.confidence_level, ConfidenceLevel.LOW)
            self.assertFalse(prediction.is_overdue)
            self.assertIsNone(prediction.last_time)


class FeedingPredictionTests(unittest.TestCase):
    def test_single_gap_blends_with_age_default(self):
        prediction = predict_next_feeding([record("feeding", 1), record("feeding", 4)], None, now=NOW)
        self.assertAlmostEqual(prediction.interval_hours, 3.0)
        self.assertEqual(prediction.confidence_level, ConfidenceLevel.MEDIUM)
        assert_close_time(self, prediction.next_time, NOW + timedelta(hours=2))
        self.assertFalse(prediction.is_overdue)

    def test_three_gaps_give_high_confidence(self):
        activities = [record("feeding", hours) for hours in (1, 3, 5, 7)]
        prediction = predict_next_feeding(activities, None, now=NOW)
        self.assertAlmostEqual(prediction.interval_hours, 2.4)
        self.assertEqual(prediction.confidence_level, ConfidenceLevel.HIGH)
        self.assertEqual(prediction.calculation_details.source, "blended")
        self.assertEqual(prediction.calculation_details.data_points, 4)
        self.assertAlmostEqual(prediction.average_interval_hours, 2.0)

    def test_duplicate_timestamps_never_produce_zero_interval(self):
        prediction = predict_next_feeding([record("feeding", 1), record("feeding", 1)], None, now=NOW)
        self.assertGreater(prediction.interval_hours, 0)
        self.assertGreater(prediction.next_time, NOW - timedelta(hours=1))

    def test_aliases_count_and_unrelated_types_are_ignored(self):
        activities = [record("bottle", 1), record("solids", 2), record("nursing", 4)]
        prediction = predict_next_feeding(activities, None, now=NOW)
        self.assertEqual(prediction.calculation_details.data_points, 2)
        self.assertAlmostEqual(prediction.calculation_details.last_interval, 3.0)
        self.assertEqual(prediction.suggested_type, "bottle")

    def test_configured_interval_wins(self):
        activities = [record("feeding", hours) for hours in (1, 4, 7, 10)]
        prediction = predict_next_feeding(activities, None, feed_interval_hours=2, now=NOW)
        self.assertEqual(prediction.interval_hours, 2.0)
        self.assertEqual(prediction.calculation_details.source, "configured")
        self.assertEqual(prediction.confidence_level, ConfidenceLevel.HIGH)
        self.assertEqual(prediction.next_time, NOW + timedelta(hours=1))

    def test_configured_interval_without_history(self):
        prediction = predict_next_feeding([], None, feed_interval_hours=2.5, now=NOW)
        self.assertEqual(prediction.next_time, NOW + timedelta(hours=2.5))

    def test_skip_markers_are_excluded_from_history(self):
        activities = [
            record("feeding", 0.5, details={"skipped": True}),
            record("feeding", 2),
        ]
        prediction = predict_next_feeding(activities, None, now=NOW)
        self.assertEqual(prediction.last_time, NOW - timedelta(hours=2))
        self.assertEqual(prediction.recent_skip_time, NOW - timedelta(hours=0.5))
        self.assertEqual(prediction.calculation_details.data_points, 1)

    def test_scheduled_records_are_not_history(self):
        activities = [record("feeding", -1, is_scheduled=True), record("feeding", 1)]
        prediction = predict_next_feeding(activities, None, now=NOW)
        self.assertEqual(prediction.last_time, NOW - timedelta(hours=1))

    def test_overnight_gaps_are_ignored(self):
        prediction = predict_next_feeding([record("feeding", 1), record("feeding", 14)], None, now=NOW)
        self.assertEqual(prediction.confidence_level, ConfidenceLevel.LOW)
        self.assertEqual(prediction.interval_hours, 3.0)

    def test_suggested_amount_prefers_millilitres(self):
        activities = [record("bottle", 1, amount=4, amount_ml=120)]
        prediction = predict_next_feeding(activities, None, now=NOW)
        self.assertEqual(prediction.suggested_amount, 120)

    def test_overdue_newborn_feed(self):
        birth = NOW - timedelta(days=10)
        prediction = predict_next_feeding([record("feeding", 5)], birth, now=NOW)
        self.assertEqual(prediction.interval_hours, 3.0)
        self.assertEqual(prediction.next_time, NOW - timedelta(hours=2))
        self.assertTrue(prediction.is_overdue)
        self.assertEqual(prediction.overdue_minutes, 120)
        assert_close_time(self, prediction.suggested_recovery_time, NOW + timedelta(hours=1.8))


class SleepAndPumpingPredictionTests(unittest.TestCase):
    def test_sleep_gaps_may_span_a_night(self):
        prediction = predict_next_sleep([record("sleep", 1), record("sleep", 15)], None, now=NOW)
        self.assertEqual(prediction.confidence_level, ConfidenceLevel.MEDIUM)
        self.assertAlmostEqual(prediction.calculation_details.last_interval, 14.0)

    def test_suggested_sleep_duration_leans_on_recent_naps(self):
        naps = [record("sleep", hours, duration=90) for hours in (1, 4, 7)]
        self.assertEqual(suggested_sleep_duration(None, naps), 78)
        prediction = predict_next_sleep(naps, None, now=NOW)
        self.assertEqual(prediction.suggested_duration, 78)

    def test_suggested_sleep_duration_ignores_unrealistic_naps(self):
        naps = [record("sleep", 1, duration=600)]
        self.assertEqual(suggested_sleep_duration(None, naps), 60)

    def test_pumping_suggests_last_amount(self):
        sessions = [record("pumping", 1, amount_ml=120), record("pumping", 4, amount_ml=90)]
        prediction = predict_next_pumping(sessions, None, now=NOW)
        self.assertEqual(prediction.suggested_amount, 120)
        assert_close_time(self, prediction.next_time, NOW + timedelta(hours=2))


class RegistryTests(unittest.TestCase):
    def test_predict_next_uses_baby_feed_interval(self):
        baby = BabyProfile(id="baby-1", first_name="Ada", feed_interval_hours=2)
        prediction = predict_next(PredictedActivity.FEEDING, [record("feeding", 1)], baby, now=NOW)
        self.assertEqual(prediction.next_time, NOW + timedelta(hours=1))

    def test_birth_date_string_is_accepted(self):
        baby = BabyProfile.model_validate({"id": "baby-1", "first_name": "Ada", "birth_date": "2025-05-28"})
        prediction = predict_next(PredictedActivity.FEEDING, [], baby, now=NOW)
        self.assertEqual(prediction.calculation_details.age_based_interval, 2.5)


if __name__ == "__main__":
    unittest.main()
