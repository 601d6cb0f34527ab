import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.overdue_check import UserNotFoundError, check_overdue_activities, evaluate_baby
from app.schemas import ActivityRecord, BabyProfile, PredictedActivity, UserAlarmPreferences

from .supabase_fakes import FakeSupabase, activity_row, baby_row, user_row

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
BIRTH = (NOW - timedelta(days=10)).date().isoformat()


def test_all_alarms_disabled_reads_only_the_user_row():
    supabase = FakeSupabase(select_queue={"users": [[user_row()]]})
    result = asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))
    assert result == []
    assert supabase.tables_read() == ["users"]


def test_missing_user_row_raises():
    supabase = FakeSupabase()
    with pytest.raises(UserNotFoundError):
        asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))


def test_no_family_membership_returns_empty_list():
    supabase = FakeSupabase(select_queue={"users": [[user_row(alarm_feeding_enabled=True)]]})
    result = asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))
    assert result == []
    assert supabase.tables_read() == ["users", "family_members"]


def test_overdue_feeding_is_reported():
    baby = baby_row(birth_date=BIRTH)
    supabase = FakeSupabase(
        select_queue={
            "users": [[user_row(alarm_feeding_enabled=True)]],
            "family_members": [[{"family_id": "family-1"}]],
            "babies": [[baby]],
            "activities": [[activity_row("feeding", NOW - timedelta(hours=5))]],
        }
    )
    result = asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))
    assert len(result) == 1
    overdue = result[0]
    assert overdue.activity_type == PredictedActivity.FEEDING
    assert overdue.baby_id == baby["id"]
    assert overdue.baby_name == "Ada"
    assert overdue.overdue_minutes == 120
    assert overdue.next_expected_time == NOW - timedelta(hours=2)


def test_user_threshold_can_keep_activity_quiet():
    supabase = FakeSupabase(
        select_queue={
            "users": [[user_row(alarm_feeding_enabled=True, alarm_feeding_threshold=180)]],
            "family_members": [[{"family_id": "family-1"}]],
            "babies": [[baby_row(birth_date=BIRTH)]],
            "activities": [[activity_row("feeding", NOW - timedelta(hours=5))]],
        }
    )
    assert asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW)) == []


def test_activities_are_fetched_once_per_baby():
    supabase = FakeSupabase(
        select_queue={
            "users": [[
                user_row(
                    alarm_feeding_enabled=True,
                    alarm_sleep_enabled=True,
                    alarm_diaper_enabled=True,
                    alarm_pumping_enabled=True,
                )
            ]],
            "family_members": [[{"family_id": "family-1"}, {"family_id": "family-1"}]],
            "babies": [[baby_row(first_name="Ada"), baby_row(first_name="Grace")]],
        }
    )
    result = asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))
    assert result == []
    assert supabase.tables_read().count("activities") == 2
    family_call = next(call for call in supabase.calls if call[1] == "babies")
    assert family_call[2]["family_id"] == "in.(family-1)"


def test_fetch_failure_propagates():
    supabase = FakeSupabase(
        select_queue={
            "users": [[user_row(alarm_diaper_enabled=True)]],
            "family_members": [[{"family_id": "family-1"}]],
            "babies": [[baby_row()]],
        },
        failures={"activities": RuntimeError("connection reset")},
    )
    with pytest.raises(RuntimeError):
        asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))


def test_malformed_activity_rows_are_skipped():
    supabase = FakeSupabase(
        select_queue={
            "users": [[user_row(alarm_feeding_enabled=True)]],
            "family_members": [[{"family_id": "family-1"}]],
            "babies": [[baby_row(birth_date=BIRTH)]],
            "activities": [[
                {"id": "broken", "type": "feeding", "start_time": "not-a-time"},
                activity_row("feeding", NOW - timedelta(hours=5)),
            ]],
        }
    )
    result = asyncio.run(check_overdue_activities(supabase, "user-1", now=NOW))
    assert [item.overdue_minutes for item in result] == [120]


def test_evaluate_baby_checks_only_enabled_categories():
    baby = BabyProfile(id="baby-1", first_name="Ada")
    activities = [
        ActivityRecord(type="feeding", start_time=NOW - timedelta(hours=6)),
        ActivityRecord(type="diaper", start_time=NOW - timedelta(hours=6)),
    ]
    preferences = UserAlarmPreferences(alarm_diaper_enabled=True)
    result = evaluate_baby(baby, activities, preferences, now=NOW)
    assert [item.activity_type for item in result] == [PredictedActivity.DIAPER]
    # sparse diaper history uses 85% of the 3h default, so the change was due 3h27m ago
    assert result[0].overdue_minutes == 207


def test_threshold_boundary_is_exclusive():
    baby = BabyProfile(id="baby-1", first_name="Ada")
    activities = [ActivityRecord(type="feeding", start_time=NOW - timedelta(hours=3, minutes=30))]
    exactly = UserAlarmPreferences(alarm_feeding_enabled=True, alarm_feeding_threshold=30)
    assert evaluate_baby(baby, activities, exactly, now=NOW) == []
    tighter = UserAlarmPreferences(alarm_feeding_enabled=True, alarm_feeding_threshold=29)
    assert len(evaluate_baby(baby, activities, tighter, now=NOW)) == 1
