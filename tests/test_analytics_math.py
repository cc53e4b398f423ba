"""Pure analytics helpers: rates, averages and daily trends."""

from datetime import UTC, datetime, timedelta

from vortexboard.services.analytics import (
    average_completion_days,
    completion_rate,
    daily_trend,
    on_time_rate,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def test_completion_rate_with_no_tasks_is_zero():
    assert completion_rate(0, 0) == 0.0


def test_completion_rate_three_of_four():
    assert completion_rate(3, 4) == 75.0


def test_completion_rate_rounds_to_two_decimals():
    assert completion_rate(1, 3) == 33.33


def test_average_completion_days():
    spans = [
        (NOW, NOW + timedelta(days=1)),
        (NOW, NOW + timedelta(days=2)),
        (NOW, None),
    ]
    assert average_completion_days(spans) == 1.5


def test_average_completion_days_without_completed_tasks():
    assert average_completion_days([(NOW, None)]) == 0.0
    assert average_completion_days([]) == 0.0


def test_average_completion_accepts_naive_timestamps():
    naive = NOW.replace(tzinfo=None)
    assert average_completion_days([(naive, NOW + timedelta(hours=12))]) == 0.5


def test_daily_trend_groups_by_utc_day_ascending():
    timestamps = [
        datetime(2024, 3, 2, 23, 30, tzinfo=UTC),
        datetime(2024, 3, 1, 8, 0, tzinfo=UTC),
        datetime(2024, 3, 2, 0, 15, tzinfo=UTC),
        None,
    ]
    assert daily_trend(timestamps) == [
        {"date": "2024-03-01", "count": 1},
        {"date": "2024-03-02", "count": 2},
    ]


def test_daily_trend_omits_empty_days():
    timestamps = [datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 5, tzinfo=UTC)]
    assert [entry["date"] for entry in daily_trend(timestamps)] == [
        "2024-03-01",
        "2024-03-05",
    ]


def test_on_time_rate_uses_each_tasks_own_due_date():
    pairs = [
        (NOW, NOW + timedelta(days=1)),  # early
        (NOW, NOW),  # exactly on the due date
        (NOW, NOW - timedelta(days=1)),  # late
        (NOW, None),  # no due date
        (None, NOW),  # not completed, ignored
    ]
    assert on_time_rate(pairs) == 75.0


def test_on_time_rate_without_completions():
    assert on_time_rate([(None, NOW)]) == 0.0
