"""
Tests for reward schedules and the stream scheduler.
"""

import pytest

from vestake.core.staking.scheduler import RewardSchedule, RewardStreamScheduler
from vestake.core.staking_exceptions import (
    InvalidScheduleError,
    UnknownStreamError,
    ValidationError,
)

ONE_YEAR = 31556926
START = 1_700_000_000


def four_year_schedule():
    times = [START + k * ONE_YEAR for k in range(5)]
    return RewardSchedule.from_remaining(times, [2000, 1000, 500, 250, 0])


class TestRewardSchedule:
    """Cumulative emission curve behaviour."""

    def test_remaining_rewards_become_cumulative(self):
        schedule = four_year_schedule()

        assert schedule.cumulative == (0, 1000, 1500, 1750, 2000)
        assert schedule.total_budget == 2000
        assert schedule.start == START
        assert schedule.end == START + 4 * ONE_YEAR

    def test_checkpoints_are_exact(self):
        schedule = four_year_schedule()

        for t, c in zip(schedule.times, schedule.cumulative):
            assert schedule.cumulative_at(t) == c

    def test_nothing_emitted_before_start(self):
        schedule = four_year_schedule()

        assert schedule.cumulative_at(START - 1000) == 0
        assert schedule.emission(0, START) == 0

    def test_full_budget_after_end(self):
        schedule = four_year_schedule()

        assert schedule.cumulative_at(START + 10 * ONE_YEAR) == 2000
        assert schedule.emission(START + 5 * ONE_YEAR, START + 6 * ONE_YEAR) == 0

    def test_linear_within_segment(self):
        schedule = four_year_schedule()

        assert schedule.cumulative_at(START + ONE_YEAR // 2) == 500
        assert schedule.cumulative_at(START + ONE_YEAR + ONE_YEAR // 2) == 1250

    def test_interpolation_truncates(self):
        schedule = RewardSchedule.from_remaining([0, 3], [10, 0])

        assert schedule.cumulative_at(1) == 3
        assert schedule.cumulative_at(2) == 6

    def test_emission_is_additive(self):
        schedule = four_year_schedule()
        a, b, c = START + 12345, START + ONE_YEAR + 777, START + 3 * ONE_YEAR + 1

        assert schedule.emission(a, b) + schedule.emission(b, c) == schedule.emission(a, c)

    def test_whole_schedule_emits_budget(self):
        schedule = four_year_schedule()

        assert schedule.emission(START, schedule.end) == schedule.total_budget

    def test_reversed_interval_rejected(self):
        schedule = four_year_schedule()

        with pytest.raises(ValidationError):
            schedule.emission(START + 10, START)

    def test_rate_per_segment(self):
        schedule = RewardSchedule.from_remaining([0, 100, 300], [1000, 500, 0])

        assert schedule.rate(0) == 5
        assert schedule.rate(99) == 5
        # segments are half-open, the boundary belongs to the next one
        assert schedule.rate(100) == 2
        assert schedule.rate(300) == 0
        assert schedule.rate(-1) == 0

    def test_flat_segment_emits_nothing(self):
        schedule = RewardSchedule.from_remaining([0, 100, 200, 300], [1000, 500, 500, 0])

        assert schedule.emission(100, 200) == 0
        assert schedule.rate(150) == 0


class TestScheduleValidation:
    """Malformed schedules are rejected."""

    @pytest.mark.parametrize(
        "times,rewards",
        [
            ([0], [0]),
            ([0, 10, 20], [100, 0]),
            ([0, 10, 10], [100, 50, 0]),
            ([10, 0], [100, 0]),
            ([0, 10, 20], [100, 150, 0]),
            ([0, 10], [100, 5]),
            ([0, 10], [0, 0]),
            ([0, 10], [100, -1]),
            ([0, 10], [100.5, 0]),
        ],
    )
    def test_invalid_schedule(self, times, rewards):
        with pytest.raises(InvalidScheduleError):
            RewardSchedule.from_remaining(times, rewards)

    def test_direct_construction_checks_curve(self):
        with pytest.raises(InvalidScheduleError):
            RewardSchedule(times=(0, 10), cumulative=(5, 10))


class TestRewardStreamScheduler:
    """Schedule registry keyed by stream id."""

    def test_add_and_query(self):
        scheduler = RewardStreamScheduler()
        scheduler.add_schedule(0, four_year_schedule())
        scheduler.add_schedule(1, RewardSchedule.from_remaining([START, START + 100], [100, 0]))

        assert scheduler.has_stream(0)
        assert scheduler.has_stream(1)
        assert not scheduler.has_stream(2)
        assert scheduler.total_budget(0) == 2000
        assert scheduler.scheduled_emission(1, START, START + 50) == 50
        assert scheduler.instantaneous_rate(1, START + 10) == 1
        assert scheduler.cumulative_at(0, START + ONE_YEAR) == 1000

    def test_schedule_cannot_be_replaced(self):
        scheduler = RewardStreamScheduler()
        scheduler.add_schedule(0, four_year_schedule())

        with pytest.raises(InvalidScheduleError):
            scheduler.add_schedule(0, four_year_schedule())

    def test_unknown_stream(self):
        scheduler = RewardStreamScheduler()

        assert not scheduler.has_stream(3)
        with pytest.raises(UnknownStreamError):
            scheduler.scheduled_emission(3, START, START + 1)
