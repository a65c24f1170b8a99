"""
Reward stream schedules.

A schedule is a piecewise-linear cumulative emission curve through
``(timestamp_i, cumulative_i)`` checkpoints. Interpolation truncates, and
every checkpoint is hit exactly, so the emission over the whole schedule
equals its budget with no rounding loss.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Sequence

from pydantic import ValidationError as SchemaValidationError

from ..input_validation_schemas import RewardScheduleInput
from ..staking_exceptions import InvalidScheduleError, UnknownStreamError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardSchedule:
    """Immutable cumulative emission curve of one reward stream."""

    times: tuple[int, ...]
    cumulative: tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.times) < 2 or len(self.times) != len(self.cumulative):
            raise InvalidScheduleError("Schedule needs at least two aligned checkpoints")
        if any(b <= a for a, b in zip(self.times, self.times[1:])):
            raise InvalidScheduleError("Schedule times must be strictly increasing")
        if self.cumulative[0] != 0 or any(b < a for a, b in zip(self.cumulative, self.cumulative[1:])):
            raise InvalidScheduleError("Cumulative rewards must start at zero and never decrease")

    @classmethod
    def from_remaining(cls, schedule_times: Sequence[int], schedule_rewards: Sequence[int]) -> "RewardSchedule":
        """
        Build a schedule from "rewards remaining from this time on" amounts.

        ``schedule_rewards[i]`` is what is still to be emitted at
        ``schedule_times[i]``; the list is non-increasing and ends at zero.
        """
        try:
            parsed = RewardScheduleInput(
                schedule_times=list(schedule_times),
                schedule_rewards=list(schedule_rewards),
            )
        except SchemaValidationError as exc:
            raise InvalidScheduleError(
                f"Invalid reward schedule: {exc.errors()[0]['msg']}",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        budget = parsed.schedule_rewards[0]
        return cls(
            times=tuple(parsed.schedule_times),
            cumulative=tuple(budget - r for r in parsed.schedule_rewards),
        )

    @property
    def start(self) -> int:
        return self.times[0]

    @property
    def end(self) -> int:
        return self.times[-1]

    @property
    def total_budget(self) -> int:
        return self.cumulative[-1]

    def cumulative_at(self, at_time: int) -> int:
        """Cumulative emission at ``at_time``."""
        if at_time <= self.start:
            return 0
        if at_time >= self.end:
            return self.total_budget
        i = bisect.bisect_right(self.times, at_time) - 1
        t0, t1 = self.times[i], self.times[i + 1]
        c0, c1 = self.cumulative[i], self.cumulative[i + 1]
        return c0 + (c1 - c0) * (at_time - t0) // (t1 - t0)

    def emission(self, from_time: int, to_time: int) -> int:
        if from_time > to_time:
            raise ValidationError(f"from_time {from_time} is after to_time {to_time}")
        return self.cumulative_at(to_time) - self.cumulative_at(from_time)

    def rate(self, at_time: int) -> int:
        """Per-second emission (floor) of the segment containing ``at_time``."""
        if at_time < self.start or at_time >= self.end:
            return 0
        i = bisect.bisect_right(self.times, at_time) - 1
        return (self.cumulative[i + 1] - self.cumulative[i]) // (self.times[i + 1] - self.times[i])


class RewardStreamScheduler:
    """Registry of reward schedules keyed by stream id."""

    def __init__(self) -> None:
        self._schedules: dict[int, RewardSchedule] = {}

    def add_schedule(self, stream_id: int, schedule: RewardSchedule) -> None:
        """Register the schedule of a stream. Schedules are never replaced."""
        if stream_id in self._schedules:
            raise InvalidScheduleError(f"Stream {stream_id} already has a schedule")
        self._schedules[stream_id] = schedule
        logger.debug(
            "Reward schedule registered",
            extra={
                "event": "scheduler.schedule_added",
                "stream_id": stream_id,
                "start": schedule.start,
                "end": schedule.end,
                "budget": schedule.total_budget,
            }
        )

    def has_stream(self, stream_id: int) -> bool:
        return stream_id in self._schedules

    def get_schedule(self, stream_id: int) -> RewardSchedule:
        schedule = self._schedules.get(stream_id)
        if schedule is None:
            raise UnknownStreamError(f"Unknown reward stream {stream_id}", details={"stream_id": stream_id})
        return schedule

    def scheduled_emission(self, stream_id: int, from_time: int, to_time: int) -> int:
        """Reward emitted by ``stream_id`` between two timestamps."""
        return self.get_schedule(stream_id).emission(from_time, to_time)

    def instantaneous_rate(self, stream_id: int, at_time: int) -> int:
        """Emission slope of ``stream_id`` at ``at_time``; zero outside the schedule."""
        return self.get_schedule(stream_id).rate(at_time)

    def total_budget(self, stream_id: int) -> int:
        return self.get_schedule(stream_id).total_budget

    def cumulative_at(self, stream_id: int, at_time: int) -> int:
        return self.get_schedule(stream_id).cumulative_at(at_time)
