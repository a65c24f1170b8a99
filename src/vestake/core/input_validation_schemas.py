from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from . import config


class WeightParametersInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_weight_shares: StrictInt = Field(ge=0)
    min_weight_shares: StrictInt = Field(ge=0)
    max_weight_penalty: StrictInt = Field(ge=0)
    min_weight_penalty: StrictInt = Field(ge=0)
    penalty_weight_multiplier: StrictInt = Field(ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "WeightParametersInput":
        if self.max_weight_shares < self.min_weight_shares:
            raise ValueError("max_weight_shares must be >= min_weight_shares")
        if self.max_weight_penalty < self.min_weight_penalty:
            raise ValueError("max_weight_penalty must be >= min_weight_penalty")
        return self


class StakingPropertiesInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    tau: StrictInt = Field(gt=0)
    lock_share_coef: StrictInt = Field(ge=0)
    lock_period_coef: StrictInt = Field(gt=0)
    max_locks: StrictInt = Field(gt=0, le=config.MAX_LOCKS_CEILING)


class RewardScheduleInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    schedule_times: list[StrictInt] = Field(min_length=2)
    schedule_rewards: list[StrictInt] = Field(min_length=2)

    @model_validator(mode="after")
    def check_schedule(self) -> "RewardScheduleInput":
        times, rewards = self.schedule_times, self.schedule_rewards
        if len(times) != len(rewards):
            raise ValueError("schedule_times and schedule_rewards must have equal length")
        if any(t < 0 for t in times):
            raise ValueError("schedule times must be non-negative")
        if any(later <= earlier for earlier, later in zip(times, times[1:])):
            raise ValueError("schedule times must be strictly increasing")
        if any(r < 0 for r in rewards):
            raise ValueError("schedule rewards must be non-negative")
        if any(later > earlier for earlier, later in zip(rewards, rewards[1:])):
            raise ValueError("remaining rewards must be non-increasing")
        if rewards[-1] != 0:
            raise ValueError("remaining rewards must end at zero")
        if rewards[0] == 0:
            raise ValueError("schedule must distribute a positive budget")
        return self
