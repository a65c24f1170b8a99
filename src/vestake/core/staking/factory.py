"""
Staking factory.

Keeps a registry of named staking templates (StakingCore subclasses) and
stamps out initialized instances bound to a vault, a base token, a voting
token, weight parameters and a main reward schedule.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from ..contracts.erc20 import ERC20Token, derive_address, unique_address
from ..contracts.vote_token import VoteToken
from ..defi.access_control import Role
from ..events import STAKING_CREATED, EventLog
from ..staking_exceptions import (
    AlreadyInitializedError,
    DuplicateTemplateError,
    NotInitializedError,
    UnauthorizedError,
    UnknownTemplateError,
    ValidationError,
)
from ..staking_metrics import StakingMetrics
from .scheduler import RewardSchedule
from .staking import StakingCore
from .vault import Vault
from .weights import (
    StakingProperties,
    WeightParameters,
    parse_staking_properties,
    parse_weight_parameters,
)

logger = logging.getLogger(__name__)


def template_key(name: str) -> str:
    """Hash a human-readable template name into a registry key."""
    return "0x" + hashlib.sha3_256(name.encode()).hexdigest()


@dataclass
class StakingFactory:
    """
    Factory for deploying staking instances from registered templates.

    Templates are append-only: a key, once registered, always resolves to
    the same implementation.
    """

    name: str = "vestake Staking Factory"
    address: str = ""
    owner: str = ""
    initialized: bool = False

    # template id -> implementation
    templates: dict[str, type[StakingCore]] = field(default_factory=dict)

    # instance address -> instance
    stakings: dict[str, StakingCore] = field(default_factory=dict)

    # Statistics
    total_stakings: int = 0

    events: EventLog = field(default_factory=EventLog)

    # Passed to every instance
    time_provider: Callable[[], float] | None = None
    metrics: StakingMetrics | None = None

    def __post_init__(self) -> None:
        if not self.address:
            self.address = unique_address("staking_factory", self.name)
        self.address = self.address.lower()

    def init_staking_factory(self, caller: str) -> None:
        """One-time setup; ``caller`` becomes the factory owner."""
        if self.initialized:
            raise AlreadyInitializedError("StakingFactory is already initialized")
        self.owner = caller.lower()
        self.initialized = True

    def add_staking_template(
        self,
        caller: str,
        template_id: str,
        implementation: type[StakingCore],
    ) -> None:
        """
        Register ``implementation`` under ``template_id`` (owner only).

        Raises:
            DuplicateTemplateError: If the key is already registered
        """
        self._require_owner(caller)
        if template_id in self.templates:
            raise DuplicateTemplateError(
                f"Template {template_id} is already registered",
                details={"template_id": template_id},
            )
        if not (isinstance(implementation, type) and issubclass(implementation, StakingCore)):
            raise ValidationError(f"Template implementation must be a StakingCore subclass, got {implementation!r}")
        self.templates[template_id] = implementation

        logger.info(
            "Staking template added",
            extra={
                "event": "factory.template_added",
                "template_id": template_id[:18],
                "implementation": implementation.__name__,
            }
        )

    def create_staking(
        self,
        caller: str,
        template_id: str,
        vault: Vault,
        base_token: ERC20Token,
        voting_token: VoteToken,
        weight_params: WeightParameters | Mapping[str, Any],
        rewards_admin: str,
        schedule_times: Sequence[int],
        schedule_rewards: Sequence[int],
        staking_props: StakingProperties | Mapping[str, Any],
    ) -> StakingCore:
        """
        Deploy and initialize a staking instance from a template.

        The caller must administer ``vault``: the new instance is authorized
        there as a rewards operator. ``rewards_admin`` funds the main stream
        budget and must have approved the vault for it.

        Raises:
            UnknownTemplateError: If template_id is not registered
            InvalidScheduleError: If the schedule is malformed
            InvalidWeightBoundsError: If weight parameters are out of range
            UnauthorizedError: If caller is not the vault admin
        """
        self._require_initialized()
        implementation = self.templates.get(template_id)
        if implementation is None:
            raise UnknownTemplateError(
                f"Unknown staking template {template_id}",
                details={"template_id": template_id},
            )
        weight = parse_weight_parameters(weight_params)
        props = parse_staking_properties(staking_props)
        RewardSchedule.from_remaining(schedule_times, schedule_rewards)
        if not vault.access.has_role(Role.ADMIN, caller):
            raise UnauthorizedError(f"Caller {caller} does not administer vault {vault.address}")

        address = derive_address("staking", self.address, self.total_stakings)
        instance = implementation(address, time_provider=self.time_provider, metrics=self.metrics)

        vault.add_rewards_operator(caller, instance.address)
        try:
            instance.initialize_staking(
                caller,
                vault,
                base_token,
                voting_token,
                weight,
                rewards_admin,
                schedule_times,
                schedule_rewards,
                props,
            )
        except Exception:
            vault.remove_rewards_operator(caller, instance.address)
            raise

        self.stakings[instance.address] = instance
        self.total_stakings += 1

        self.events.emit(
            STAKING_CREATED,
            self.address,
            account=caller.lower(),
            staking=instance.address,
            template_id=template_id,
            vault=vault.address,
            base_token=base_token.address,
            voting_token=voting_token.address,
        )

        logger.info(
            "Staking instance created",
            extra={
                "event": "factory.staking_created",
                "staking": instance.address[:10],
                "template": implementation.__name__,
                "vault": vault.address[:10],
                "base_token": base_token.symbol,
            }
        )

        return instance

    def get_staking(self, address: str) -> StakingCore | None:
        """Get a deployed staking instance by address."""
        return self.stakings.get(address.lower())

    def list_stakings(self) -> list[dict]:
        """List all deployed staking instances."""
        return [
            {
                "address": address,
                "template": type(instance).__name__,
                "base_token": instance.base_token.address,
                "total_stream_shares": instance.total_stream_shares,
            }
            for address, instance in self.stakings.items()
        ]

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError("StakingFactory is not initialized")

    def _require_owner(self, caller: str) -> None:
        self._require_initialized()
        if caller.lower() != self.owner:
            raise UnauthorizedError(f"Caller {caller} is not the factory owner")
