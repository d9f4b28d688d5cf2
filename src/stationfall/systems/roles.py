"""
Hidden-role assignment.

Roles are assigned once per match with an unbiased Fisher-Yates shuffle over
the populated NPCs. Connected players get their roles separately: one is the
protagonist, the rest (and every late joiner) are infiltrators.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from ..errors import DuplicateRoleAssignment
from ..state.event_bus import EventBus, EventType
from ..state.schema import PlayerRole
from ..tools.shuffle import fisher_yates

if TYPE_CHECKING:
    from ..state.schema import PopulationMember

logger = logging.getLogger(__name__)


class RoleAssignor:
    """
    Assigns hidden roles over the population.

    Uses the session's general-purpose generator, never a zone seed.
    """

    def __init__(self, bus: EventBus, rng: random.Random | None = None):
        self._bus = bus
        self._rng = rng or random.Random()
        self._assigned: list[str] | None = None

    @property
    def assigned_ids(self) -> list[str]:
        return list(self._assigned or [])

    @property
    def has_assigned(self) -> bool:
        return self._assigned is not None

    def assign_roles(self, population: list["PopulationMember"], target_count: int) -> int:
        """
        Flag min(target_count, len(population)) members as hidden.

        A second call before reset() is rejected: the previous assignment is
        kept and its count returned, without reshuffling.

        Returns:
            Number of members flagged
        """
        try:
            self._check_not_assigned()
        except DuplicateRoleAssignment as e:
            logger.warning(str(e))
            return len(self._assigned or [])

        candidates = list(population)
        fisher_yates(candidates, self._rng)

        chosen = candidates[:max(0, min(target_count, len(candidates)))]
        self._assigned = []
        for member in chosen:
            member.hidden_role = True
            self._assigned.append(member.id)
            self._bus.emit(EventType.ROLE_ASSIGNED, entity_id=member.id, is_hidden=True)

        logger.info(f"Assigned {len(chosen)} hidden roles among {len(candidates)} members")
        return len(chosen)

    def _check_not_assigned(self) -> None:
        if self._assigned is not None:
            raise DuplicateRoleAssignment(len(self._assigned))

    def pick_protagonist(self, player_ids: list[str]) -> str | None:
        """Choose the protagonist uniformly among connected players."""
        if not player_ids:
            return None
        return player_ids[self._rng.randrange(len(player_ids))]

    def assign_player_role(self, member: "PopulationMember", role: PlayerRole) -> None:
        """Give a connected player their role. Infiltrators count as hidden."""
        member.player_role = role
        member.hidden_role = role == PlayerRole.INFILTRATOR
        self._bus.emit(
            EventType.ROLE_ASSIGNED,
            entity_id=member.id,
            is_hidden=member.hidden_role,
            role=role.value,
        )

    def reset(self) -> None:
        """Forget the previous assignment. Member flags are cleared by the caller."""
        self._assigned = None
