"""Roster of live population members (NPCs and players) for one match."""

from .schema import MemberKind, PopulationMember

# Generated NPC ids are "npc-<n>"; players may not connect under this prefix
NPC_ID_PREFIX = "npc-"


def is_npc_id(entity_id: str) -> bool:
    return entity_id.startswith(NPC_ID_PREFIX)


class Population:
    """Members by id, in creation order."""

    def __init__(self):
        self._members: dict[str, PopulationMember] = {}
        self._npc_counter = 0

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, member_id: str) -> bool:
        return member_id in self._members

    def __iter__(self):
        return iter(list(self._members.values()))

    def add(self, member: PopulationMember) -> PopulationMember:
        if member.id in self._members:
            raise ValueError(f"Duplicate population member: {member.id}")
        self._members[member.id] = member
        return member

    def next_npc_number(self) -> int:
        self._npc_counter += 1
        return self._npc_counter

    def get(self, member_id: str) -> PopulationMember | None:
        return self._members.get(member_id)

    def remove(self, member_id: str) -> PopulationMember | None:
        """Destroy a member outright (eviction, disconnect)."""
        return self._members.pop(member_id, None)

    def npcs(self) -> list[PopulationMember]:
        return [m for m in self._members.values() if m.kind == MemberKind.NPC]

    def players(self) -> list[PopulationMember]:
        return [m for m in self._members.values() if m.kind == MemberKind.PLAYER]

    def protagonist(self) -> PopulationMember | None:
        for member in self._members.values():
            if member.is_protagonist:
                return member
        return None

    def hidden_alive(self) -> list[PopulationMember]:
        """Hidden-role members still standing, NPC or player."""
        return [m for m in self._members.values() if m.alive and m.hidden_role]

    def clear_roles(self) -> None:
        for member in self._members.values():
            member.hidden_role = False
            member.player_role = None

    def clear(self) -> None:
        self._members.clear()
        self._npc_counter = 0
