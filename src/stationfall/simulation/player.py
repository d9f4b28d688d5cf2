"""Scripted bot player for simulation mode."""

import random

from ..state.schema import MatchPhase
from ..systems.session import MatchSession
from .personas import get_persona


class BotPlayer:
    """A connected player driven by a persona instead of a human."""

    def __init__(
        self,
        player_id: str,
        persona: str = "cautious",
        rng: random.Random | None = None,
    ):
        """
        Initialize bot player.

        Args:
            player_id: Id used on connect
            persona: One of: cautious, saboteur, chaotic
            rng: Generator for the bot's own decisions (kept apart from the
                session's so bots never perturb role or spawn draws)
        """
        self.player_id = player_id
        self.persona_name = persona
        self.persona = get_persona(persona)
        self.rng = rng or random.Random()
        self.decisions: list[str] = []

    def act(self, session: MatchSession, dt: float) -> str | None:
        """
        Maybe do something this tick.

        Returns:
            A one-line description of the action, or None
        """
        member = session.population.get(self.player_id)
        if member is None or not member.alive:
            return None
        if session.phase not in (MatchPhase.PLAYING, MatchPhase.CHAOS):
            return None

        if member.is_protagonist:
            return self._hunt(session, dt)
        return self._sabotage(session, dt)

    def _hunt(self, session: MatchSession, dt: float) -> str | None:
        if self.rng.random() >= self.persona["hunt_rate"] * dt:
            return None

        others = [m for m in session.population if m.alive and m.id != self.player_id]
        if not others:
            return None
        hidden = [m for m in others if m.hidden_role]
        innocent = [m for m in others if not m.hidden_role]
        if hidden and (not innocent or self.rng.random() < self.persona["accuracy"]):
            target = self.rng.choice(hidden)
        else:
            target = self.rng.choice(innocent)

        session.entity_eliminated(target.id, target.hidden_role)
        self.decisions.append("hit" if target.hidden_role else "miss")
        return f"{self.player_id} eliminated {target.name}"

    def _sabotage(self, session: MatchSession, dt: float) -> str | None:
        if session.phase != MatchPhase.PLAYING:
            return None
        if self.rng.random() >= self.persona["ability_rate"] * dt:
            return None

        kind = self.rng.choice(self.persona["abilities"])
        protagonist = session.population.protagonist()
        if protagonist is not None:
            spread = self.persona["spread"]
            source = protagonist.position.offset(
                dx=self.rng.uniform(-spread, spread),
                dz=self.rng.uniform(-spread, spread),
            )
        else:
            source = session.population.get(self.player_id).position

        amount = session.ability_used(self.player_id, kind, source)
        if amount <= 0:
            return None
        self.decisions.append("ability")
        return f"{self.player_id} used {kind} (+{amount:.1f} tension)"

    def get_stats(self) -> dict:
        """Summary statistics about the bot's actions."""
        return {
            "abilities_used": self.decisions.count("ability"),
            "hits": self.decisions.count("hit"),
            "misses": self.decisions.count("miss"),
        }
