"""Simulation runner and transcript management."""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from ..state.config import MatchConfig
from ..state.event_bus import EventType, MatchEvent
from ..state.schema import MatchPhase
from ..systems.session import MatchSession
from .personas import PERSONAS
from .player import BotPlayer

logger = logging.getLogger(__name__)

# Events worth a line in the transcript; the rest is bookkeeping noise
RECORDED_EVENTS = (
    EventType.PHASE_CHANGED,
    EventType.PLAYER_SPAWNED,
    EventType.TENSION_MAXED,
    EventType.ENTITY_ELIMINATED,
    EventType.HIGH_VALUE_SITES_SELECTED,
    EventType.MATCH_ENDED,
)


@dataclass
class SimulationStep:
    """A single line in the simulation log."""

    time: float
    kind: Literal["event", "action"]
    content: str


@dataclass
class SimulationTranscript:
    """Complete transcript of a simulation run."""

    seed: int | None = None
    personas: dict[str, str] = field(default_factory=dict)  # player id -> persona
    started_at: datetime = field(default_factory=datetime.now)
    steps: list[SimulationStep] = field(default_factory=list)
    summary: dict | None = None
    bot_stats: dict[str, dict] = field(default_factory=dict)
    final_tension: float = 0.0

    def add_step(self, time: float, kind: Literal["event", "action"], content: str) -> None:
        self.steps.append(SimulationStep(time=time, kind=kind, content=content))

    @property
    def finished(self) -> bool:
        return self.summary is not None

    def to_markdown(self) -> str:
        """Convert transcript to markdown format."""
        lines = [
            "# Simulation Transcript",
            "",
            f"- **Date:** {self.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"- **Seed:** {self.seed if self.seed is not None else 'random'}",
            f"- **Players:** {', '.join(f'{pid} ({p})' for pid, p in self.personas.items())}",
            f"- **Steps:** {len(self.steps)}",
            "",
            "---",
            "",
            "## Log",
            "",
        ]

        for step in self.steps:
            marker = "*" if step.kind == "event" else "-"
            lines.append(f"{marker} `{step.time:7.1f}s` {step.content}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        if self.summary:
            lines.append(f"- **Outcome:** {self.summary['outcome']} ({self.summary['reason']})")
            lines.append(f"- **Duration:** {self.summary['duration']:.1f}s")
            lines.append(f"- **Hidden eliminated:** {self.summary['hidden_eliminated']}")
            lines.append(f"- **Innocents eliminated:** {self.summary['innocents_eliminated']}")
            lines.append(f"- **Reached chaos:** {'yes' if self.summary['reached_chaos'] else 'no'}")
        else:
            lines.append("- **Outcome:** unfinished")
        lines.append(f"- **Final tension:** {self.final_tension:.1f}")
        for player_id, stats in self.bot_stats.items():
            parts = ", ".join(f"{k}: {v}" for k, v in stats.items())
            lines.append(f"- **{player_id}:** {parts}")
        lines.append("")

        return "\n".join(lines)

    def save(self, simulations_dir: Path) -> Path:
        """Save transcript to file. Returns the file path."""
        simulations_dir.mkdir(parents=True, exist_ok=True)

        timestamp = self.started_at.strftime("%Y-%m-%d_%H%M%S")
        filename = f"sim_{timestamp}_{self.seed if self.seed is not None else 'random'}.md"
        filepath = simulations_dir / filename

        filepath.write_text(self.to_markdown(), encoding="utf-8")
        return filepath


def describe_event(event: MatchEvent) -> str:
    """One human-readable line per recorded event."""
    data = event.data
    if event.type == EventType.PHASE_CHANGED:
        return f"Phase {data['previous']} -> {data['phase']}"
    if event.type == EventType.PLAYER_SPAWNED:
        where = "fallback position" if data.get("fallback") else data.get("slot_id")
        late = " (late join)" if data.get("late") else ""
        return f"{data['player_id']} spawned as {data['role']} at {where}{late}"
    if event.type == EventType.TENSION_MAXED:
        return "Tension maxed, chaos unleashed"
    if event.type == EventType.ENTITY_ELIMINATED:
        tag = "infiltrator" if data.get("was_hidden") else "innocent"
        return f"{data['entity_id']} eliminated ({tag})"
    if event.type == EventType.HIGH_VALUE_SITES_SELECTED:
        return f"Defense points: {', '.join(s['name'] for s in data.get('sites', []))}"
    if event.type == EventType.MATCH_ENDED:
        return f"Match ended: {data['outcome']} ({data['reason']})"
    return str(event)


def create_simulation(
    personas: list[str],
    seed: int | None = None,
    config: MatchConfig | None = None,
) -> tuple[MatchSession, list[BotPlayer]]:
    """
    Build a session and one bot per persona.

    The session and each bot get separate generators derived from the seed,
    so a seeded run is fully reproducible.
    """
    session = MatchSession(config, rng=random.Random(seed))
    bots = []
    for i, persona in enumerate(personas):
        if persona not in PERSONAS:
            logger.warning(f"Unknown persona {persona}, using cautious")
        bot_rng = random.Random(f"{seed}-{i}") if seed is not None else random.Random()
        bots.append(BotPlayer(f"bot-{i + 1}", persona, bot_rng))
    return session, bots


def run_simulation(
    session: MatchSession,
    bots: list[BotPlayer],
    duration: float = 900.0,
    dt: float = 0.5,
    seed: int | None = None,
) -> SimulationTranscript:
    """
    Run the simulation loop.

    Connects every bot, arms the loading gate, then ticks the session until
    the match ends or the simulated duration runs out.

    Args:
        session: A session in LOBBY
        bots: Bot players to connect
        duration: Simulated seconds, loading time included
        dt: Seconds per tick
        seed: Recorded in the transcript only

    Returns:
        SimulationTranscript with every recorded event and action
    """
    transcript = SimulationTranscript(
        seed=seed,
        personas={bot.player_id: bot.persona_name for bot in bots},
    )

    def record(event: MatchEvent) -> None:
        if event.type in RECORDED_EVENTS:
            transcript.add_step(session.now, "event", describe_event(event))

    session.bus.on_all(record)
    try:
        for bot in bots:
            session.player_connected(bot.player_id, bot.player_id)
        session.request_start()

        for _ in range(max(1, int(duration / dt))):
            session.tick(dt)
            for bot in bots:
                action = bot.act(session, dt)
                if action:
                    transcript.add_step(session.now, "action", action)
            if session.phase == MatchPhase.ENDED:
                break
    finally:
        for event_type in EventType:
            session.bus.off(event_type, record)

    summary = session.phases.summary
    transcript.summary = summary.model_dump(mode="json") if summary else None
    transcript.bot_stats = {bot.player_id: bot.get_stats() for bot in bots}
    transcript.final_tension = session.tension.level
    logger.info(f"Simulation finished after {session.now:.1f}s ({len(transcript.steps)} steps)")
    return transcript
