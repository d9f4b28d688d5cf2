"""
Headless runner for Stationfall.

Provides JSON I/O interface for embedding the match authority in another
process (a game server bridge, replay tooling, tests).
Input: JSON commands via stdin, one per line
Output: JSON events and responses via stdout, one per line
"""

import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from ..state.config import load_config
from ..state.event_bus import EventType, MatchEvent
from ..state.population import is_npc_id
from ..state.schema import Position
from ..systems.abilities import AbilityKind
from ..systems.session import MatchSession

logger = logging.getLogger(__name__)


def _position(raw) -> Position:
    """Accept {"x":..,"y":..,"z":..} or [x, y, z]."""
    if raw is None:
        return Position()
    if isinstance(raw, (list, tuple)):
        x, y, z = (list(raw) + [0.0, 0.0, 0.0])[:3]
        return Position(x=x, y=y, z=z)
    return Position.model_validate(raw)


def _optional_float(raw) -> float | None:
    return None if raw is None else float(raw)


class HeadlessRunner:
    """
    Headless match authority with JSON I/O.

    Commands are read from stdin as JSON objects.
    Events and responses are written to stdout as JSON.
    """

    def __init__(
        self,
        session: MatchSession | None = None,
        config_path: Path | None = None,
        output: TextIO = sys.stdout,
    ):
        self.session = session or MatchSession(load_config(config_path))
        self.output = output
        self._subscribe_to_events()

    def _subscribe_to_events(self):
        """Subscribe to all events and emit them as JSON."""
        self.session.bus.on_all(self._emit_event)

    def _emit_event(self, event: MatchEvent):
        """Emit a match event as JSON to stdout."""
        self._write_json({
            "type": "event",
            "event_type": event.type.value,
            "data": event.data,
            "match_id": event.match_id,
            "timestamp": event.timestamp.isoformat(),
        })

    def _write_json(self, obj: dict):
        """Write a JSON object to output followed by newline."""
        json.dump(obj, self.output, default=str)
        self.output.write("\n")
        self.output.flush()

    def _emit_response(self, response_type: str, **data):
        """Emit a response object."""
        self._write_json({
            "type": response_type,
            **data,
        })

    def handle_command(self, cmd: dict) -> dict:
        """
        Handle a JSON command.

        Commands:
            {"cmd": "status"} - Match snapshot
            {"cmd": "connect", "player_id": "...", "name": "..."} - Player joined
            {"cmd": "disconnect", "player_id": "..."} - Player left
            {"cmd": "start", "now": 0.0} - Arm the loading gate
            {"cmd": "start", "immediate": true} - Start right away
            {"cmd": "tick", "dt": 0.1} - Advance the authority
            {"cmd": "ability", "actor_id": "...", "kind": "glitch", "position": [x, y, z]}
            {"cmd": "eliminate", "entity_id": "...", "was_hidden": false}
            {"cmd": "place"} - Interactable layout as an observer computes it
            {"cmd": "reset"} - Back to lobby
            {"cmd": "quit"} - Exit

        Returns:
            Response dict
        """
        cmd_type = cmd.get("cmd", "")

        if cmd_type == "status":
            return {"ok": True, **self.session.status()}
        elif cmd_type == "connect":
            return self._cmd_connect(cmd.get("player_id", ""), cmd.get("name"))
        elif cmd_type == "disconnect":
            return {"ok": self.session.player_disconnected(cmd.get("player_id", ""))}
        elif cmd_type == "start":
            return self._cmd_start(cmd.get("now"), cmd.get("immediate", False))
        elif cmd_type == "tick":
            return self._cmd_tick(cmd.get("dt", 0.0), cmd.get("steps", 1))
        elif cmd_type == "ability":
            return self._cmd_ability(cmd)
        elif cmd_type == "eliminate":
            counted = self.session.entity_eliminated(
                cmd.get("entity_id", ""), bool(cmd.get("was_hidden", False))
            )
            return {"ok": counted}
        elif cmd_type == "place":
            return self._cmd_place()
        elif cmd_type == "reset":
            return {"ok": self.session.reset(), "phase": self.session.phase.value}
        elif cmd_type == "quit":
            return {"ok": True, "action": "quit"}
        else:
            return {"ok": False, "error": f"Unknown command: {cmd_type}"}

    def _cmd_connect(self, player_id: str, name: str | None) -> dict:
        if not player_id or not isinstance(player_id, str):
            return {"ok": False, "error": "player_id required"}
        if is_npc_id(player_id):
            return {"ok": False, "error": f"player_id {player_id} is reserved for NPCs"}
        member = self.session.player_connected(player_id, name)
        return {
            "ok": True,
            "pending": member is None,
            "member": member.model_dump(mode="json") if member else None,
        }

    def _cmd_start(self, now: float | None, immediate: bool) -> dict:
        if immediate:
            started = self.session.start_match()
            return {"ok": started, "phase": self.session.phase.value}
        status = self.session.request_start(now)
        return {"ok": True, "gate": status.value}

    def _cmd_tick(self, dt: float, steps: int) -> dict:
        try:
            dt = float(dt)
            steps = int(steps)
        except (TypeError, ValueError):
            return {"ok": False, "error": "dt and steps must be numbers"}
        if dt < 0 or steps < 1:
            return {"ok": False, "error": "dt must be >= 0 and steps >= 1"}

        for _ in range(steps):
            self.session.tick(dt)
        return {"ok": True, "clock": self.session.now, "phase": self.session.phase.value}

    def _cmd_ability(self, cmd: dict) -> dict:
        kind = cmd.get("kind", "")
        try:
            kind = AbilityKind(kind)
        except ValueError:
            pass  # Custom abilities from the config are plain strings
        try:
            position = _position(cmd.get("position"))
        except ValueError as e:
            return {"ok": False, "error": f"Invalid position: {e}"}
        try:
            base_amount = _optional_float(cmd.get("base_amount"))
            effect_range = _optional_float(cmd.get("range"))
        except (TypeError, ValueError):
            return {"ok": False, "error": "base_amount and range must be numbers"}

        amount = self.session.ability_used(
            cmd.get("actor_id", ""),
            kind,
            position,
            base_amount=base_amount,
            effect_range=effect_range,
        )
        return {"ok": amount > 0, "amount": amount, "tension": self.session.tension.level}

    def _cmd_place(self) -> dict:
        return {
            "ok": True,
            "zones": {
                name: record.model_dump(mode="json")
                for name, record in self.session.placements().items()
            },
        }

    def run(self, stream: TextIO = sys.stdin):
        """
        Main loop: read JSON commands from stdin, write responses to stdout.

        One JSON object per line. Exit on EOF or quit command.
        """
        self._emit_response(
            "ready",
            version="0.1.0",
            match_id=self.session.match_id,
            events=[t.value for t in EventType],
        )

        for line in stream:
            line = line.strip()
            if not line:
                continue

            try:
                cmd = json.loads(line)
            except json.JSONDecodeError as e:
                self._emit_response("error", error=f"Invalid JSON: {e}")
                continue
            if not isinstance(cmd, dict):
                self._emit_response("error", error="Command must be a JSON object")
                continue

            result = self.handle_command(cmd)
            self._emit_response("result", **result)

            if result.get("action") == "quit":
                break


def run_headless(config_path: Path | None = None):
    """Entry point for headless mode."""
    runner = HeadlessRunner(config_path=config_path)
    runner.run()
