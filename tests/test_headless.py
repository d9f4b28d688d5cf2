"""
Tests for headless mode - the JSON I/O interface for embedding the authority.

This is the surface a game-server bridge depends on.
"""

import json
import random
from io import StringIO

import pytest

from stationfall.interface.headless import HeadlessRunner
from stationfall.systems.session import MatchSession


@pytest.fixture
def runner(small_config):
    """Headless runner over a seeded session with captured output."""
    output = StringIO()
    session = MatchSession(small_config, rng=random.Random(9), match_id="hl")
    runner = HeadlessRunner(session=session, output=output)
    runner._output_buffer = output
    return runner


def lines(runner) -> list[dict]:
    return [json.loads(line) for line in runner._output_buffer.getvalue().splitlines()]


class TestHeadlessBasicCommands:
    """Test basic command handling."""

    def test_status(self, runner):
        result = runner.handle_command({"cmd": "status"})

        assert result["ok"] is True
        assert result["phase"] == "lobby"
        assert result["match_id"] == "hl"

    def test_quit_returns_action(self, runner):
        result = runner.handle_command({"cmd": "quit"})
        assert result == {"ok": True, "action": "quit"}

    def test_unknown_command(self, runner):
        result = runner.handle_command({"cmd": "warp"})
        assert result["ok"] is False
        assert "Unknown command" in result["error"]

    def test_connect_requires_id(self, runner):
        assert runner.handle_command({"cmd": "connect"})["ok"] is False

    def test_connect_rejects_npc_ids(self, runner):
        result = runner.handle_command({"cmd": "connect", "player_id": "npc-1"})

        assert result["ok"] is False
        assert "reserved" in result["error"]
        assert runner.session.connected == []

    def test_connect_in_lobby_is_pending(self, runner):
        result = runner.handle_command({"cmd": "connect", "player_id": "p1", "name": "Ripley"})
        assert result["ok"] is True
        assert result["pending"] is True
        assert result["member"] is None

    def test_place(self, runner):
        result = runner.handle_command({"cmd": "place"})
        assert set(result["zones"]) == {"Alpha", "Beta"}
        assert len(result["zones"]["Alpha"]["assignments"]) == 3


class TestHeadlessMatchFlow:
    """Test driving a match through JSON commands."""

    def test_immediate_start(self, runner):
        runner.handle_command({"cmd": "connect", "player_id": "p1"})
        result = runner.handle_command({"cmd": "start", "immediate": True})

        assert result == {"ok": True, "phase": "playing"}

    def test_gated_start_via_ticks(self, runner):
        runner.handle_command({"cmd": "start"})
        result = runner.handle_command({"cmd": "tick", "dt": 1.0, "steps": 3})

        assert result["phase"] == "playing"
        assert result["clock"] == pytest.approx(3.0)

    def test_bad_tick(self, runner):
        assert runner.handle_command({"cmd": "tick", "dt": "soon"})["ok"] is False
        assert runner.handle_command({"cmd": "tick", "dt": -1})["ok"] is False

    def test_ability_and_eliminate(self, runner):
        session = runner.session
        runner.handle_command({"cmd": "connect", "player_id": "p1"})
        runner.handle_command({"cmd": "connect", "player_id": "p2"})
        runner.handle_command({"cmd": "start", "immediate": True})
        protagonist = session.population.protagonist()
        infiltrator = next(p for p in session.population.players() if not p.is_protagonist)
        pos = protagonist.position

        result = runner.handle_command({
            "cmd": "ability",
            "actor_id": infiltrator.id,
            "kind": "glitch",
            "position": [pos.x, pos.y, pos.z],
        })
        assert result["ok"] is True
        assert result["amount"] == pytest.approx(8.0)

        result = runner.handle_command({"cmd": "eliminate", "entity_id": protagonist.id})
        assert result["ok"] is True
        assert session.phases.summary is not None

    def test_bad_position(self, runner):
        result = runner.handle_command({"cmd": "ability", "actor_id": "p2", "kind": "glitch", "position": {"x": "left"}})
        assert result["ok"] is False

    def test_bad_ability_overrides(self, runner):
        session = runner.session
        runner.handle_command({"cmd": "connect", "player_id": "p1"})
        runner.handle_command({"cmd": "connect", "player_id": "p2"})
        runner.handle_command({"cmd": "start", "immediate": True})
        protagonist = session.population.protagonist()
        infiltrator = next(p for p in session.population.players() if not p.is_protagonist)
        pos = protagonist.position

        result = runner.handle_command({
            "cmd": "ability",
            "actor_id": infiltrator.id,
            "kind": "custom",
            "position": [pos.x, pos.y, pos.z],
            "base_amount": "ten",
            "range": 10,
        })

        assert result["ok"] is False
        assert "must be numbers" in result["error"]
        assert session.tension.level == 0.0

    def test_reset(self, runner):
        result = runner.handle_command({"cmd": "reset"})
        assert result == {"ok": True, "phase": "lobby"}

    def test_events_streamed(self, runner):
        runner.handle_command({"cmd": "start", "immediate": True})

        events = [line for line in lines(runner) if line["type"] == "event"]
        types = [e["event_type"] for e in events]
        assert "phase.changed" in types
        assert "world.interactables_placed" in types
        assert all(e["match_id"] == "hl" for e in events)


class TestHeadlessRunLoop:
    """Test the stdin loop."""

    def test_run_until_quit(self, runner):
        stream = StringIO(
            '{"cmd": "status"}\n'
            "\n"
            "not json\n"
            "[1, 2]\n"
            '{"cmd": "quit"}\n'
            '{"cmd": "status"}\n'
        )
        runner.run(stream)

        out = lines(runner)
        assert out[0]["type"] == "ready"
        kinds = [o["type"] for o in out[1:]]
        assert kinds == ["result", "error", "error", "result"]
        assert out[-1]["action"] == "quit"

    def test_bad_command_does_not_stop_loop(self, runner):
        stream = StringIO(
            '{"cmd": "connect", "player_id": "p1"}\n'
            '{"cmd": "connect", "player_id": "p2"}\n'
            '{"cmd": "start", "immediate": true}\n'
            '{"cmd": "ability", "actor_id": "p2", "kind": "custom", "base_amount": "ten", "range": 10}\n'
            '{"cmd": "status"}\n'
        )
        runner.run(stream)

        results = [o for o in lines(runner) if o["type"] == "result"]
        assert results[3]["ok"] is False
        assert results[4]["phase"] == "playing"
