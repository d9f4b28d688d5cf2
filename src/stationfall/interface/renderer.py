"""
Display helpers for the Stationfall CLI.

Handles theming, tension meters, placement tables and match summaries.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..state.schema import HighValueSite, MatchOutcome, MatchSummary, PlacementRecord


# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",        # station hull
    "secondary": "grey70",
    "warning": "dark_goldenrod",
    "danger": "dark_red",           # chaos
    "accent": "cyan",
    "dim": "dim",
}


def tension_bar(level: float, maximum: float, width: int = 20) -> str:
    """Block meter for a tension level, colored by how close it is to chaos."""
    ratio = 0.0 if maximum <= 0 else min(max(level / maximum, 0.0), 1.0)
    filled = round(ratio * width)
    if ratio >= 0.75:
        color = THEME["danger"]
    elif ratio >= 0.4:
        color = THEME["warning"]
    else:
        color = THEME["accent"]
    bar = "█" * filled + "░" * (width - filled)
    return f"[{color}]{bar}[/{color}] {level:5.1f}/{maximum:.0f}"


def show_placements(records: dict[str, PlacementRecord]) -> None:
    """One table row per placed interactable."""
    table = Table(
        title=f"[bold {THEME['primary']}]Interactable Placement[/bold {THEME['primary']}]",
        box=None,
    )
    table.add_column("Zone", style=THEME["secondary"])
    table.add_column("Seed", style=THEME["dim"])
    table.add_column("Slot", style=THEME["accent"])
    table.add_column("Category")

    for name, record in records.items():
        if not record.assignments:
            table.add_row(name, str(record.seed), "-", f"[{THEME['dim']}]nothing placed[/{THEME['dim']}]")
            continue
        for i, (slot_id, category) in enumerate(record.assignments):
            table.add_row(name if i == 0 else "", str(record.seed) if i == 0 else "", slot_id, category)

    console.print(table)


def show_sites(sites: list[HighValueSite]) -> None:
    if not sites:
        console.print(f"[{THEME['dim']}]No defense points selected[/{THEME['dim']}]")
        return
    for site in sites:
        origin = site.slot_id or "generated"
        console.print(f"  [{THEME['accent']}]{site.name}[/{THEME['accent']}] {site.position} [{THEME['dim']}]{origin}[/{THEME['dim']}]")


def show_status(status: dict) -> None:
    """Key/value view of MatchSession.status()."""
    table = Table(
        title=f"[bold {THEME['primary']}]Match {status['match_id']}[/bold {THEME['primary']}]",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    tension = status["tension"]
    table.add_row("Phase", status["phase"])
    table.add_row("Tension", tension_bar(tension["level"], tension["max"]))
    table.add_row("Time left", f"{status['time_remaining']:.0f}s")
    table.add_row("Protagonist", status["protagonist"] or "-")
    table.add_row("NPCs", str(status["npcs"]))
    table.add_row("Players", str(status["players"]))
    table.add_row("Hidden alive", str(status["hidden_alive"]))

    console.print(table)


def show_summary(summary: MatchSummary | None) -> None:
    if summary is None:
        console.print(Panel("Match did not finish", border_style=THEME["dim"]))
        return

    winner = "Astronaut" if summary.outcome == MatchOutcome.PROTAGONIST_WINS else "Infiltrators"
    style = THEME["accent"] if summary.outcome == MatchOutcome.PROTAGONIST_WINS else THEME["danger"]
    body = (
        f"Reason: {summary.reason.value}\n"
        f"Duration: {summary.duration:.1f}s\n"
        f"Infiltrators eliminated: {summary.hidden_eliminated}\n"
        f"Innocents eliminated: {summary.innocents_eliminated}\n"
        f"Reached chaos: {'yes' if summary.reached_chaos else 'no'}\n"
        f"Late joins: {summary.late_joins}"
    )
    console.print(Panel(body, title=f"[bold]{winner} win[/bold]", border_style=style))
