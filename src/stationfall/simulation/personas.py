"""Bot personas for simulated matches."""

PERSONAS = {
    "cautious": {
        "name": "Cautious",
        "ability_rate": 0.05,      # Ability attempts per second as an infiltrator
        "abilities": ["sound", "glitch"],
        "spread": 18.0,            # How far from the protagonist they act
        "hunt_rate": 0.02,         # Shots per second as the protagonist
        "accuracy": 0.8,           # Chance a shot targets a hidden member
    },
    "saboteur": {
        "name": "Saboteur",
        "ability_rate": 0.3,
        "abilities": ["collision", "wind", "glitch"],
        "spread": 4.0,
        "hunt_rate": 0.05,
        "accuracy": 0.5,
    },
    "chaotic": {
        "name": "Chaotic",
        "ability_rate": 0.2,
        "abilities": ["collision", "glitch", "sound", "wind"],
        "spread": 12.0,
        "hunt_rate": 0.1,
        "accuracy": 0.3,
    },
}


def get_persona(persona_name: str) -> dict:
    """Persona settings by name, falling back to cautious."""
    return PERSONAS.get(persona_name, PERSONAS["cautious"])
