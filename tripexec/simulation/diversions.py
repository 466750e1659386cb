"""Diversion catalogue: base rates, impact ranges and the modifiers applied to them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tripexec.domain.enums import DiversionType, TimeOfDay, Weather

D = DiversionType


@dataclass(frozen=True)
class DiversionConfig:
    type: DiversionType
    probability: float
    min_impact_minutes: int
    max_impact_minutes: int
    applicable_to: tuple[str, ...] = ()
    time_of_day_bias: dict[TimeOfDay, float] = field(default_factory=dict)


DEFAULT_DIVERSIONS: tuple[DiversionConfig, ...] = (
    DiversionConfig(D.LATE_START, 0.15, 10, 45, time_of_day_bias={TimeOfDay.MORNING: 2.0}),
    DiversionConfig(D.EXTENDED_STAY, 0.25, 10, 30, ("museum", "temple", "garden", "viewpoint", "market")),
    DiversionConfig(D.EARLY_DEPARTURE, 0.1, -20, -5),
    DiversionConfig(D.SKIP_ACTIVITY, 0.05, 0, 0, time_of_day_bias={TimeOfDay.EVENING: 1.5}),
    DiversionConfig(D.UNPLANNED_STOP, 0.2, 5, 20, ("neighborhood", "market", "shopping")),
    DiversionConfig(D.GOT_LOST, 0.08, 5, 15),
    DiversionConfig(
        D.SLOW_COMMUTE, 0.2, 5, 20, time_of_day_bias={TimeOfDay.MORNING: 1.3, TimeOfDay.EVENING: 1.5}
    ),
    DiversionConfig(D.FAST_COMMUTE, 0.15, -10, -3),
    DiversionConfig(D.WEATHER_DELAY, 0.05, 10, 30),
    DiversionConfig(D.ACTIVITY_CLOSED, 0.03, 0, 0),
    DiversionConfig(D.DISCOVERED_GEM, 0.1, 15, 45, ("neighborhood", "walking-tour")),
    DiversionConfig(D.MEAL_EXTENSION, 0.3, 10, 25, ("restaurant", "food", "cafe")),
    DiversionConfig(D.BATHROOM_BREAK, 0.15, 5, 10),
    DiversionConfig(D.PHONE_CALL, 0.05, 5, 15),
    DiversionConfig(
        D.SOUVENIR_SHOPPING,
        0.15,
        10,
        30,
        ("market", "neighborhood", "shopping"),
        {TimeOfDay.AFTERNOON: 1.5},
    ),
    DiversionConfig(D.ENERGY_LOW, 0.1, 15, 30, time_of_day_bias={TimeOfDay.AFTERNOON: 2.0}),
    DiversionConfig(D.PERFECT_TIMING, 0.3, 0, 0),
)

WEATHER_MODIFIERS: dict[Weather, dict[DiversionType, float]] = {
    Weather.SUNNY: {
        D.EXTENDED_STAY: 1.2,
        D.DISCOVERED_GEM: 1.3,
        D.ENERGY_LOW: 0.8,
        D.WEATHER_DELAY: 0.1,
        D.PERFECT_TIMING: 1.2,
    },
    Weather.RAINY: {
        D.EXTENDED_STAY: 0.7,
        D.WEATHER_DELAY: 3.0,
        D.SKIP_ACTIVITY: 1.5,
        D.UNPLANNED_STOP: 1.3,
        D.ENERGY_LOW: 1.3,
    },
    Weather.HOT: {
        D.ENERGY_LOW: 2.0,
        D.BATHROOM_BREAK: 1.5,
        D.SLOW_COMMUTE: 1.3,
        D.EXTENDED_STAY: 0.8,
    },
    Weather.COLD: {
        D.FAST_COMMUTE: 1.3,
        D.EARLY_DEPARTURE: 1.5,
        D.UNPLANNED_STOP: 0.7,
    },
    Weather.CLOUDY: {},
}

TIRING_DIVERSIONS = frozenset({D.ENERGY_LOW, D.SKIP_ACTIVITY, D.EARLY_DEPARTURE})
ENERGETIC_DIVERSIONS = frozenset({D.EXTENDED_STAY, D.DISCOVERED_GEM})
ENERGY_DROP = 0.2

COMMUTE_DIVERSIONS = (D.GOT_LOST, D.SLOW_COMMUTE, D.FAST_COMMUTE)
ACTIVITY_DIVERSIONS = (
    D.EXTENDED_STAY,
    D.EARLY_DEPARTURE,
    D.UNPLANNED_STOP,
    D.DISCOVERED_GEM,
    D.MEAL_EXTENSION,
    D.BATHROOM_BREAK,
    D.PHONE_CALL,
    D.SOUVENIR_SHOPPING,
    D.ENERGY_LOW,
    D.WEATHER_DELAY,
)

DESCRIPTIONS: dict[DiversionType, tuple[str, ...]] = {
    D.LATE_START: (
        "Overslept and got a late start",
        "Had trouble finding breakfast, started late",
        "Took extra time getting ready",
        "Hotel checkout took longer than expected",
    ),
    D.EXTENDED_STAY: (
        "Got engrossed at {name}, stayed {minutes} min longer",
        "{name} was amazing, couldn't leave!",
        "Found a hidden corner at {name} worth exploring",
        "Met a friendly local at {name}, great conversation",
    ),
    D.EARLY_DEPARTURE: (
        "{name} wasn't as interesting as expected, left early",
        "Finished exploring {name} quickly",
        "The crowd at {name} was too much, left early",
    ),
    D.SKIP_ACTIVITY: (
        "Decided to skip {name}, not feeling it today",
        "Too tired to visit {name}",
        "Queue at {name} was too long, skipped it",
    ),
    D.UNPLANNED_STOP: (
        "Stopped at a cafe for a quick coffee",
        "Found an interesting shop, had to check it out",
        "Spotted a great photo opportunity, stopped for pictures",
        "Grabbed a quick snack from a street vendor",
    ),
    D.GOT_LOST: (
        "Got confused at the station, took the wrong exit",
        "The map app led us astray for a bit",
        "Wandered into the wrong neighborhood, had to backtrack",
        "Couldn't find the entrance, walked around the block",
    ),
    D.SLOW_COMMUTE: (
        "Train was delayed",
        "Just missed the train, had to wait for the next one",
        "Walking took longer than expected on the hills",
        "Got stuck in pedestrian traffic",
    ),
    D.FAST_COMMUTE: (
        "Train came immediately",
        "Found a shortcut through the backstreets",
        "Walking was faster than expected",
    ),
    D.WEATHER_DELAY: (
        "Had to wait for the rain to stop",
        "Took shelter from a sudden downpour",
        "Strong winds slowed us down",
    ),
    D.ACTIVITY_CLOSED: (
        "{name} was unexpectedly closed today",
        "{name} closed early for a private event",
        "Arrived to find {name} under renovation",
    ),
    D.DISCOVERED_GEM: (
        "Discovered a hidden temple nearby",
        "Found a garden that wasn't on the itinerary",
        "Stumbled upon a local festival nearby",
        "A local recommended a secret viewpoint",
    ),
    D.MEAL_EXTENSION: (
        "The food was so good, ordered seconds",
        "Service was slow but the food was worth the wait",
        "Got into a great conversation with the chef",
        "Had to try multiple dishes",
    ),
    D.BATHROOM_BREAK: ("Quick bathroom break", "Needed to freshen up"),
    D.PHONE_CALL: ("Had to take an important call from home", "Friend called with an urgent question"),
    D.SOUVENIR_SHOPPING: (
        "Couldn't resist the souvenir shop",
        "Found the perfect gift, spent time choosing",
        "Had to buy some local snacks to bring home",
    ),
    D.ENERGY_LOW: (
        "Feeling tired, took a rest break",
        "Needed to sit down and recharge",
        "Stopped for a drink and a snack",
        "Found a bench with a nice view, took a breather",
    ),
    D.PERFECT_TIMING: ("Everything went smoothly",),
}


def find_config(configs: tuple[DiversionConfig, ...], kind: DiversionType) -> Optional[DiversionConfig]:
    for config in configs:
        if config.type == kind:
            return config
    return None


def energy_multiplier(kind: DiversionType, energy: Optional[float]) -> float:
    if energy is None:
        return 1.0
    if kind in TIRING_DIVERSIONS:
        return 2.0 - energy
    if kind in ENERGETIC_DIVERSIONS:
        return energy
    return 1.0


def effective_probability(
    config: DiversionConfig,
    time_of_day: TimeOfDay,
    weather: Optional[Weather] = None,
    energy: Optional[float] = None,
) -> float:
    probability = config.probability * config.time_of_day_bias.get(time_of_day, 1.0)
    if weather is not None:
        probability *= WEATHER_MODIFIERS.get(weather, {}).get(config.type, 1.0)
    return probability * energy_multiplier(config.type, energy)


__all__ = [
    "ACTIVITY_DIVERSIONS",
    "COMMUTE_DIVERSIONS",
    "DEFAULT_DIVERSIONS",
    "DESCRIPTIONS",
    "DiversionConfig",
    "ENERGY_DROP",
    "WEATHER_MODIFIERS",
    "effective_probability",
    "energy_multiplier",
    "find_config",
]
