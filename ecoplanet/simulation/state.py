"""GameState — the complete, immutable state handed from tick to tick."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig
from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.world.grid import Grid
from ecoplanet.world.stats import Stats
from ecoplanet.world.weather import WeatherState

SPEED_STEPS = (1, 2, 4)


class GamePhase(Enum):
    """Whether the simulation is running or sitting at the menu."""

    MENU = "menu"
    PLAYING = "playing"


@dataclass(frozen=True)
class Resources:
    """Aggregate economy after a tick.

    Attributes:
        money: Current funds.
        last_income: Net money change of the last tick.
        energy: Produced minus demanded energy (negative on deficit).
        energy_demand: Energy demanded by active consumers.
        max_energy: Total energy produced.
        water: Current water stock.
        max_water: Current storage capacity.
        workforce: Workers supplied.
        workforce_demand: Workers required.
    """

    money: float = 0.0
    last_income: float = 0.0
    energy: float = 0.0
    energy_demand: float = 0.0
    max_energy: float = 0.0
    water: float = 0.0
    max_water: float = 0.0
    workforce: float = 0.0
    workforce_demand: float = 0.0


@dataclass(frozen=True)
class Settings:
    """Presentation settings; the core only reads ``time_speed``."""

    animations: bool = True
    time_speed: int = 1


@dataclass(frozen=True)
class GameState:
    """Everything needed to resolve the next tick.

    Attributes:
        phase: Menu or playing.
        difficulty: Selected difficulty level.
        grid: Current grid snapshot.
        resources: Aggregate economy.
        stats: Terraforming meters (raw, unclamped).
        tick_count: Ticks resolved so far.
        weather: Time of day and rain state.
        settings: Speed and presentation settings.
    """

    phase: GamePhase
    difficulty: Difficulty
    grid: Grid
    resources: Resources = field(default_factory=Resources)
    stats: Stats = field(default_factory=Stats)
    tick_count: int = 0
    weather: WeatherState = field(default_factory=WeatherState)
    settings: Settings = field(default_factory=Settings)

    @property
    def is_playing(self) -> bool:
        return self.phase is GamePhase.PLAYING

    def evolve(self, **changes: object) -> GameState:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


def new_game(
    difficulty: Difficulty,
    difficulties: DifficultyConfig,
    config: SimulationConfig | None = None,
) -> GameState:
    """Create a fresh, playing game on an empty grid.

    Args:
        difficulty: Selected difficulty.
        difficulties: Difficulty table providing grid size and multipliers.
        config: Tunables; defaults are used when omitted.

    Raises:
        ConfigurationError: If the difficulty has no table entry.
    """
    config = config or SimulationConfig()
    level = difficulties.lookup(difficulty)
    return GameState(
        phase=GamePhase.PLAYING,
        difficulty=difficulty,
        grid=Grid.empty(level.size, level.size, pollution_cap=config.pollution_cap),
        resources=Resources(
            money=config.initial_money * level.money_multiplier,
            max_energy=config.initial_max_energy,
            water=config.initial_water,
            max_water=config.initial_max_water,
        ),
        weather=WeatherState(time_of_day=config.start_time_of_day),
    )


def cycle_speed(state: GameState) -> GameState:
    """Advance the time speed through 1 -> 2 -> 4 -> 1."""
    current = state.settings.time_speed
    nxt = current * 2
    if nxt > SPEED_STEPS[-1]:
        nxt = SPEED_STEPS[0]
    return state.evolve(settings=replace(state.settings, time_speed=nxt))


def slow_down(state: GameState) -> GameState:
    """Step the time speed down through 4 -> 2 -> 1, stopping at 1."""
    slower = [s for s in SPEED_STEPS if s < state.settings.time_speed]
    nxt = slower[-1] if slower else SPEED_STEPS[0]
    return state.evolve(settings=replace(state.settings, time_speed=nxt))
