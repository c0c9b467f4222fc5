"""Shared fixtures for the EcoPlanet test suite."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest
from numpy.random import Generator

from ecoplanet.catalog.definitions import BuildingCatalog
from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig, DifficultyLevel
from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.simulation.state import GamePhase, GameState, Resources, Settings
from ecoplanet.world.editing import place_building
from ecoplanet.world.grid import Grid
from ecoplanet.world.stats import Stats
from ecoplanet.world.weather import WeatherState

_TEST_BUILDINGS = {
    "solar": {"cost": 0, "energy_consumption": 10, "is_solar": True},
    "coal": {
        "cost": 0,
        "energy_consumption": 20,
        "effects": {"air": -1.0},
        "pollution_amount": 5,
        "pollution_radius": 1,
    },
    "geo": {
        "cost": 0,
        "energy_consumption": 50,
        "min_stats": {"earth": 10},
        "stat_scaling": {"earth": 0.1},
    },
    "consumer": {"cost": 0, "energy_consumption": -10},
    "filter": {"cost": 0, "energy_consumption": -10, "effects": {"air": 2.0}},
    "shop": {"cost": 0, "energy_consumption": 0, "resource_generation": 3},
    "tree": {"cost": 10, "energy_consumption": 0, "effects": {"greenery": 1.0}},
    "workshop": {
        "cost": 0,
        "energy_consumption": 0,
        "workers_required": 10,
        "resource_generation": 10,
    },
    "tent": {"cost": 0, "energy_consumption": 0, "workers_provided": 5},
    "bot": {"cost": 0, "energy_consumption": 0, "workers_provided": 5, "is_robot": True},
    "washer": {
        "cost": 0,
        "energy_consumption": 0,
        "water_consumption": 4,
        "resource_generation": 2,
    },
    "rain_collector": {
        "cost": 0,
        "energy_consumption": 0,
        "water_generation": 5,
        "water_source": "rain",
    },
    "condenser": {
        "cost": 0,
        "energy_consumption": -5,
        "water_generation": 3,
        "water_source": "ambient",
    },
    "tank": {"cost": 0, "energy_consumption": 0, "water_storage": 200},
    "scrubber": {
        "cost": 0,
        "energy_consumption": 0,
        "pollution_cap_reduction": 30,
        "pollution_radius": 1,
    },
    "seeder": {"cost": 0, "energy_consumption": 0, "induces_rain": True},
    "block": {"cost": 101, "size": [2, 3], "energy_consumption": -2},
}


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def catalog() -> BuildingCatalog:
    """A small catalog of single-purpose test buildings."""
    return BuildingCatalog.from_mapping(_TEST_BUILDINGS)


@pytest.fixture
def difficulties() -> DifficultyConfig:
    """Difficulty table whose NORMAL level is a 3x3 map with unit multipliers."""
    return DifficultyConfig(
        levels={
            Difficulty.NORMAL: DifficultyLevel(size=3, money_multiplier=1.0, stat_multiplier=1.0),
            Difficulty.HARD: DifficultyLevel(size=3, money_multiplier=0.5, stat_multiplier=0.5),
        },
    )


@pytest.fixture
def config() -> SimulationConfig:
    """Tunables with spontaneous rain disabled."""
    return SimulationConfig(rain_start_probability=0.0, rain_bonus_per_enhancer=0.0)


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


StateFactory = Callable[..., GameState]


@pytest.fixture
def make_state(catalog: BuildingCatalog) -> StateFactory:
    """Build a playing state with buildings placed at given anchors.

    Keyword args: ``size``, ``buildings`` (list of ``(id, x, y)``),
    ``water``, ``money``, ``time_of_day``, ``raining``, ``rain_timer``,
    ``stats``, ``speed``, ``difficulty``.  Placements are paid from a
    separate budget; the returned state holds exactly ``money``.
    """

    def factory(
        *,
        size: int = 3,
        buildings: list[tuple[str, int, int]] | None = None,
        water: float = 0.0,
        money: float = 10_000.0,
        time_of_day: float = 12.0,
        raining: bool = False,
        rain_timer: int = 0,
        stats: Stats | None = None,
        speed: int = 1,
        difficulty: Difficulty = Difficulty.NORMAL,
    ) -> GameState:
        state = GameState(
            phase=GamePhase.PLAYING,
            difficulty=difficulty,
            grid=Grid.empty(size, size),
            resources=Resources(money=1_000_000.0, water=water),
            stats=stats or Stats(),
            weather=WeatherState(
                time_of_day=time_of_day,
                is_raining=raining,
                rain_timer=rain_timer,
            ),
            settings=Settings(time_speed=speed),
        )
        for building_id, x, y in buildings or []:
            state = place_building(state, catalog, building_id, x, y)
        return state.evolve(resources=Resources(money=money, water=water))

    return factory
