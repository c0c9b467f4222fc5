"""Persistence — save and restore a GameState as JSON.

The on-disk format is a plain JSON document carrying every field the
core evolves.  Anything that fails to parse or lacks a required field
raises ``LoadError``; ``load_or_new`` turns that into a fresh game.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import numpy as np

from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig
from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.simulation.state import GamePhase, GameState, Resources, Settings, new_game
from ecoplanet.world.grid import EMPTY, Grid, PlacedBuilding
from ecoplanet.world.stats import Stats
from ecoplanet.world.weather import WeatherState

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class LoadError(ValueError):
    """A saved state could not be parsed or is incomplete."""


def state_to_dict(state: GameState) -> dict[str, Any]:
    """Convert a state into a JSON-compatible dictionary."""
    grid = state.grid
    resources = state.resources
    return {
        "version": FORMAT_VERSION,
        "phase": state.phase.value,
        "difficulty": state.difficulty.value,
        "tick_count": state.tick_count,
        "resources": {
            "money": resources.money,
            "last_income": resources.last_income,
            "energy": resources.energy,
            "energy_demand": resources.energy_demand,
            "max_energy": resources.max_energy,
            "water": resources.water,
            "max_water": resources.max_water,
            "workforce": resources.workforce,
            "workforce_demand": resources.workforce_demand,
        },
        "stats": state.stats.as_dict(),
        "weather": {
            "time_of_day": state.weather.time_of_day,
            "is_raining": state.weather.is_raining,
            "rain_timer": state.weather.rain_timer,
        },
        "settings": {
            "animations": state.settings.animations,
            "time_speed": state.settings.time_speed,
        },
        "grid": {
            "width": grid.width,
            "height": grid.height,
            "pollution": grid.pollution.tolist(),
            "pollution_cap": grid.pollution_cap.tolist(),
            "next_instance_id": grid.next_instance_id,
            "buildings": [
                {
                    "instance_id": b.instance_id,
                    "building_id": b.building_id,
                    "x": b.x,
                    "y": b.y,
                    "width": b.width,
                    "depth": b.depth,
                    "is_active": b.is_active,
                    "is_powered": b.is_powered,
                    "efficiency": b.efficiency,
                }
                for b in grid.buildings.values()
            ],
        },
    }


def state_from_dict(data: dict[str, Any]) -> GameState:
    """Rebuild a state from ``state_to_dict`` output.

    Raises:
        LoadError: If a required field is missing or malformed.
    """
    try:
        if data["version"] != FORMAT_VERSION:
            msg = f"unsupported save version {data['version']!r}"
            raise LoadError(msg)
        grid = _grid_from_dict(data["grid"])
        weather = data["weather"]
        settings = data.get("settings", {})
        return GameState(
            phase=GamePhase(data["phase"]),
            difficulty=Difficulty(data["difficulty"]),
            grid=grid,
            resources=_resources_from_dict(data["resources"]),
            stats=Stats.from_dict(data["stats"]),
            tick_count=int(data["tick_count"]),
            weather=WeatherState(
                time_of_day=float(weather["time_of_day"]),
                is_raining=bool(weather["is_raining"]),
                rain_timer=int(weather["rain_timer"]),
            ),
            settings=Settings(
                animations=bool(settings.get("animations", True)),
                time_speed=int(settings.get("time_speed", 1)),
            ),
        )
    except LoadError:
        raise
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        msg = f"malformed save data: {exc!r}"
        raise LoadError(msg) from exc


def _resources_from_dict(data: dict[str, Any]) -> Resources:
    return Resources(**{f.name: float(data[f.name]) for f in fields(Resources)})


def _grid_from_dict(data: dict[str, Any]) -> Grid:
    width = int(data["width"])
    height = int(data["height"])
    pollution = np.asarray(data["pollution"], dtype=np.float64)
    caps = np.asarray(data["pollution_cap"], dtype=np.float64)
    occupancy = np.full((height, width), EMPTY, dtype=np.int64)

    buildings: dict[int, PlacedBuilding] = {}
    for entry in data["buildings"]:
        placed = PlacedBuilding(
            instance_id=int(entry["instance_id"]),
            building_id=str(entry["building_id"]),
            x=int(entry["x"]),
            y=int(entry["y"]),
            width=int(entry["width"]),
            depth=int(entry["depth"]),
            is_active=bool(entry["is_active"]),
            is_powered=bool(entry["is_powered"]),
            efficiency=float(entry["efficiency"]),
        )
        if placed.instance_id in buildings:
            msg = f"building #{placed.instance_id} appears more than once"
            raise LoadError(msg)
        rows = slice(placed.y, placed.y + placed.depth)
        cols = slice(placed.x, placed.x + placed.width)
        inside = (
            placed.x >= 0
            and placed.y >= 0
            and placed.x + placed.width <= width
            and placed.y + placed.depth <= height
        )
        if not inside:
            msg = f"building #{placed.instance_id} lies outside the grid"
            raise LoadError(msg)
        if np.any(occupancy[rows, cols] != EMPTY):
            msg = f"building #{placed.instance_id} overlaps another building"
            raise LoadError(msg)
        occupancy[rows, cols] = placed.instance_id
        buildings[placed.instance_id] = placed

    return Grid(
        width=width,
        height=height,
        buildings=buildings,
        occupancy=occupancy,
        pollution=pollution,
        pollution_cap=caps,
        next_instance_id=int(data["next_instance_id"]),
    )


def save_state(state: GameState, path: str | Path) -> None:
    """Write ``state`` to ``path`` as JSON."""
    path = Path(path)
    with path.open("w") as f:
        json.dump(state_to_dict(state), f)
    logger.info("Saved tick %d to %s", state.tick_count, path)


def load_state(path: str | Path) -> GameState:
    """Read a state previously written by ``save_state``.

    Raises:
        LoadError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        with path.open("r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise LoadError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} does not contain a saved game"
        raise LoadError(msg)
    state = state_from_dict(data)
    logger.info("Loaded tick %d from %s", state.tick_count, path)
    return state


def load_or_new(
    path: str | Path,
    difficulty: Difficulty,
    difficulties: DifficultyConfig,
    config: SimulationConfig | None = None,
) -> GameState:
    """Load ``path``, falling back to a new game if it cannot be restored."""
    try:
        return load_state(path)
    except LoadError as exc:
        logger.warning("Starting a new game: %s", exc)
        return new_game(difficulty, difficulties, config)
