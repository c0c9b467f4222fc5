"""Config — load simulation tunables from YAML files.

Tick cadence, day length, weather probabilities, storage and pollution
constants live in YAML and are parsed into a typed dataclass here.  The
building catalog and difficulty table are loaded separately by
``ecoplanet.catalog``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from ecoplanet.world.weather import WeatherController


@dataclass(frozen=True)
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        base_interval_ms: Tick interval at speed 1.
        floor_interval_ms: Shortest allowed tick interval.
        day_length: Ticks per full 24-hour cycle.
        initial_money: Starting money before the difficulty multiplier.
        initial_water: Starting water stock.
        initial_max_water: Starting storage shown before the first tick.
        initial_max_energy: Starting energy ceiling shown before the
            first tick.
        start_time_of_day: Hour at which a new game begins.
        rain_start_probability: Base chance per dry tick that rain starts.
        rain_bonus_per_enhancer: Extra chance per operating rain enhancer.
        rain_stop_probability: Chance per tick that unlocked rain stops.
        minimum_rain_ticks: Locked-on shower length at speed 1.
        base_water_storage: Storage capacity with no buildings.
        earth_storage_bonus: Extra storage per point of Earth.
        pollution_decay: Pollution removed from every tile per tick.
        pollution_cap: Default per-tile pollution ceiling.
        diminishing_divisor: Stat value at which gains would reach zero
            without the floor.
        diminishing_floor: Smallest fraction of a positive gain kept.
    """

    seed: int = 42
    base_interval_ms: float = 1000.0
    floor_interval_ms: float = 50.0
    day_length: int = 120
    initial_money: float = 1000.0
    initial_water: float = 500.0
    initial_max_water: float = 500.0
    initial_max_energy: float = 100.0
    start_time_of_day: float = 8.0

    # Weather
    rain_start_probability: float = 0.005
    rain_bonus_per_enhancer: float = 0.01
    rain_stop_probability: float = 0.02
    minimum_rain_ticks: int = 30

    # Water storage
    base_water_storage: float = 50.0
    earth_storage_bonus: float = 10.0

    # Pollution and stat growth
    pollution_decay: float = 1.0
    pollution_cap: float = 100.0
    diminishing_divisor: float = 150.0
    diminishing_floor: float = 0.1

    def weather_controller(self) -> WeatherController:
        """Build the weather machine configured by this file."""
        return WeatherController(
            day_length=self.day_length,
            start_probability=self.rain_start_probability,
            bonus_per_enhancer=self.rain_bonus_per_enhancer,
            stop_probability=self.rain_stop_probability,
            minimum_rain_ticks=self.minimum_rain_ticks,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys absent from the file keep their dataclass defaults; unknown
        keys are ignored.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
