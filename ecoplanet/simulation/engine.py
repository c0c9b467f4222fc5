"""SimulationEngine — owns the live game and advances it tick by tick.

Holds the catalogs, tunables, the seeded RNG and the ``GridStore``.
Each ``step`` runs the resolution pipeline against the committed state
and commits the result in one swap:

1. Advance weather (time of day, rain machine)
2. Resolve passes 0-6 against the previous snapshot
3. Commit the next state

Editing operations (place, demolish, toggle) go through the engine so
that they are committed the same way between ticks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

import numpy as np
from numpy.random import Generator

from ecoplanet.catalog.definitions import BuildingCatalog
from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig
from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.simulation.pipeline import ResolutionPipeline
from ecoplanet.simulation.scheduler import TickScheduler
from ecoplanet.simulation.state import GameState, cycle_speed, new_game, slow_down
from ecoplanet.world import editing
from ecoplanet.world.grid import GridStore

logger = logging.getLogger(__name__)


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Loaded simulation configuration.
        catalog: Building definitions.
        difficulties: Difficulty table.
        difficulty: Difficulty used when no initial state is given.
        initial_state: Optional state to resume from.
        store: Holder of the committed state.
        pipeline: Per-tick resolution passes.
        rng: Master seeded random generator.
    """

    config: SimulationConfig
    catalog: BuildingCatalog
    difficulties: DifficultyConfig = field(default_factory=DifficultyConfig.default)
    difficulty: Difficulty = Difficulty.NORMAL
    initial_state: GameState | None = field(default=None, repr=False)
    store: GridStore = field(init=False, repr=False)
    pipeline: ResolutionPipeline = field(init=False, repr=False)
    rng: Generator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Build the RNG, pipeline and initial state from config."""
        self.rng = np.random.default_rng(self.config.seed)
        self.pipeline = ResolutionPipeline(
            catalog=self.catalog,
            difficulties=self.difficulties,
            config=self.config,
        )
        state = self.initial_state or new_game(self.difficulty, self.difficulties, self.config)
        self._check_catalog(state)
        self.store = GridStore(state)
        logger.info(
            "Engine ready: %s %dx%d, %d building types",
            state.difficulty.value,
            state.grid.width,
            state.grid.height,
            len(self.catalog),
        )

    def _check_catalog(self, state: GameState) -> None:
        """Reject a state whose buildings reference unknown definitions.

        Raises:
            ConfigurationError: If any placed building is not in the catalog.
        """
        for placed in state.grid.buildings.values():
            self.catalog.lookup(placed.building_id)

    @property
    def state(self) -> GameState:
        return self.store.state

    @property
    def tick(self) -> int:
        return self.state.tick_count

    def step(self) -> GameState:
        """Advance the simulation by one tick and commit the result."""
        next_state = self.pipeline.resolve(self.store.state, self.rng)
        self.store.commit(next_state)
        return next_state

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.step()

    def scheduler(self) -> TickScheduler:
        """Build a scheduler that steps this engine while playing."""
        return TickScheduler(
            on_tick=self.step,
            is_playing=lambda: self.state.is_playing,
            base_interval_ms=self.config.base_interval_ms,
            floor_interval_ms=self.config.floor_interval_ms,
        )

    # -- editing --

    def place(self, building_id: str, x: int, y: int) -> None:
        self.store.commit(
            editing.place_building(
                self.state,
                self.catalog,
                building_id,
                x,
                y,
                pollution_cap=self.config.pollution_cap,
            ),
        )

    def demolish(self, x: int, y: int) -> None:
        self.store.commit(editing.demolish(self.state, self.catalog, x, y))

    def toggle(self, x: int, y: int) -> None:
        self.store.commit(editing.toggle_active(self.state, x, y))

    def cycle_speed(self) -> int:
        """Advance the time speed and return the new multiplier."""
        self.store.commit(cycle_speed(self.state))
        return self.state.settings.time_speed

    def slow_down(self) -> int:
        """Step the time speed down and return the new multiplier."""
        self.store.commit(slow_down(self.state))
        return self.state.settings.time_speed

    def set_speed(self, speed: int) -> None:
        """Set the time-speed multiplier directly.

        Raises:
            ValueError: If ``speed`` is not positive.
        """
        if speed <= 0:
            msg = f"speed must be positive, got {speed}"
            raise ValueError(msg)
        settings = replace(self.state.settings, time_speed=speed)
        self.store.commit(self.state.evolve(settings=settings))
