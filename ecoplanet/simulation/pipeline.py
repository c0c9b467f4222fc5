"""ResolutionPipeline — turns one game state into the next.

Each tick advances the weather and then runs the passes in a fixed
order.  Every pass reads the previous snapshot plus the totals produced
by earlier passes in the same tick; nothing flows backwards.

0. Pollution-cap mitigation
1. Workforce, water production and storage capacity
2. Energy production
3. Demand totals, power gate and water ratio
4. Per-building power, efficiency, money and stat effects
5. Spatial pollution emission
6. Pollution clamp and water settlement

The pipeline never mutates its input: it allocates new layers and a new
building registry and returns a new ``GameState``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.simulation.state import GameState, Resources
from ecoplanet.world.grid import PlacedBuilding
from ecoplanet.world.spatial import add_square, reduce_square
from ecoplanet.world.stats import Stats
from ecoplanet.world.weather import WeatherController, WeatherState

if TYPE_CHECKING:
    from numpy.random import Generator

    from ecoplanet.catalog.definitions import BuildingCatalog, BuildingDefinition
    from ecoplanet.catalog.difficulty import DifficultyConfig

logger = logging.getLogger(__name__)


def stat_efficiency(definition: BuildingDefinition, stats: Stats) -> float:
    """Return ``1 + sum(scaling * stat)``, or 0 if any minimum is unmet."""
    for kind, minimum in definition.min_stats.items():
        if stats[kind] < minimum:
            return 0.0
    efficiency = 1.0
    for kind, factor in definition.stat_scaling.items():
        efficiency += stats[kind] * factor
    return efficiency


def diminished_gain(
    current: float,
    change: float,
    *,
    divisor: float = 150.0,
    floor: float = 0.1,
) -> float:
    """Scale a positive stat change down as the stat grows.

    Negative changes pass through unchanged.

    Args:
        current: Stat value before the change.
        change: Nominal change.
        divisor: Stat value at which the factor would reach zero.
        floor: Smallest factor applied.
    """
    if change <= 0:
        return change
    return change * max(floor, 1.0 - current / divisor)


@dataclass
class TickTotals:
    """Aggregates accumulated across the passes of a single tick.

    Attributes:
        workforce: Workers supplied (pass 1).
        workforce_demand: Workers required (pass 1).
        water_produced: Water generated this tick (pass 1).
        storage_capacity: Water storage capacity (pass 1).
        potential_energy: Energy production estimate (pass 2).
        potential_energy_demand: Demand of active consumers (pass 3).
        potential_water_demand: Water demand of active buildings (pass 3).
        grid_has_power: Whole-grid power gate (pass 3).
        water_ratio: Fraction of water demand that can be met (pass 3).
        energy_produced: Energy produced (pass 4).
        energy_demand: Energy demanded (pass 4).
        water_consumed: Water drawn by running consumers (pass 4).
        money_delta: Money earned (pass 4).
    """

    workforce: float = 0.0
    workforce_demand: float = 0.0
    water_produced: float = 0.0
    storage_capacity: float = 0.0
    potential_energy: float = 0.0
    potential_energy_demand: float = 0.0
    potential_water_demand: float = 0.0
    grid_has_power: bool = True
    water_ratio: float = 1.0
    energy_produced: float = 0.0
    energy_demand: float = 0.0
    water_consumed: float = 0.0
    money_delta: float = 0.0

    @property
    def workforce_ratio(self) -> float:
        if self.workforce_demand <= 0:
            return 1.0
        return min(1.0, self.workforce / self.workforce_demand)


@dataclass
class _Tick:
    """Working set for one resolution run."""

    previous: GameState
    weather: WeatherState
    anchors: list[PlacedBuilding]
    definitions: dict[int, BuildingDefinition | None]
    totals: TickTotals = field(default_factory=TickTotals)

    @property
    def is_day(self) -> bool:
        return self.weather.is_daytime

    def operating(self) -> list[tuple[PlacedBuilding, BuildingDefinition]]:
        """Active anchors whose definition resolved."""
        result = []
        for placed in self.anchors:
            definition = self.definitions[placed.instance_id]
            if placed.is_active and definition is not None:
                result.append((placed, definition))
        return result


@dataclass(frozen=True)
class ResolutionPipeline:
    """Resolves ticks against a catalog, a difficulty table and tunables.

    Attributes:
        catalog: Building definitions.
        difficulties: Difficulty table (for the stat multiplier).
        config: Simulation tunables.
    """

    catalog: BuildingCatalog
    difficulties: DifficultyConfig
    config: SimulationConfig = field(default_factory=SimulationConfig)

    @property
    def weather_controller(self) -> WeatherController:
        return self.config.weather_controller()

    def resolve(self, state: GameState, rng: Generator) -> GameState:
        """Return the state one tick after ``state``.

        Args:
            state: Previous state (left untouched).
            rng: Seeded random generator; only weather draws from it.
        """
        anchors = state.grid.anchors()
        definitions = self._resolve_definitions(anchors)
        weather = self.weather_controller.advance(
            state.weather,
            self.count_rain_enhancers(anchors, definitions),
            state.settings.time_speed,
            rng,
        )
        tick = _Tick(
            previous=state,
            weather=weather,
            anchors=anchors,
            definitions=definitions,
        )

        caps = self._mitigate_pollution_caps(tick)
        self._tally_supply(tick)
        self._tally_production(tick)
        self._tally_demand(tick)
        buildings, stats, pollution = self._apply_effects(tick)
        self._emit_pollution(tick, buildings, pollution)
        water = self._settle(tick, pollution, caps)

        totals = tick.totals
        previous = state.resources
        grid = state.grid.evolve(
            buildings={b.instance_id: b for b in buildings},
            pollution=pollution,
            pollution_cap=caps,
        )
        logger.debug(
            "Tick %d: income=%.2f energy=%.2f/%.2f water=%.2f/%.2f workforce=%d/%d",
            state.tick_count + 1,
            totals.money_delta,
            totals.energy_produced,
            totals.energy_demand,
            water,
            totals.storage_capacity,
            totals.workforce,
            totals.workforce_demand,
        )
        return state.evolve(
            grid=grid,
            resources=Resources(
                money=previous.money + totals.money_delta,
                last_income=totals.money_delta,
                energy=totals.energy_produced - totals.energy_demand,
                energy_demand=totals.energy_demand,
                max_energy=totals.energy_produced,
                water=water,
                max_water=totals.storage_capacity,
                workforce=totals.workforce,
                workforce_demand=totals.workforce_demand,
            ),
            stats=stats,
            tick_count=state.tick_count + 1,
            weather=weather,
        )

    def count_rain_enhancers(
        self,
        anchors: list[PlacedBuilding],
        definitions: dict[int, BuildingDefinition | None],
    ) -> int:
        """Count operating rain-inducing buildings from the previous tick."""
        count = 0
        for placed in anchors:
            definition = definitions[placed.instance_id]
            if (
                definition is not None
                and definition.induces_rain
                and placed.is_active
                and placed.is_powered
                and placed.efficiency > 0
            ):
                count += 1
        return count

    def _resolve_definitions(
        self,
        anchors: list[PlacedBuilding],
    ) -> dict[int, BuildingDefinition | None]:
        definitions: dict[int, BuildingDefinition | None] = {}
        for placed in anchors:
            definition = self.catalog.get(placed.building_id)
            if definition is None:
                logger.warning(
                    "Unknown building %r at (%d, %d); treating it as inert",
                    placed.building_id,
                    placed.x,
                    placed.y,
                )
            definitions[placed.instance_id] = definition
        return definitions

    # -- pass 0 --

    def _mitigate_pollution_caps(self, tick: _Tick) -> NDArray[np.float64]:
        grid = tick.previous.grid
        caps = np.full((grid.height, grid.width), self.config.pollution_cap, dtype=np.float64)
        for placed, definition in tick.operating():
            if definition.pollution_cap_reduction and definition.pollution_radius:
                reduce_square(
                    caps,
                    placed.x,
                    placed.y,
                    definition.pollution_radius,
                    definition.pollution_cap_reduction,
                )
        return caps

    # -- pass 1 --

    def _tally_supply(self, tick: _Tick) -> None:
        totals = tick.totals
        previous = tick.previous
        water_stock = previous.resources.water
        totals.storage_capacity = (
            self.config.base_water_storage
            + self.config.earth_storage_bonus * previous.stats.earth
        )

        for placed, definition in tick.operating():
            if definition.workers_provided:
                awake = tick.is_day or definition.is_robot
                watered = not definition.needs_water or water_stock > 0
                if awake and watered:
                    totals.workforce += definition.workers_provided
            totals.workforce_demand += definition.workers_required

            if definition.water_source == "rain" and tick.weather.is_raining:
                totals.water_produced += definition.water_generation
            # Ambient sources run on last tick's power state.
            if definition.water_source == "ambient" and placed.is_powered:
                totals.water_produced += definition.water_generation

            totals.storage_capacity += definition.water_storage

    # -- pass 2 --

    def _tally_production(self, tick: _Tick) -> None:
        stats = tick.previous.stats
        for _, definition in tick.operating():
            if not definition.is_producer:
                continue
            if definition.is_solar and not tick.is_day:
                continue
            tick.totals.potential_energy += (
                definition.energy_consumption * stat_efficiency(definition, stats)
            )

    # -- pass 3 --

    def _tally_demand(self, tick: _Tick) -> None:
        totals = tick.totals
        for _, definition in tick.operating():
            if definition.energy_consumption < 0:
                totals.potential_energy_demand += abs(definition.energy_consumption)
            totals.potential_water_demand += definition.water_consumption

        # All consumers share one gate: a deficit de-powers every one of them.
        totals.grid_has_power = totals.potential_energy >= totals.potential_energy_demand

        if totals.potential_water_demand > 0:
            available = tick.previous.resources.water + totals.water_produced
            totals.water_ratio = min(1.0, available / totals.potential_water_demand)
        else:
            totals.water_ratio = 1.0

    # -- pass 4 --

    def _apply_effects(
        self,
        tick: _Tick,
    ) -> tuple[list[PlacedBuilding], Stats, NDArray[np.float64]]:
        previous = tick.previous
        totals = tick.totals
        water_stock = previous.resources.water
        stat_multiplier = self.difficulties.lookup(previous.difficulty).stat_multiplier
        stats = previous.stats

        buildings: list[PlacedBuilding] = []
        for placed in tick.anchors:
            definition = tick.definitions[placed.instance_id]
            is_powered = True
            efficiency = 1.0

            if definition is None or not placed.is_active:
                is_powered = False
                efficiency = 0.0
            elif definition.is_producer:
                if definition.is_solar and not tick.is_day:
                    efficiency = 0.0
                else:
                    efficiency = stat_efficiency(definition, previous.stats)
                    totals.energy_produced += definition.energy_consumption * efficiency
            else:
                totals.energy_demand += abs(definition.energy_consumption)
                if not totals.grid_has_power and definition.energy_consumption < 0:
                    is_powered = False
                    efficiency = 0.0
                else:
                    if definition.workers_required:
                        efficiency *= totals.workforce_ratio
                    if definition.needs_water:
                        totals.water_consumed += definition.water_consumption
                        efficiency *= totals.water_ratio
                    # Housing sleeps at night and idles without water.
                    if definition.workers_provided > 0:
                        asleep = not tick.is_day and not definition.is_robot
                        dry = definition.needs_water and not water_stock > 0
                        if asleep or dry:
                            efficiency = 0.0

            if definition is not None and placed.is_active and is_powered and efficiency > 0:
                totals.money_delta += definition.resource_generation * efficiency
                stats = self._apply_stat_effects(
                    stats,
                    definition,
                    efficiency,
                    stat_multiplier,
                )

            buildings.append(replace(placed, is_powered=is_powered, efficiency=efficiency))

        pollution = np.maximum(0.0, previous.grid.pollution - self.config.pollution_decay)
        return buildings, stats, pollution

    def _apply_stat_effects(
        self,
        stats: Stats,
        definition: BuildingDefinition,
        efficiency: float,
        stat_multiplier: float,
    ) -> Stats:
        for kind, magnitude in definition.effects.items():
            if not magnitude:
                continue
            current = stats[kind]
            change = diminished_gain(
                current,
                magnitude * efficiency * stat_multiplier,
                divisor=self.config.diminishing_divisor,
                floor=self.config.diminishing_floor,
            )
            stats = stats.with_value(kind, max(0.0, current + change))
        return stats

    # -- pass 5 --

    def _emit_pollution(
        self,
        tick: _Tick,
        buildings: list[PlacedBuilding],
        pollution: NDArray[np.float64],
    ) -> None:
        for placed in buildings:
            definition = tick.definitions[placed.instance_id]
            if definition is None:
                continue
            if not (placed.is_active and placed.is_powered and placed.efficiency > 0):
                continue
            if definition.pollution_amount and definition.pollution_radius:
                add_square(
                    pollution,
                    placed.x,
                    placed.y,
                    definition.pollution_radius,
                    definition.pollution_amount * placed.efficiency,
                )

    # -- pass 6 --

    def _settle(
        self,
        tick: _Tick,
        pollution: NDArray[np.float64],
        caps: NDArray[np.float64],
    ) -> float:
        np.clip(pollution, 0.0, caps, out=pollution)
        totals = tick.totals
        net_water = totals.water_produced - totals.water_consumed
        stock = tick.previous.resources.water + net_water
        return max(0.0, min(totals.storage_capacity, stock))


def step(
    state: GameState,
    catalog: BuildingCatalog,
    difficulties: DifficultyConfig,
    rng: Generator,
    config: SimulationConfig | None = None,
) -> GameState:
    """Resolve a single tick as a pure function of its inputs.

    Args:
        state: Previous game state.
        catalog: Building definitions.
        difficulties: Difficulty table.
        rng: Seeded random generator.
        config: Tunables; defaults are used when omitted.

    Returns:
        The next game state.
    """
    pipeline = ResolutionPipeline(
        catalog=catalog,
        difficulties=difficulties,
        config=config or SimulationConfig(),
    )
    return pipeline.resolve(state, rng)
