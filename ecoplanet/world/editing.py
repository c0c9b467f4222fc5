"""Editing — structural changes to the grid between ticks.

Placing, demolishing and toggling buildings are the only operations that
change the building registry's membership or the user toggle.  They are
pure: each returns a new ``GameState`` and leaves its input untouched.
The resolution pipeline never calls them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from ecoplanet.world.grid import DEFAULT_POLLUTION_CAP, EMPTY, PlacedBuilding

if TYPE_CHECKING:
    from ecoplanet.catalog.definitions import BuildingCatalog, BuildingDefinition
    from ecoplanet.simulation.state import GameState

logger = logging.getLogger(__name__)

REFUND_RATE = 0.5


class PlacementError(ValueError):
    """An editing operation cannot be applied at the requested position."""


def place_building(
    state: GameState,
    catalog: BuildingCatalog,
    building_id: str,
    x: int,
    y: int,
    *,
    pollution_cap: float = DEFAULT_POLLUTION_CAP,
) -> GameState:
    """Place a building with its anchor at ``(x, y)`` and pay for it.

    Args:
        state: Current state.
        catalog: Building definitions.
        building_id: Catalog identifier to place.
        x: Anchor column.
        y: Anchor row.
        pollution_cap: Ceiling restored on the footprint tiles.

    Raises:
        ConfigurationError: If ``building_id`` is not in the catalog.
        PlacementError: If the footprint leaves the grid, overlaps another
            building, or the building is unaffordable.
    """
    definition = catalog.lookup(building_id)
    grid = state.grid
    width, depth = definition.size

    if not grid.in_bounds(x, y) or not grid.in_bounds(x + width - 1, y + depth - 1):
        msg = f"{building_id} ({width}x{depth}) does not fit at ({x}, {y})"
        raise PlacementError(msg)
    footprint = grid.occupancy[y : y + depth, x : x + width]
    if np.any(footprint != EMPTY):
        msg = f"{building_id} at ({x}, {y}) overlaps an existing building"
        raise PlacementError(msg)
    if state.resources.money < definition.cost:
        msg = f"{building_id} costs {definition.cost:.0f}, have {state.resources.money:.0f}"
        raise PlacementError(msg)

    placed = PlacedBuilding(
        instance_id=grid.next_instance_id,
        building_id=building_id,
        x=x,
        y=y,
        width=width,
        depth=depth,
    )
    occupancy = grid.occupancy.copy()
    occupancy[y : y + depth, x : x + width] = placed.instance_id
    caps = grid.pollution_cap.copy()
    caps[y : y + depth, x : x + width] = pollution_cap

    buildings = dict(grid.buildings)
    buildings[placed.instance_id] = placed
    logger.info("Placed %s #%d at (%d, %d)", building_id, placed.instance_id, x, y)
    return state.evolve(
        grid=grid.evolve(
            buildings=buildings,
            occupancy=occupancy,
            pollution_cap=caps,
            next_instance_id=placed.instance_id + 1,
        ),
        resources=replace(state.resources, money=state.resources.money - definition.cost),
    )


def demolish(state: GameState, catalog: BuildingCatalog, x: int, y: int) -> GameState:
    """Remove the building covering ``(x, y)`` and refund half its cost.

    Any tile of the footprint identifies the building.  Pollution on the
    cleared tiles is reset to zero.

    Raises:
        PlacementError: If no building covers ``(x, y)``.
    """
    grid = state.grid
    placed = grid.instance_at(x, y)
    if placed is None:
        msg = f"nothing to demolish at ({x}, {y})"
        raise PlacementError(msg)

    definition = catalog.get(placed.building_id)
    refund = math.floor(definition.cost * REFUND_RATE) if definition is not None else 0

    rows = slice(placed.y, placed.y + placed.depth)
    cols = slice(placed.x, placed.x + placed.width)
    occupancy = grid.occupancy.copy()
    occupancy[rows, cols] = EMPTY
    pollution = grid.pollution.copy()
    pollution[rows, cols] = 0.0

    buildings = dict(grid.buildings)
    del buildings[placed.instance_id]
    logger.info(
        "Demolished %s #%d at (%d, %d), refund %d",
        placed.building_id,
        placed.instance_id,
        placed.x,
        placed.y,
        refund,
    )
    return state.evolve(
        grid=grid.evolve(buildings=buildings, occupancy=occupancy, pollution=pollution),
        resources=replace(state.resources, money=state.resources.money + refund),
    )


def toggle_active(state: GameState, x: int, y: int) -> GameState:
    """Flip the user toggle of the building covering ``(x, y)``.

    The toggle lives on the building instance, so every tile of its
    footprint changes together.

    Raises:
        PlacementError: If no building covers ``(x, y)``.
    """
    grid = state.grid
    placed = grid.instance_at(x, y)
    if placed is None:
        msg = f"no building at ({x}, {y})"
        raise PlacementError(msg)
    buildings = dict(grid.buildings)
    buildings[placed.instance_id] = replace(placed, is_active=not placed.is_active)
    return state.evolve(grid=grid.evolve(buildings=buildings))


def lock_reasons(state: GameState, definition: BuildingDefinition) -> list[str]:
    """Explain why ``definition`` cannot be built right now.

    Returns:
        Human-readable reasons; empty if the building is available.
    """
    reasons: list[str] = []
    money = state.resources.money
    if money < definition.cost:
        reasons.append(f"needs {math.ceil(definition.cost - money)} more money")
    for kind, minimum in definition.min_stats.items():
        if state.stats[kind] < minimum:
            reasons.append(f"requires {kind.value} >= {minimum:g}%")
    return reasons
