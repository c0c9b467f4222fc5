"""Per-building breakdowns of the aggregate resources."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecoplanet.catalog.definitions import BuildingCatalog, BuildingDefinition
    from ecoplanet.simulation.state import GameState


class ResourceKind(Enum):
    MONEY = "money"
    ENERGY = "energy"
    WATER = "water"


def _contribution(kind: ResourceKind, definition: BuildingDefinition, efficiency: float) -> float:
    if kind is ResourceKind.MONEY:
        return definition.resource_generation * efficiency
    if kind is ResourceKind.ENERGY:
        if definition.is_producer:
            return definition.energy_consumption * efficiency
        return definition.energy_consumption
    return definition.water_generation - definition.water_consumption


def resource_breakdown(
    state: GameState,
    catalog: BuildingCatalog,
    kind: ResourceKind,
) -> list[tuple[str, float]]:
    """Sum each building type's contribution to one resource.

    Only active buildings running above zero efficiency count.

    Returns:
        ``(name, value)`` pairs, largest first, zero entries omitted.
    """
    totals: dict[str, float] = {}
    for placed in state.grid.anchors():
        if not placed.is_active or placed.efficiency <= 0:
            continue
        definition = catalog.get(placed.building_id)
        if definition is None:
            continue
        value = _contribution(kind, definition, placed.efficiency)
        if value != 0:
            totals[definition.name] = totals.get(definition.name, 0.0) + value
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)
