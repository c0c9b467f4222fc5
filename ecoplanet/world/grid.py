"""Grid — the immutable spatial snapshot of the planet surface.

A Grid pairs a registry of placed buildings with per-tile NumPy layers
(occupancy, pollution, pollution cap).  Buildings own their activity,
power and efficiency, so every tile of a footprint reads the same values
without any per-tile copying.  Grids are never modified after
construction; the resolution pipeline and the editing operations build
new ones.

``GridStore`` holds the current game state and swaps it wholesale on
commit, so readers always see one complete tick.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ecoplanet.world.cell import Cell

if TYPE_CHECKING:
    from ecoplanet.simulation.state import GameState

EMPTY = -1
DEFAULT_POLLUTION_CAP = 100.0


@dataclass(frozen=True)
class PlacedBuilding:
    """One building instance on the grid.

    Attributes:
        instance_id: Stable registry identifier.
        building_id: Catalog identifier of the building type.
        x: Anchor (top-left) column.
        y: Anchor (top-left) row.
        width: Footprint extent along x.
        depth: Footprint extent along y.
        is_active: User toggle.
        is_powered: Power state derived on the last tick.
        efficiency: Efficiency derived on the last tick.
    """

    instance_id: int
    building_id: str
    x: int
    y: int
    width: int = 1
    depth: int = 1
    is_active: bool = True
    is_powered: bool = True
    efficiency: float = 1.0

    def footprint(self) -> Iterator[tuple[int, int]]:
        """Yield every ``(x, y)`` tile the building occupies."""
        for dx in range(self.width):
            for dy in range(self.depth):
                yield self.x + dx, self.y + dy


@dataclass(frozen=True, eq=False)
class Grid:
    """Immutable grid snapshot.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        buildings: Registry of placed buildings keyed by instance id.
        occupancy: Instance id per tile (``EMPTY`` if vacant), ``[y, x]``.
        pollution: Pollution per tile, ``[y, x]``.
        pollution_cap: Pollution ceiling per tile, ``[y, x]``.
        next_instance_id: Id handed to the next placed building.  It only
            grows, so a demolished building's id is never reused.
    """

    width: int
    height: int
    buildings: Mapping[int, PlacedBuilding] = field(repr=False)
    occupancy: NDArray[np.int64] = field(repr=False)
    pollution: NDArray[np.float64] = field(repr=False)
    pollution_cap: NDArray[np.float64] = field(repr=False)
    next_instance_id: int = 0

    def __post_init__(self) -> None:
        """Check layer shapes and the id counter, then freeze the arrays."""
        shape = (self.height, self.width)
        for name in ("occupancy", "pollution", "pollution_cap"):
            layer = getattr(self, name)
            if layer.shape != shape:
                msg = f"{name} has shape {layer.shape}, expected {shape}"
                raise ValueError(msg)
            layer.setflags(write=False)
        if self.buildings and max(self.buildings) >= self.next_instance_id:
            msg = (
                f"next_instance_id {self.next_instance_id} must exceed "
                f"every registered id (max {max(self.buildings)})"
            )
            raise ValueError(msg)
        object.__setattr__(self, "buildings", MappingProxyType(dict(self.buildings)))

    @classmethod
    def empty(
        cls,
        width: int,
        height: int,
        pollution_cap: float = DEFAULT_POLLUTION_CAP,
    ) -> Grid:
        """Create a vacant grid with zero pollution."""
        return cls(
            width=width,
            height=height,
            buildings={},
            occupancy=np.full((height, width), EMPTY, dtype=np.int64),
            pollution=np.zeros((height, width), dtype=np.float64),
            pollution_cap=np.full((height, width), pollution_cap, dtype=np.float64),
        )

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def instance_at(self, x: int, y: int) -> PlacedBuilding | None:
        """Return the building covering ``(x, y)``, if any.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        self._check_bounds(x, y)
        instance_id = int(self.occupancy[y, x])
        if instance_id == EMPTY:
            return None
        return self.buildings[instance_id]

    def cell_at(self, x: int, y: int) -> Cell:
        """Return the read-only projection of the tile at ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        placed = self.instance_at(x, y)
        pollution = float(self.pollution[y, x])
        cap = float(self.pollution_cap[y, x])
        if placed is None:
            return Cell(x=x, y=y, pollution=pollution, pollution_cap=cap)
        return Cell(
            x=x,
            y=y,
            building=placed.building_id,
            instance_id=placed.instance_id,
            ref_x=placed.x,
            ref_y=placed.y,
            pollution=pollution,
            pollution_cap=cap,
            is_active=placed.is_active,
            is_powered=placed.is_powered,
            efficiency=placed.efficiency,
        )

    def cells(self) -> Iterator[Cell]:
        """Yield every tile, row by row."""
        for y in range(self.height):
            for x in range(self.width):
                yield self.cell_at(x, y)

    def anchors(self) -> list[PlacedBuilding]:
        """Return placed buildings in column-major anchor order.

        Column-major order (x, then y) fixes the sequence in which
        per-building stat effects are applied within a tick.
        """
        return sorted(self.buildings.values(), key=lambda b: (b.x, b.y))

    def evolve(self, **changes: object) -> Grid:
        """Return a new Grid with the given fields replaced."""
        return replace(self, **changes)

    def equals(self, other: Grid) -> bool:
        """Return True if both grids hold identical buildings and layers."""
        return (
            self.width == other.width
            and self.height == other.height
            and self.next_instance_id == other.next_instance_id
            and dict(self.buildings) == dict(other.buildings)
            and np.array_equal(self.occupancy, other.occupancy)
            and np.array_equal(self.pollution, other.pollution)
            and np.array_equal(self.pollution_cap, other.pollution_cap)
        )

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)


class GridStore:
    """Holder of the authoritative game state.

    ``commit`` replaces the whole state in one reference swap; readers
    calling ``snapshot`` or ``state`` never observe a partial tick.
    """

    def __init__(self, state: GameState) -> None:
        self._lock = threading.Lock()
        self._state = state

    @property
    def state(self) -> GameState:
        with self._lock:
            return self._state

    def snapshot(self) -> Grid:
        """Return the current immutable grid."""
        return self.state.grid

    def commit(self, next_state: GameState) -> None:
        """Atomically replace the current state."""
        with self._lock:
            self._state = next_state
