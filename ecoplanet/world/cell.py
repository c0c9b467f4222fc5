"""Cell — a read-only projection of a single tile in the grid.

Cells are not stored; ``Grid.cell_at`` assembles one on demand from the
pollution layers and the building registry.  Every tile of a building's
footprint reports the same activity, power and efficiency as its anchor.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Cell:
    """A single tile as seen by presentation layers.

    Attributes:
        x: Column position.
        y: Row position.
        building: Identifier of the occupying building, or None.
        instance_id: Registry id of the occupying building, or None.
        ref_x: Anchor column of the occupying building, or None.
        ref_y: Anchor row of the occupying building, or None.
        pollution: Current pollution (0..pollution_cap).
        pollution_cap: Ceiling on pollution for this tile.
        is_active: User toggle (mirrors the anchor).
        is_powered: Derived power state (mirrors the anchor).
        efficiency: Derived efficiency (mirrors the anchor).
    """

    x: int
    y: int
    building: str | None = None
    instance_id: int | None = None
    ref_x: int | None = None
    ref_y: int | None = None
    pollution: float = 0.0
    pollution_cap: float = 100.0
    is_active: bool = True
    is_powered: bool = True
    efficiency: float = 1.0

    @property
    def is_anchor(self) -> bool:
        return self.building is not None and (self.x, self.y) == (self.ref_x, self.ref_y)
