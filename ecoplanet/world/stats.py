"""Stats — the four terraforming meters.

Each meter is nominally a percentage.  Gameplay formulas only floor them
at zero, so raw values may drift above 100; presentation layers should
read ``Stats.clamped()``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum


class StatKind(Enum):
    """Closed set of terraforming meters."""

    AIR = "air"
    GREENERY = "greenery"
    WIND = "wind"
    EARTH = "earth"

    @classmethod
    def parse(cls, name: str) -> StatKind:
        """Return the StatKind for a case-insensitive name.

        Raises:
            ValueError: If ``name`` is not a known stat.
        """
        return cls(name.lower())


@dataclass(frozen=True)
class Stats:
    """Immutable record of the four meters.

    Attributes:
        air: Breathable atmosphere level.
        greenery: Vegetation coverage.
        wind: Atmospheric circulation.
        earth: Soil quality; also raises water storage capacity.
    """

    air: float = 0.0
    greenery: float = 0.0
    wind: float = 0.0
    earth: float = 0.0

    def __getitem__(self, kind: StatKind) -> float:
        return getattr(self, kind.value)

    def with_value(self, kind: StatKind, value: float) -> Stats:
        """Return a copy with one meter replaced."""
        return replace(self, **{kind.value: value})

    def clamped(self) -> Stats:
        """Return a copy with every meter clamped to [0, 100] for display."""
        return Stats(
            **{f.name: min(100.0, max(0.0, getattr(self, f.name))) for f in fields(self)},
        )

    def as_dict(self) -> dict[str, float]:
        return {kind.value: self[kind] for kind in StatKind}

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> Stats:
        """Read every meter from ``data``.

        Raises:
            KeyError: If a meter is missing.
        """
        return cls(**{kind.value: float(data[kind.value]) for kind in StatKind})
