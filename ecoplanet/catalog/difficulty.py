"""Difficulty table — grid size and multipliers per difficulty level."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from ecoplanet.catalog.definitions import ConfigurationError


class Difficulty(Enum):
    """Selectable difficulty levels."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultyLevel:
    """Parameters for one difficulty.

    Attributes:
        size: Grid edge length in tiles.
        money_multiplier: Scales the starting money.
        stat_multiplier: Scales every stat effect.
        label: Display label.
        description: Display description.
    """

    size: int
    money_multiplier: float
    stat_multiplier: float
    label: str = ""
    description: str = ""


@dataclass(frozen=True)
class DifficultyConfig:
    """Read-only map from Difficulty to DifficultyLevel."""

    levels: Mapping[Difficulty, DifficultyLevel]

    def lookup(self, level: Difficulty) -> DifficultyLevel:
        """Return the parameters for ``level``.

        Raises:
            ConfigurationError: If the level has no entry.
        """
        try:
            return self.levels[level]
        except KeyError:
            msg = f"no difficulty entry for {level.value!r}"
            raise ConfigurationError(msg) from None

    @classmethod
    def default(cls) -> DifficultyConfig:
        return cls(
            levels={
                Difficulty.EASY: DifficultyLevel(
                    size=20,
                    money_multiplier=2.0,
                    stat_multiplier=1.5,
                    label="Easy",
                    description="Large map, generous funding.",
                ),
                Difficulty.NORMAL: DifficultyLevel(
                    size=15,
                    money_multiplier=1.0,
                    stat_multiplier=1.0,
                    label="Normal",
                ),
                Difficulty.HARD: DifficultyLevel(
                    size=12,
                    money_multiplier=0.5,
                    stat_multiplier=0.6,
                    label="Hard",
                    description="Cramped map, slow progress.",
                ),
            },
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DifficultyConfig:
        """Build the table from ``{level_name: {size, ...}}`` data.

        Raises:
            ConfigurationError: On unknown levels or invalid values.
        """
        levels: dict[Difficulty, DifficultyLevel] = {}
        for name, entry in data.items():
            try:
                level = Difficulty(str(name).lower())
                params = DifficultyLevel(
                    size=int(entry["size"]),
                    money_multiplier=float(entry.get("money_multiplier", 1.0)),
                    stat_multiplier=float(entry.get("stat_multiplier", 1.0)),
                    label=str(entry.get("label", level.name.title())),
                    description=str(entry.get("description", "")),
                )
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                msg = f"difficulty {name!r}: {exc}"
                raise ConfigurationError(msg) from exc
            if params.size < 1:
                msg = f"difficulty {name!r}: size must be positive"
                raise ConfigurationError(msg)
            levels[level] = params
        return cls(levels=levels)

    @classmethod
    def from_yaml(cls, path: str | Path) -> DifficultyConfig:
        """Load the table from a YAML file with a ``difficulty`` key."""
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_mapping(data.get("difficulty", {}))
