"""Building catalog — static, read-only definitions of every building.

The catalog is authored in YAML and parsed into frozen dataclasses here.
All validation happens at load time so that a malformed entry surfaces
before play begins rather than in the middle of a tick.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ecoplanet.world.stats import StatKind

WATER_SOURCES = (None, "rain", "ambient")


class ConfigurationError(ValueError):
    """A catalog or difficulty entry is missing or malformed."""


@dataclass(frozen=True)
class BuildingDefinition:
    """Static definition of a building type.

    ``energy_consumption`` is signed: positive values are produced,
    negative values are the magnitude a consumer demands.

    Attributes:
        building_id: Catalog key.
        name: Display name.
        cost: Placement price.
        energy_consumption: Signed energy rate per tick.
        size: Footprint as ``(width, depth)`` in tiles.
        category: Free-form grouping used by viewers.
        description: Flavour text.
        color: Hex colour used by 2D viewers.
        water_consumption: Water drawn per tick while running.
        water_generation: Water produced per tick by a water source.
        water_source: ``"rain"`` (produces only while raining),
            ``"ambient"`` (produces while powered) or None.
        water_storage: Extra storage capacity while active.
        workers_required: Workforce needed to run at full efficiency.
        workers_provided: Inhabitants supplied (housing).
        is_robot: Works at night.
        is_solar: Produces only in daylight.
        induces_rain: Raises the chance of rain while operating.
        min_stats: Thresholds below which a producer shuts down.
        stat_scaling: Per-stat multipliers added to base efficiency.
        effects: Per-stat delta applied each tick while operating.
        resource_generation: Money per tick at full efficiency.
        pollution_amount: Pollution emitted per tick.
        pollution_radius: Square radius for emission and mitigation.
        pollution_cap_reduction: Amount subtracted from nearby caps.
    """

    building_id: str
    name: str
    cost: float
    energy_consumption: float
    size: tuple[int, int] = (1, 1)
    category: str = ""
    description: str = ""
    color: str = "#888888"
    water_consumption: float = 0.0
    water_generation: float = 0.0
    water_source: str | None = None
    water_storage: float = 0.0
    workers_required: int = 0
    workers_provided: int = 0
    is_robot: bool = False
    is_solar: bool = False
    induces_rain: bool = False
    min_stats: Mapping[StatKind, float] = field(default_factory=dict)
    stat_scaling: Mapping[StatKind, float] = field(default_factory=dict)
    effects: Mapping[StatKind, float] = field(default_factory=dict)
    resource_generation: float = 0.0
    pollution_amount: float = 0.0
    pollution_radius: int = 0
    pollution_cap_reduction: float = 0.0

    @property
    def is_producer(self) -> bool:
        return self.energy_consumption > 0

    @property
    def needs_water(self) -> bool:
        return self.water_consumption > 0

    @classmethod
    def from_mapping(cls, building_id: str, data: Mapping[str, Any]) -> BuildingDefinition:
        """Parse and validate one catalog entry.

        Args:
            building_id: Catalog key of the entry.
            data: Raw mapping as read from YAML.

        Raises:
            ConfigurationError: If the entry is malformed.
        """
        if not isinstance(data, Mapping):
            msg = f"{building_id}: entry must be a mapping"
            raise ConfigurationError(msg)
        if "energy_consumption" not in data:
            msg = f"{building_id}: missing energy_consumption"
            raise ConfigurationError(msg)

        try:
            size = tuple(int(v) for v in data.get("size", (1, 1)))
            definition = cls(
                building_id=building_id,
                name=str(data.get("name", building_id)),
                cost=float(data.get("cost", 0.0)),
                energy_consumption=float(data["energy_consumption"]),
                size=size,  # type: ignore[arg-type]
                category=str(data.get("category", "")),
                description=str(data.get("description", "")),
                color=str(data.get("color", "#888888")),
                water_consumption=float(data.get("water_consumption", 0.0)),
                water_generation=float(data.get("water_generation", 0.0)),
                water_source=data.get("water_source"),
                water_storage=float(data.get("water_storage", 0.0)),
                workers_required=int(data.get("workers_required", 0)),
                workers_provided=int(data.get("workers_provided", 0)),
                is_robot=bool(data.get("is_robot", False)),
                is_solar=bool(data.get("is_solar", False)),
                induces_rain=bool(data.get("induces_rain", False)),
                min_stats=_stat_map(building_id, data.get("min_stats")),
                stat_scaling=_stat_map(building_id, data.get("stat_scaling")),
                effects=_stat_map(building_id, data.get("effects")),
                resource_generation=float(data.get("resource_generation", 0.0)),
                pollution_amount=float(data.get("pollution_amount", 0.0)),
                pollution_radius=int(data.get("pollution_radius", 0)),
                pollution_cap_reduction=float(
                    data.get("pollution_cap_reduction", 0.0),
                ),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as exc:
            msg = f"{building_id}: {exc}"
            raise ConfigurationError(msg) from exc

        definition.validate()
        return definition

    def validate(self) -> None:
        """Check internal consistency.

        Raises:
            ConfigurationError: On the first problem found.
        """
        problems: list[str] = []
        if len(self.size) != 2 or min(self.size) < 1:
            problems.append(f"footprint {self.size} must be two positive integers")
        if self.cost < 0:
            problems.append("cost must be non-negative")
        if self.pollution_radius < 0:
            problems.append("pollution_radius must be non-negative")
        if self.pollution_amount < 0 or self.pollution_cap_reduction < 0:
            problems.append("pollution amounts must be non-negative")
        if self.water_consumption < 0 or self.water_generation < 0:
            problems.append("water rates must be non-negative")
        if self.water_storage < 0:
            problems.append("water_storage must be non-negative")
        if self.workers_required < 0 or self.workers_provided < 0:
            problems.append("worker counts must be non-negative")
        if self.water_source not in WATER_SOURCES:
            problems.append(f"unknown water_source {self.water_source!r}")
        if problems:
            msg = f"{self.building_id}: " + "; ".join(problems)
            raise ConfigurationError(msg)


def _stat_map(building_id: str, raw: Any) -> dict[StatKind, float]:
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        msg = f"{building_id}: stat tables must be mappings"
        raise ConfigurationError(msg)
    result: dict[StatKind, float] = {}
    for name, value in raw.items():
        try:
            kind = StatKind.parse(str(name))
        except ValueError as exc:
            msg = f"{building_id}: unknown stat {name!r}"
            raise ConfigurationError(msg) from exc
        result[kind] = float(value)
    return result


@dataclass(frozen=True)
class BuildingCatalog:
    """Read-only lookup from building identifier to definition.

    Attributes:
        definitions: All known definitions keyed by identifier.
    """

    definitions: Mapping[str, BuildingDefinition]

    def __contains__(self, building_id: object) -> bool:
        return building_id in self.definitions

    def __iter__(self) -> Iterator[BuildingDefinition]:
        return iter(self.definitions.values())

    def __len__(self) -> int:
        return len(self.definitions)

    def lookup(self, building_id: str) -> BuildingDefinition:
        """Return the definition for ``building_id``.

        Raises:
            ConfigurationError: If the identifier is not in the catalog.
        """
        try:
            return self.definitions[building_id]
        except KeyError:
            msg = f"unknown building {building_id!r}"
            raise ConfigurationError(msg) from None

    def get(self, building_id: str) -> BuildingDefinition | None:
        return self.definitions.get(building_id)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BuildingCatalog:
        """Build a catalog from ``{building_id: entry}`` data.

        Raises:
            ConfigurationError: If any entry is malformed.
        """
        if not isinstance(data, Mapping):
            msg = "catalog must be a mapping of building id to definition"
            raise ConfigurationError(msg)
        return cls(
            definitions={
                str(key): BuildingDefinition.from_mapping(str(key), value)
                for key, value in data.items()
            },
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> BuildingCatalog:
        """Load a catalog from a YAML file with a top-level ``buildings`` key.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If any entry is malformed.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_mapping(data.get("buildings", {}))
