"""Tests for ecoplanet.catalog - building definitions and difficulty table."""

from __future__ import annotations

from pathlib import Path

import pytest

from ecoplanet.catalog.definitions import (
    BuildingCatalog,
    BuildingDefinition,
    ConfigurationError,
)
from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig
from ecoplanet.world.stats import StatKind

CONFIG_DIR = Path(__file__).parent.parent / "config"


class TestBuildingDefinition:
    """Tests for parsing and validating one entry."""

    def test_minimal_entry(self) -> None:
        definition = BuildingDefinition.from_mapping("hut", {"energy_consumption": -3})
        assert definition.name == "hut"
        assert definition.size == (1, 1)
        assert definition.energy_consumption == -3.0
        assert not definition.is_producer
        assert not definition.needs_water

    def test_stat_tables_parsed(self) -> None:
        definition = BuildingDefinition.from_mapping(
            "turbine",
            {"energy_consumption": 15, "stat_scaling": {"Wind": 0.02}, "effects": {"air": 1}},
        )
        assert definition.is_producer
        assert definition.stat_scaling == {StatKind.WIND: 0.02}
        assert definition.effects[StatKind.AIR] == 1.0

    def test_missing_energy(self) -> None:
        with pytest.raises(ConfigurationError, match="energy_consumption"):
            BuildingDefinition.from_mapping("hut", {"cost": 5})

    def test_unknown_stat(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown stat"):
            BuildingDefinition.from_mapping("hut", {"energy_consumption": 0, "effects": {"fire": 1}})

    def test_bad_footprint(self) -> None:
        with pytest.raises(ConfigurationError, match="footprint"):
            BuildingDefinition.from_mapping("hut", {"energy_consumption": 0, "size": [0, 2]})

    def test_negative_cost(self) -> None:
        with pytest.raises(ConfigurationError, match="cost"):
            BuildingDefinition.from_mapping("hut", {"energy_consumption": 0, "cost": -1})

    def test_unknown_water_source(self) -> None:
        with pytest.raises(ConfigurationError, match="water_source"):
            BuildingDefinition.from_mapping(
                "well",
                {"energy_consumption": 0, "water_source": "river"},
            )

    def test_non_numeric_value(self) -> None:
        with pytest.raises(ConfigurationError):
            BuildingDefinition.from_mapping("hut", {"energy_consumption": "lots"})

    def test_entry_must_be_mapping(self) -> None:
        with pytest.raises(ConfigurationError):
            BuildingDefinition.from_mapping("hut", [1, 2])  # type: ignore[arg-type]


class TestBuildingCatalog:
    """Tests for the catalog lookup."""

    def test_lookup(self, catalog: BuildingCatalog) -> None:
        assert catalog.lookup("solar").is_solar
        assert "solar" in catalog
        assert "ghost" not in catalog

    def test_lookup_unknown(self, catalog: BuildingCatalog) -> None:
        with pytest.raises(ConfigurationError, match="ghost"):
            catalog.lookup("ghost")
        assert catalog.get("ghost") is None

    def test_iteration(self, catalog: BuildingCatalog) -> None:
        assert len(list(catalog)) == len(catalog)

    def test_shipped_catalog_loads(self) -> None:
        catalog = BuildingCatalog.from_yaml(CONFIG_DIR / "buildings.yaml")
        assert len(catalog) == 19
        assert catalog.lookup("coal_plant").size == (2, 2)
        assert catalog.lookup("rain_collector").water_source == "rain"
        assert catalog.lookup("cloud_seeder").induces_rain

    def test_yaml_error_surfaces(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("buildings:\n  hut:\n    cost: 5\n")
        with pytest.raises(ConfigurationError):
            BuildingCatalog.from_yaml(path)


class TestDifficultyConfig:
    """Tests for the difficulty table."""

    def test_default_levels(self) -> None:
        table = DifficultyConfig.default()
        assert table.lookup(Difficulty.EASY).size == 20
        assert table.lookup(Difficulty.NORMAL).money_multiplier == 1.0
        assert table.lookup(Difficulty.HARD).stat_multiplier == 0.6

    def test_missing_level(self, difficulties: DifficultyConfig) -> None:
        with pytest.raises(ConfigurationError, match="easy"):
            difficulties.lookup(Difficulty.EASY)

    def test_from_mapping(self) -> None:
        table = DifficultyConfig.from_mapping({"Hard": {"size": 8, "stat_multiplier": 0.3}})
        level = table.lookup(Difficulty.HARD)
        assert level.size == 8
        assert level.money_multiplier == 1.0
        assert level.label == "Hard"

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DifficultyConfig.from_mapping({"nightmare": {"size": 5}})

    def test_missing_size_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DifficultyConfig.from_mapping({"easy": {"money_multiplier": 2}})

    def test_shipped_table_matches_default(self) -> None:
        table = DifficultyConfig.from_yaml(CONFIG_DIR / "difficulty.yaml")
        assert table == DifficultyConfig.default()
