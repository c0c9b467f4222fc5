"""Tests for ecoplanet.world.grid, cell, spatial and stats."""

import numpy as np
import pytest

from ecoplanet.simulation.state import GameState
from ecoplanet.world.cell import Cell
from ecoplanet.world.grid import EMPTY, Grid, GridStore, PlacedBuilding
from ecoplanet.world.spatial import add_square, reduce_square, square_window
from ecoplanet.world.stats import StatKind, Stats

from conftest import StateFactory


class TestStats:
    """Tests for the Stats record."""

    def test_defaults_zero(self) -> None:
        assert Stats().as_dict() == {"air": 0.0, "greenery": 0.0, "wind": 0.0, "earth": 0.0}

    def test_lookup_by_kind(self) -> None:
        stats = Stats(wind=3.0)
        assert stats[StatKind.WIND] == 3.0

    def test_with_value_copies(self) -> None:
        stats = Stats()
        updated = stats.with_value(StatKind.EARTH, 12.0)
        assert updated.earth == 12.0
        assert stats.earth == 0.0

    def test_clamped(self) -> None:
        clamped = Stats(air=-5.0, greenery=140.0, wind=50.0).clamped()
        assert clamped == Stats(air=0.0, greenery=100.0, wind=50.0)

    def test_parse_case_insensitive(self) -> None:
        assert StatKind.parse("Greenery") is StatKind.GREENERY

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError):
            StatKind.parse("fire")

    def test_from_dict(self) -> None:
        stats = Stats(air=4.0, earth=2.5)
        assert Stats.from_dict(stats.as_dict()) == stats

    def test_from_dict_requires_every_meter(self) -> None:
        with pytest.raises(KeyError):
            Stats.from_dict({"air": 4})


class TestCell:
    """Tests for the Cell projection."""

    def test_empty_defaults(self) -> None:
        cell = Cell(x=1, y=2)
        assert cell.building is None
        assert cell.is_active
        assert cell.is_powered
        assert cell.efficiency == 1.0
        assert not cell.is_anchor

    def test_anchor(self) -> None:
        cell = Cell(x=1, y=1, building="tent", instance_id=0, ref_x=1, ref_y=1)
        assert cell.is_anchor


class TestSpatial:
    """Tests for square-radius stamping."""

    def test_window_clipped(self) -> None:
        rows, cols = square_window(0, 0, 2, width=5, height=4)
        assert (rows.start, rows.stop) == (0, 3)
        assert (cols.start, cols.stop) == (0, 3)

    def test_add_square(self) -> None:
        layer = np.zeros((4, 4))
        add_square(layer, 3, 3, 1, 2.5)
        assert layer.sum() == pytest.approx(4 * 2.5)
        assert layer[3, 3] == 2.5
        assert layer[1, 1] == 0.0

    def test_radius_zero_is_centre_only(self) -> None:
        layer = np.zeros((3, 3))
        add_square(layer, 1, 1, 0, 1.0)
        assert layer.sum() == 1.0

    def test_reduce_floors_at_zero(self) -> None:
        layer = np.full((3, 3), 10.0)
        reduce_square(layer, 1, 1, 1, 30.0)
        assert np.all(layer == 0.0)


class TestGrid:
    """Tests for the immutable Grid snapshot."""

    def test_empty(self) -> None:
        grid = Grid.empty(4, 3)
        assert grid.occupancy.shape == (3, 4)
        assert np.all(grid.occupancy == EMPTY)
        assert np.all(grid.pollution_cap == 100.0)
        assert grid.anchors() == []
        assert grid.next_instance_id == 0

    def test_layers_read_only(self) -> None:
        grid = Grid.empty(2, 2)
        with pytest.raises(ValueError):
            grid.pollution[0, 0] = 1.0

    def test_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError, match="pollution"):
            Grid(
                width=2,
                height=2,
                buildings={},
                occupancy=np.full((2, 2), EMPTY, dtype=np.int64),
                pollution=np.zeros((3, 3)),
                pollution_cap=np.full((2, 2), 100.0),
            )

    def test_counter_must_exceed_registered_ids(self) -> None:
        grid = Grid.empty(2, 2)
        placed = PlacedBuilding(instance_id=3, building_id="shop", x=0, y=0)
        with pytest.raises(ValueError, match="next_instance_id"):
            grid.evolve(buildings={3: placed}, next_instance_id=3)

    def test_cell_at_out_of_bounds(self) -> None:
        with pytest.raises(IndexError):
            Grid.empty(3, 3).cell_at(3, 0)

    def test_cells_count(self) -> None:
        assert len(list(Grid.empty(3, 2).cells())) == 6

    def test_footprint_cells_share_anchor(self, make_state: StateFactory) -> None:
        grid = make_state(buildings=[("block", 1, 0)]).grid
        anchor = grid.cell_at(1, 0)
        other = grid.cell_at(2, 2)
        assert anchor.is_anchor
        assert not other.is_anchor
        assert other.building == "block"
        assert other.instance_id == anchor.instance_id
        assert (other.ref_x, other.ref_y) == (1, 0)
        assert grid.cell_at(0, 0).building is None

    def test_anchors_column_major(self, make_state: StateFactory) -> None:
        grid = make_state(buildings=[("shop", 2, 0), ("shop", 0, 2), ("shop", 0, 1)]).grid
        assert [(b.x, b.y) for b in grid.anchors()] == [(0, 1), (0, 2), (2, 0)]

    def test_footprint(self) -> None:
        placed = PlacedBuilding(instance_id=0, building_id="block", x=1, y=1, width=2, depth=3)
        assert sorted(placed.footprint()) == [(1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (2, 3)]

    def test_equals(self, make_state: StateFactory) -> None:
        a = make_state(buildings=[("shop", 0, 0)]).grid
        b = make_state(buildings=[("shop", 0, 0)]).grid
        c = make_state(buildings=[("shop", 1, 0)]).grid
        assert a.equals(b)
        assert not a.equals(c)


class TestGridStore:
    """Tests for the committed-state holder."""

    def test_commit_swaps_state(self, make_state: StateFactory) -> None:
        first: GameState = make_state()
        second: GameState = make_state(buildings=[("shop", 0, 0)])
        store = GridStore(first)
        assert store.snapshot() is first.grid
        store.commit(second)
        assert store.state is second
        assert store.snapshot() is second.grid
