"""Entry point for ``python -m ecoplanet``.

Loads the YAML config, building catalog and difficulty table, builds a
simulation engine, optionally lays out a starting scenario, and either
steps headlessly or opens a Pygame window.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

import yaml

from ecoplanet.catalog.definitions import BuildingCatalog, ConfigurationError
from ecoplanet.catalog.difficulty import Difficulty, DifficultyConfig
from ecoplanet.simulation.config import SimulationConfig
from ecoplanet.simulation.engine import SimulationEngine
from ecoplanet.simulation.persistence import load_or_new, save_state
from ecoplanet.world.editing import PlacementError

logger = logging.getLogger("ecoplanet")

_CONFIG_DIR = pathlib.Path(__file__).resolve().parent.parent / "config"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ecoplanet",
        description="EcoPlanet - planetary terraforming simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_CONFIG_DIR / "default.yaml",
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--catalog",
        type=pathlib.Path,
        default=_CONFIG_DIR / "buildings.yaml",
        help="Path to the building catalog (default: config/buildings.yaml)",
    )
    parser.add_argument(
        "--difficulty-table",
        type=pathlib.Path,
        default=_CONFIG_DIR / "difficulty.yaml",
        help="Path to the difficulty table (default: config/difficulty.yaml)",
    )
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=Difficulty.NORMAL.value,
        help="Difficulty for a new game (default: normal)",
    )
    parser.add_argument(
        "--scenario",
        type=pathlib.Path,
        help="YAML list of {building, x, y} placements for a new game",
    )
    parser.add_argument("--load", type=pathlib.Path, help="Resume from a save file")
    parser.add_argument("--save", type=pathlib.Path, help="Write a save file on exit")
    parser.add_argument(
        "--ticks",
        type=int,
        default=100,
        help="Ticks to run in headless mode (default: 100)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Step without opening a window and print a summary",
    )
    parser.add_argument(
        "--speed",
        type=int,
        default=1,
        help="Time-speed multiplier (default: 1)",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=32,
        help="Pixel size per grid cell (default: 32)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser.parse_args(argv)


def apply_scenario(engine: SimulationEngine, path: pathlib.Path) -> None:
    """Place every building listed in a scenario file.

    Entries that cannot be placed are logged and skipped.
    """
    with path.open("r") as f:
        entries = yaml.safe_load(f) or []
    for entry in entries:
        try:
            engine.place(str(entry["building"]), int(entry["x"]), int(entry["y"]))
        except (PlacementError, ConfigurationError) as exc:
            logger.warning("Scenario entry %s skipped: %s", entry, exc)


def summary(engine: SimulationEngine) -> list[str]:
    """Return a short text report of the current state."""
    state = engine.state
    res = state.resources
    stats = state.stats.clamped()
    return [
        f"tick {state.tick_count}  time {state.weather.time_of_day:05.2f}h"
        f"  {'raining' if state.weather.is_raining else 'dry'}",
        f"money {res.money:.1f} ({res.last_income:+.2f}/tick)",
        f"energy {res.energy:+.1f} (produced {res.max_energy:.1f}, demand {res.energy_demand:.1f})",
        f"water {res.water:.1f}/{res.max_water:.1f}",
        f"workforce {res.workforce:.0f}/{res.workforce_demand:.0f}",
        "  ".join(f"{name} {value:.1f}%" for name, value in stats.as_dict().items()),
    ]


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, create engine, run headless or launch renderer."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    catalog = BuildingCatalog.from_yaml(args.catalog)
    difficulties = DifficultyConfig.from_yaml(args.difficulty_table)
    difficulty = Difficulty(args.difficulty)

    initial_state = None
    if args.load is not None:
        initial_state = load_or_new(args.load, difficulty, difficulties, config)
    engine = SimulationEngine(
        config=config,
        catalog=catalog,
        difficulties=difficulties,
        difficulty=difficulty,
        initial_state=initial_state,
    )
    if args.scenario is not None and engine.tick == 0:
        apply_scenario(engine, args.scenario)
    engine.set_speed(args.speed)

    if args.headless:
        engine.run(args.ticks)
        for line in summary(engine):
            print(line)
    else:
        from ecoplanet.ui.pygame_client import PygameRenderer

        renderer = PygameRenderer(
            engine=engine,
            cell_size=args.cell_size,
            save_path=args.save,
        )
        renderer.run(fps=args.fps)

    if args.save is not None:
        save_state(engine.state, args.save)


if __name__ == "__main__":
    main()
