"""Pygame 2D visualization for the EcoPlanet simulation.

Renders the grid top-down: building colours, a pollution overlay, and
shading for inactive or unpowered buildings, plus a panel of resources
and stats.  The display refreshes at the Pygame frame rate while a
``TickScheduler`` decides when the simulation steps.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pygame

from ecoplanet.simulation.persistence import save_state
from ecoplanet.world.editing import PlacementError
from ecoplanet.world.stats import StatKind

if TYPE_CHECKING:
    from ecoplanet.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)

# Colour palette
_BG_DAY = (70, 110, 140)
_BG_NIGHT = (30, 36, 48)
_GROUND = (92, 72, 52)
_GRID_LINE = (60, 48, 36)
_SHADE = (0, 0, 0, 140)
_UNPOWERED = (200, 40, 40)
_RAIN = (120, 180, 255, 50)

# Pollution overlay colour (brown smog)
_POLLUTION_COLOUR = np.array([110, 70, 20], dtype=np.float64)


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` to an RGB tuple; falls back to grey."""
    value = value.lstrip("#")
    if len(value) != 6:
        return (136, 136, 136)
    try:
        return tuple(int(value[i : i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]
    except ValueError:
        return (136, 136, 136)


class PygameRenderer:
    """Renders a SimulationEngine state into a Pygame window.

    Attributes:
        engine: The simulation engine to visualise.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        cell_size: int = 32,
        save_path: Path | None = None,
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The simulation engine to render.
            cell_size: Pixel width/height per grid cell.
            save_path: Where the S key writes a save file.
        """
        self.engine = engine
        self.cell_size = cell_size
        self.save_path = save_path
        self.scheduler = engine.scheduler()
        self.scheduler.start(engine.state.settings.time_speed)

        grid = engine.state.grid
        self._panel_width = 240
        self._win_w = grid.width * cell_size + self._panel_width
        self._win_h = max(grid.height * cell_size, 420)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("EcoPlanet")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, advance the scheduler, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            elapsed_ms = self.clock.tick(fps)
            self._handle_events()
            if not self.paused:
                self.scheduler.advance(elapsed_ms)
            self._draw()

        self.scheduler.stop()
        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                    self.scheduler.set_speed(self.engine.cycle_speed())
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                    self.scheduler.set_speed(self.engine.slow_down())
                elif event.key == pygame.K_s and self.save_path is not None:
                    save_state(self.engine.state, self.save_path)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._toggle_at(event.pos)

    def _toggle_at(self, pos: tuple[int, int]) -> None:
        x = pos[0] // self.cell_size
        y = pos[1] // self.cell_size
        if not self.engine.state.grid.in_bounds(x, y):
            return
        try:
            self.engine.toggle(x, y)
        except PlacementError:
            logger.debug("Nothing to toggle at (%d, %d)", x, y)

    def _draw(self) -> None:
        """Render one frame."""
        state = self.engine.state
        self.screen.fill(_BG_DAY if state.weather.is_daytime else _BG_NIGHT)
        self._draw_buildings()
        self._draw_pollution_overlay()
        if state.weather.is_raining:
            self._draw_rain()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_buildings(self) -> None:
        """Fill ground tiles, then each building's footprint."""
        cs = self.cell_size
        grid = self.engine.state.grid
        for y in range(grid.height):
            for x in range(grid.width):
                rect = (x * cs, y * cs, cs, cs)
                pygame.draw.rect(self.screen, _GROUND, rect)
                pygame.draw.rect(self.screen, _GRID_LINE, rect, 1)

        shade = pygame.Surface((cs, cs), pygame.SRCALPHA)
        shade.fill(_SHADE)
        for placed in grid.anchors():
            definition = self.engine.catalog.get(placed.building_id)
            colour = hex_to_rgb(definition.color) if definition else (255, 0, 255)
            rect = pygame.Rect(placed.x * cs, placed.y * cs, placed.width * cs, placed.depth * cs)
            pygame.draw.rect(self.screen, colour, rect.inflate(-2, -2))
            if not placed.is_active or placed.efficiency <= 0:
                for tx, ty in placed.footprint():
                    self.screen.blit(shade, (tx * cs, ty * cs))
            if placed.is_active and not placed.is_powered:
                pygame.draw.rect(self.screen, _UNPOWERED, rect, 2)

    def _draw_pollution_overlay(self) -> None:
        """Draw pollution as a translucent brown overlay."""
        cs = self.cell_size
        grid = self.engine.state.grid
        overlay = pygame.Surface((grid.width * cs, grid.height * cs), pygame.SRCALPHA)
        colour = _POLLUTION_COLOUR.astype(int).tolist()
        for y in range(grid.height):
            for x in range(grid.width):
                val = grid.pollution[y, x]
                if val > 0.5:
                    alpha = int(min(val / 100.0, 1.0) * 160)
                    pygame.draw.rect(overlay, (*colour, alpha), (x * cs, y * cs, cs, cs))
        self.screen.blit(overlay, (0, 0))

    def _draw_rain(self) -> None:
        grid = self.engine.state.grid
        veil = pygame.Surface(
            (grid.width * self.cell_size, grid.height * self.cell_size),
            pygame.SRCALPHA,
        )
        veil.fill(_RAIN)
        self.screen.blit(veil, (0, 0))

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        state = self.engine.state
        res = state.resources
        stats = state.stats.clamped()
        panel_x = state.grid.width * self.cell_size + 10
        y = 10

        weather = "rain" if state.weather.is_raining else "dry"
        lines = [
            f"Tick: {state.tick_count}",
            f"Time: {state.weather.time_of_day:05.2f}h ({weather})",
            f"Speed: x{state.settings.time_speed}",
            f"{'PAUSED' if self.paused else 'RUNNING'}",
            "",
            "--- Resources ---",
            f"Money: {res.money:.0f} ({res.last_income:+.1f})",
            f"Energy: {res.energy:+.1f} ({res.max_energy:.0f}/{res.energy_demand:.0f})",
            f"Water: {res.water:.0f}/{res.max_water:.0f}",
            f"Workers: {res.workforce:.0f}/{res.workforce_demand:.0f}",
            "",
            "--- Planet ---",
        ]
        lines += [f"{kind.name.title()}: {stats[kind]:.1f}%" for kind in StatKind]
        lines += [
            "",
            "--- Controls ---",
            "SPACE: pause",
            "+: faster (cycles)",
            "-: slower",
            "click: toggle building",
            "S: save",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, (220, 220, 220))
            self.screen.blit(surf, (panel_x, y))
            y += 18
