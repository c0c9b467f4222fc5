"""Weather — the day/night cycle and the two-state rain machine.

Advanced first in each tick so that the resolution passes see the new
time of day and rain state.  Rain follows a small transition table:

- ``DRY``: start raining with probability
  ``start + bonus * rain_enhancers``; a new shower is locked on for
  ``minimum_rain_ticks * speed`` ticks so its wall-clock length does not
  depend on the game speed.
- ``SHOWER``: rain timer still running; count it down, no draw.
- ``RAINING``: timer exhausted; stop with ``stop_probability`` per tick.

Only ``DRY`` and ``RAINING`` consume a random draw.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24.0
DAWN = 6.0
DUSK = 18.0


class RainPhase(Enum):
    """Rain machine states."""

    DRY = "dry"
    SHOWER = "shower"
    RAINING = "raining"


@dataclass(frozen=True)
class WeatherState:
    """Time and rain state carried between ticks.

    Attributes:
        time_of_day: Hours since midnight, in [0, 24).
        is_raining: Whether it is currently raining.
        rain_timer: Remaining locked-on rain ticks.
    """

    time_of_day: float = 8.0
    is_raining: bool = False
    rain_timer: int = 0

    @property
    def is_daytime(self) -> bool:
        """Return True strictly between dawn and dusk."""
        return DAWN < self.time_of_day < DUSK

    @property
    def phase(self) -> RainPhase:
        if not self.is_raining:
            return RainPhase.DRY
        if self.rain_timer > 0:
            return RainPhase.SHOWER
        return RainPhase.RAINING


Transition = Callable[["WeatherController", WeatherState, int, float, "Generator"], tuple[bool, int]]


def _from_dry(
    controller: WeatherController,
    state: WeatherState,
    rain_enhancers: int,
    speed: float,
    rng: Generator,
) -> tuple[bool, int]:
    p_start = controller.start_probability + controller.bonus_per_enhancer * rain_enhancers
    if rng.random() < p_start:
        return True, int(round(controller.minimum_rain_ticks * speed))
    return False, state.rain_timer


def _from_shower(
    controller: WeatherController,
    state: WeatherState,
    rain_enhancers: int,
    speed: float,
    rng: Generator,
) -> tuple[bool, int]:
    return True, state.rain_timer - 1


def _from_raining(
    controller: WeatherController,
    state: WeatherState,
    rain_enhancers: int,
    speed: float,
    rng: Generator,
) -> tuple[bool, int]:
    if rng.random() < controller.stop_probability:
        return False, 0
    return True, 0


TRANSITIONS: dict[RainPhase, Transition] = {
    RainPhase.DRY: _from_dry,
    RainPhase.SHOWER: _from_shower,
    RainPhase.RAINING: _from_raining,
}


@dataclass(frozen=True)
class WeatherController:
    """Evolves WeatherState by one tick.

    Attributes:
        day_length: Ticks per full 24-hour cycle.
        start_probability: Base chance per dry tick that rain starts.
        bonus_per_enhancer: Extra start chance per operating rain enhancer.
        stop_probability: Chance per tick that unlocked rain stops.
        minimum_rain_ticks: Locked-on shower length at speed 1.
    """

    day_length: int = 120
    start_probability: float = 0.005
    bonus_per_enhancer: float = 0.01
    stop_probability: float = 0.02
    minimum_rain_ticks: int = 30

    def advance(
        self,
        state: WeatherState,
        rain_enhancers: int,
        speed: float,
        rng: Generator,
    ) -> WeatherState:
        """Return the weather for the next tick.

        Args:
            state: Weather at the end of the previous tick.
            rain_enhancers: Operating rain-inducing buildings.
            speed: Current time-speed multiplier.
            rng: Seeded random generator.
        """
        time_of_day = (state.time_of_day + HOURS_PER_DAY / self.day_length) % HOURS_PER_DAY
        phase = state.phase
        is_raining, rain_timer = TRANSITIONS[phase](self, state, rain_enhancers, speed, rng)
        if is_raining != state.is_raining:
            logger.debug(
                "Rain %s at %.2fh (enhancers=%d, timer=%d)",
                "started" if is_raining else "stopped",
                time_of_day,
                rain_enhancers,
                rain_timer,
            )
        return WeatherState(
            time_of_day=time_of_day,
            is_raining=is_raining,
            rain_timer=rain_timer,
        )
