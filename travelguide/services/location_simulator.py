# travelguide/services/location_simulator.py
# Stand-in location source: fixed positions or a looping route played back on the event loop.

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from travelguide.core.config import settings
from travelguide.models.dto import Position
from travelguide.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

LocationCallback = Callable[[Position], None]


class LocationSimulator:
    """Emits Position samples to a callback, like a device location source would."""

    def __init__(self, on_update: Optional[LocationCallback] = None, clock: Clock = now_ms, accuracy: Optional[float] = None):
        self._on_update = on_update
        self._clock = clock
        self.accuracy = settings.SIMULATED_ACCURACY_M if accuracy is None else accuracy
        self._route: List[Tuple[float, float]] = []
        self._index = 0
        self._task: Optional[asyncio.Task] = None
        self._simulating = False

    def _emit(self, lat: float, lon: float) -> Position:
        position = Position(latitude=lat, longitude=lon, accuracy=self.accuracy, timestamp=self._clock())
        if self._on_update is not None:
            self._on_update(position)
        return position

    def set_location(self, lat: float, lon: float) -> Position:
        """Emit a single sample at the given coordinates."""
        return self._emit(lat, lon)

    def start_route_simulation(
        self,
        route: Sequence[Tuple[float, float]],
        interval_ms: Optional[int] = None,
        on_update: Optional[LocationCallback] = None,
    ) -> None:
        """Play back `route` (lat, lon pairs), one point per interval, looping forever.

        The first point is emitted immediately. Requires a running event loop.
        """
        if self._simulating:
            self.stop_simulation()
        if interval_ms is None:
            interval_ms = settings.SIMULATION_INTERVAL_MS
        if on_update is not None:
            self._on_update = on_update

        self._route = [(float(lat), float(lon)) for lat, lon in route]
        self._index = 0
        self._simulating = True

        if self._route:
            self._emit(*self._route[0])

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(interval_ms / 1000))
        logger.info(f"Route simulation started with {len(self._route)} points every {interval_ms} ms")

    async def _run(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            if not self._route:
                continue
            self._index += 1
            if self._index >= len(self._route):
                self._index = 0  # loop back to start
            self._emit(*self._route[self._index])

    def stop_simulation(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._simulating = False

    def is_active(self) -> bool:
        return self._simulating
