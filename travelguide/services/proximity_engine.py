# travelguide/services/proximity_engine.py
# Decides which POIs are "arrived at" for a position and keeps the per-POI cooldown ledger.

import logging
from typing import Dict, List, Optional, Sequence

from travelguide.core.config import settings
from travelguide.models.dto import NextPOI, PointOfInterest, Position
from travelguide.utils.clock import Clock, now_ms
from travelguide.utils.haversine import distance_meters

logger = logging.getLogger(__name__)

class ProximityTracker:
    """Radius test plus cooldown for a snapshot of (position, catalog).

    - The catalog is passed in on every call and never cached.
    - The cooldown ledger maps POI id -> last-triggered time (ms). Entries are
      only ever added or overwritten by `mark_triggered`; staleness is decided
      at query time.
    - Input is not validated. Sanitizing coordinates and radii is the content
      source's job.
    """

    def __init__(self, cooldown_period_ms: Optional[int] = None, clock: Clock = now_ms):
        if cooldown_period_ms is None:
            cooldown_period_ms = settings.COOLDOWN_PERIOD_MS
        self.cooldown_period_ms = cooldown_period_ms
        self._clock = clock
        self._last_triggered: Dict[str, int] = {}

    def distance_to(self, position: Position, poi: PointOfInterest) -> float:
        """Distance in meters between a position and a POI centre."""
        return distance_meters(position.latitude, position.longitude, poi.latitude, poi.longitude)

    def find_nearby_pois(self, position: Position, catalog: Sequence[PointOfInterest]) -> List[PointOfInterest]:
        """Every POI whose radius contains the position, boundary included, in catalog order."""
        nearby: List[PointOfInterest] = []
        for poi in catalog:
            if self.distance_to(position, poi) <= poi.radius:
                nearby.append(poi)
        return nearby

    def is_eligible(self, poi_id: str) -> bool:
        """True if the POI was never triggered or its cooldown has fully elapsed."""
        last = self._last_triggered.get(poi_id)
        if last is None:
            return True
        return self._clock() - last > self.cooldown_period_ms

    def mark_triggered(self, poi_id: str) -> None:
        """Start the cooldown for a POI. Call this before its narration begins."""
        self._last_triggered[poi_id] = self._clock()
        logger.debug(f"POI {poi_id} marked triggered")

    def last_triggered(self, poi_id: str) -> Optional[int]:
        return self._last_triggered.get(poi_id)

    def cooldown_remaining_ms(self, poi_id: str) -> int:
        """Milliseconds until the POI is eligible again (0 if it already is)."""
        if self.is_eligible(poi_id):
            return 0
        elapsed = self._clock() - self._last_triggered[poi_id]
        # eligibility needs elapsed > cooldown, so one more millisecond is required
        return self.cooldown_period_ms - elapsed + 1

    def get_triggerable_pois(self, position: Position, catalog: Sequence[PointOfInterest]) -> List[PointOfInterest]:
        """Nearby POIs that are out of cooldown.

        Catalog order is kept (no distance sort); callers narrating only the
        first result get a catalog-order tie-break.
        """
        nearby = self.find_nearby_pois(position, catalog)
        return [poi for poi in nearby if self.is_eligible(poi.id)]

    def get_next_poi(self, position: Position, catalog: Sequence[PointOfInterest]) -> Optional[NextPOI]:
        """Closest eligible POI regardless of radius, or None if nothing is eligible.

        Equal distances resolve to the POI appearing first in the catalog.
        """
        closest: Optional[PointOfInterest] = None
        closest_distance = float("inf")

        for poi in catalog:
            if not self.is_eligible(poi.id):
                continue
            distance = self.distance_to(position, poi)
            if closest is None or distance < closest_distance:
                closest = poi
                closest_distance = distance

        if closest is None:
            return None
        return NextPOI(poi=closest, distance=closest_distance)
