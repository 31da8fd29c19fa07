# travelguide/services/driving_session.py
# Composes the proximity tracker and the narration dispatcher for each new position.

import uuid
from typing import List, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict
from structlog.contextvars import bound_contextvars

from travelguide.models.dto import NextPOI, PointOfInterest, Position
from travelguide.services.narration_service import NarrationDispatcher
from travelguide.services.proximity_engine import ProximityTracker

log = structlog.get_logger()


class ProximitySnapshot(BaseModel):
    """What one position update produced."""
    model_config = ConfigDict(frozen=True)

    position: Position
    triggerable: List[PointOfInterest]
    next_poi: Optional[NextPOI] = None
    narrated: Optional[PointOfInterest] = None


class DrivingSession:
    """
    Caller-side glue between location samples, the tracker and the dispatcher.

    Only the first triggerable POI is narrated per update; the rest stay
    eligible and are offered again on the next position.
    """

    def __init__(self, tracker: ProximityTracker, dispatcher: NarrationDispatcher):
        self.tracker = tracker
        self.dispatcher = dispatcher
        self.session_id = str(uuid.uuid4())
        self.last_narrated_poi_id: Optional[str] = None
        self.last_snapshot: Optional[ProximitySnapshot] = None

    def handle_position(self, position: Position, catalog: Sequence[PointOfInterest]) -> ProximitySnapshot:
        with bound_contextvars(session_id=self.session_id):
            triggerable = self.tracker.get_triggerable_pois(position, catalog)
            next_poi = self.tracker.get_next_poi(position, catalog)

            log.info(
                "position_evaluated",
                latitude=position.latitude,
                longitude=position.longitude,
                catalog_size=len(catalog),
                triggerable=len(triggerable),
                next_poi=next_poi.poi.id if next_poi else None,
                next_poi_distance_m=round(next_poi.distance) if next_poi else None,
            )

            narrated: Optional[PointOfInterest] = None
            if triggerable:
                narrated = triggerable[0]
                # before speaking, so a queued narration cannot be offered twice
                self.tracker.mark_triggered(narrated.id)
                self.dispatcher.speak(narrated.fact)
                self.last_narrated_poi_id = narrated.id
                log.info("poi_triggered", poi_id=narrated.id, poi_name=narrated.name)

        self.last_snapshot = ProximitySnapshot(
            position=position,
            triggerable=triggerable,
            next_poi=next_poi,
            narrated=narrated,
        )
        return self.last_snapshot

    def stop(self) -> None:
        self.dispatcher.stop()
        self.last_snapshot = None
        self.last_narrated_poi_id = None
        with bound_contextvars(session_id=self.session_id):
            log.info("session_stopped")
