"""Test doubles: a controllable clock and a recording narration backend."""

from dataclasses import dataclass
from typing import Callable, List, Optional

from travelguide.models.dto import PointOfInterest, Position, ResolvedSpeech


class FakeClock:
    """Simulated epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@dataclass
class SpeakCall:
    text: str
    speech: ResolvedSpeech
    on_done: Callable[[], None]
    on_stopped: Callable[[], None]
    on_error: Callable[[Exception], None]


class RecordingBackend:
    """Narration backend that records every call and lets the test decide the outcome."""

    def __init__(self, outcome: Optional[Callable[[SpeakCall], None]] = None) -> None:
        self.calls: List[SpeakCall] = []
        self.stop_all_count = 0
        self._outcome = outcome

    def speak(self, text, speech, on_done, on_stopped, on_error) -> None:
        call = SpeakCall(text, speech, on_done, on_stopped, on_error)
        self.calls.append(call)
        if self._outcome is not None:
            self._outcome(call)

    def stop_all(self) -> None:
        self.stop_all_count += 1

    @property
    def last(self) -> SpeakCall:
        return self.calls[-1]

    @property
    def spoken(self) -> List[str]:
        return [c.text for c in self.calls]


def make_poi(poi_id: str, lat: float, lon: float, radius: float = 200.0, **overrides) -> PointOfInterest:
    data = {
        "id": poi_id,
        "name": f"POI {poi_id}",
        "latitude": lat,
        "longitude": lon,
        "radius": radius,
        "fact": f"Fact about {poi_id}.",
        "category": None,
    }
    data.update(overrides)
    return PointOfInterest(**data)


def make_position(lat: float, lon: float, timestamp: int = 0) -> Position:
    return Position(latitude=lat, longitude=lon, accuracy=10.0, timestamp=timestamp)
