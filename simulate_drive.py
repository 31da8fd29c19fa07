import argparse
import asyncio

from travelguide.logging import configure_logging
from travelguide.models.dto import Position
from travelguide.services.content_provider import ContentProvider
from travelguide.services.driving_session import DrivingSession
from travelguide.services.location_simulator import LocationSimulator
from travelguide.services.narration_service import NarrationDispatcher
from travelguide.services.proximity_engine import ProximityTracker
from travelguide.services.speech_backend import Pyttsx3Backend

# Stockholm City Hall -> Palace -> Vasa Museum
ROUTE = [
    (59.3275, 18.0543),
    (59.3270, 18.0630),
    (59.3268, 18.0717),
    (59.3274, 18.0815),
    (59.3280, 18.0914),
]

async def drive(seconds: float, interval_ms: int, use_api: bool):
    configure_logging()

    provider = ContentProvider()
    if use_api:
        lat, lon = ROUTE[0]
        catalog = await provider.fetch_pois_from_api(lat, lon)
    else:
        catalog = provider.get_all_pois()
    print(f"Loaded {len(catalog)} POIs")

    backend = Pyttsx3Backend()
    session = DrivingSession(ProximityTracker(), NarrationDispatcher(backend))

    def on_position(position: Position):
        snapshot = session.handle_position(position, catalog)
        if snapshot.narrated:
            print(f"Narrating: {snapshot.narrated.name}")
        elif snapshot.next_poi:
            print(f"Next stop: {snapshot.next_poi.poi.name} in {snapshot.next_poi.distance:.0f} m")

    simulator = LocationSimulator(on_update=on_position)
    simulator.start_route_simulation(ROUTE, interval_ms=interval_ms)
    try:
        await asyncio.sleep(seconds)
    finally:
        simulator.stop_simulation()
        session.stop()
        backend.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drive a simulated route through the POI catalog.")
    parser.add_argument("--seconds", type=float, default=15.0)
    parser.add_argument("--interval-ms", type=int, default=2000)
    parser.add_argument("--api", action="store_true", help="Fetch POIs from the POI API instead of the local catalog")
    args = parser.parse_args()
    asyncio.run(drive(args.seconds, args.interval_ms, args.api))
