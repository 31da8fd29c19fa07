# travelguide/services/content_provider.py
# Supplies POI catalog snapshots: from the POI API when reachable, otherwise from a local JSON file.
# Malformed POIs are dropped here so the proximity tracker only ever sees sane input.

import json
import logging
import math
import os
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from travelguide.core.config import settings
from travelguide.models.dto import PointOfInterest

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "..", "static", "pois.json")


def _coordinate(value: Any, limit: float) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def parse_pois(raw_items: Iterable[Any], default_category: Optional[str] = None) -> List[PointOfInterest]:
    """Turn raw POI payloads into validated models, skipping anything unusable.

    - `name` falls back to `title`, `fact` to a generic sentence.
    - A missing or zero radius gets the configured default; negative or non-finite radii are rejected.
    - Coordinates must be finite and inside the valid lat/lon ranges.
    """
    pois: List[PointOfInterest] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object POI entry: {raw!r}")
            continue

        lat = _coordinate(raw.get("latitude"), 90.0)
        lon = _coordinate(raw.get("longitude"), 180.0)
        if lat is None or lon is None:
            logger.warning(f"Invalid POI coordinates: {raw.get('id')!r}")
            continue

        radius = _coordinate(raw.get("radius") or settings.DEFAULT_POI_RADIUS_M, math.inf)
        if radius is None or radius <= 0:
            logger.warning(f"Invalid POI radius: {raw.get('id')!r}")
            continue

        poi_id = raw.get("id")
        name = raw.get("name") or raw.get("title")
        try:
            pois.append(
                PointOfInterest(
                    id=str(poi_id) if poi_id is not None else None,
                    name=name,
                    latitude=lat,
                    longitude=lon,
                    radius=radius,
                    fact=raw.get("fact") or f"{name} is an interesting location.",
                    category=raw.get("category") or default_category,
                )
            )
        except ValidationError as e:
            logger.warning(f"Skipping POI {raw.get('id')!r}: {e.error_count()} validation error(s)")
    return pois


class ContentProvider:
    """Catalog source for the driving session.

    - `get_all_pois` reloads the local catalog on each call.
    - `fetch_pois_from_api` / `fetch_all_pois` query the POI API and fall back
      to the local catalog on any HTTP or payload error.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        catalog_path: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url or settings.API_URL
        self.catalog_path = catalog_path or settings.LOCAL_POIS_PATH or DEFAULT_CATALOG_PATH
        self._client = client
        self.pois: List[PointOfInterest] = []

    def _load_pois(self) -> List[PointOfInterest]:
        """Load the local catalog; a JSON array or an object with a `pois` array."""
        try:
            with open(self.catalog_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            raw_items = data.get("pois", []) if isinstance(data, dict) else data
            if not isinstance(raw_items, list):
                raise ValueError("catalog must be a list of POIs")
            self.pois = parse_pois(raw_items)
            logger.info(f"Loaded {len(self.pois)} POIs from local catalog.")
        except FileNotFoundError:
            logger.error(f"POI catalog not found at: {self.catalog_path}")
            self.pois = []
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load POIs: {e}")
            self.pois = []
        return self.pois

    def get_all_pois(self) -> List[PointOfInterest]:
        return self._load_pois()

    def get_poi_by_id(self, poi_id: str) -> Optional[PointOfInterest]:
        for poi in self.pois:
            if poi.id == poi_id:
                return poi
        return None

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self._client is not None:
            response = await self._client.get(url, params=params)
        else:
            async with httpx.AsyncClient(timeout=settings.API_TIMEOUT) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected API response format")
        return data

    async def fetch_pois_from_api(self, lat: float, lon: float, radius: Optional[int] = None) -> List[PointOfInterest]:
        """POIs around a point from `/api/pois`, or the local catalog if the API is unavailable."""
        if radius is None:
            radius = settings.FETCH_RADIUS_M
        url = f"{self.api_url.rstrip('/')}/api/pois"
        logger.info(f"Fetching POIs from API: {url} (lat={lat}, lon={lon}, radius={radius})")

        try:
            data = await self._get_json(url, params={"lat": lat, "lon": lon, "radius": radius})
            pois = parse_pois(data.get("pois") or [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch POIs from API: {e}")
            return self._load_pois()

        logger.info(f"Fetched {len(pois)} POIs from API")
        self.pois = pois
        return pois

    async def fetch_all_pois(self) -> List[PointOfInterest]:
        """Every POI known to the API from `/api/all-pois`, or the local catalog on failure."""
        url = f"{self.api_url.rstrip('/')}/api/all-pois"
        logger.info(f"Fetching POIs from: {url}")

        try:
            data = await self._get_json(url)
            raw_items = data.get("pois")
            if not data.get("success") or not isinstance(raw_items, list):
                raise ValueError("API returned unexpected format")
            pois = parse_pois(raw_items, default_category="wikipedia")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching POIs: {e}")
            return self._load_pois()

        logger.info(f"Valid POIs count: {len(pois)}")
        self.pois = pois
        return pois
