"""Forward and reverse geocoding against the public Nominatim endpoints."""

import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends

from config import Settings, get_settings
from models.location import Location

logger = logging.getLogger(__name__)


class Geocoder:
    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client

    async def search(self, query: str) -> Optional[Location]:
        """First match for a free-text address, or None."""
        resp = await self.client.get(
            "/search",
            params={
                "format": "json",
                "q": query,
                "countrycodes": self.settings.geocode_country,
                "limit": 1,
            },
        )
        resp.raise_for_status()
        data = resp.json()
        if not data:
            return None

        result = data[0]
        location = Location(
            latitude=float(result["lat"]),
            longitude=float(result["lon"]),
            address=result.get("display_name") or query,
        )
        logger.info("Geocoded %r to %s, %s", query, location.latitude, location.longitude)
        return location

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        resp = await self.client.get(
            "/reverse", params={"format": "json", "lat": latitude, "lon": longitude}
        )
        resp.raise_for_status()
        data = resp.json() or {}
        return data.get("display_name")


def short_address(display_name: str, parts: int = 3) -> str:
    """Keep the first few comma-separated parts of a Nominatim display name."""
    return ",".join(display_name.split(",")[:parts])


async def get_geocoder(settings: Settings = Depends(get_settings)) -> AsyncIterator[Geocoder]:
    async with httpx.AsyncClient(
        base_url=settings.nominatim_url,
        timeout=settings.geocode_timeout,
        headers={"User-Agent": settings.geocode_user_agent},
    ) as client:
        yield Geocoder(settings, client)
