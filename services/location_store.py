import logging
from typing import Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from auth.jwt_handler import get_current_user
from config import Settings, get_settings
from database import get_db
from models.location import ANYWHERE, Location
from models.user import Session

logger = logging.getLogger(__name__)

CURRENT_LOCATION_LABEL = "Current Location"


class LocationStore:
    """A user's last known coordinate, its label and the distance filter.

    Every change is written to the `locations` collection before the call
    returns, so what is stored is always what was last set.
    """

    def __init__(self, db: AsyncIOMotorDatabase, user_id: str, settings: Settings) -> None:
        self.db = db
        self.user_id = user_id
        self.settings = settings
        self.location: Optional[Location] = None
        self.distance_km: int = settings.default_distance_km
        self.loading = False
        self.error: Optional[str] = None

    @property
    def collection(self):
        return self.db["locations"]

    @property
    def needs_permission(self) -> bool:
        return self.location is None

    async def load(self) -> "LocationStore":
        self.loading = True
        try:
            doc = await self.collection.find_one({"_id": self.user_id})
        finally:
            self.loading = False
        if doc:
            if doc.get("latitude") is not None and doc.get("longitude") is not None:
                self.location = Location(
                    latitude=doc["latitude"],
                    longitude=doc["longitude"],
                    address=doc.get("address") or "",
                )
            self.distance_km = doc.get("distance_km", self.distance_km)
        return self

    async def set_location(self, location: Location) -> Location:
        await self.collection.update_one(
            {"_id": self.user_id},
            {"$set": location.model_dump()},
            upsert=True,
        )
        self.location = location
        self.error = None
        logger.info("Location for %s set to %s", self.user_id, location.address or "unnamed")
        return location

    async def use_current_position(self, latitude: float, longitude: float) -> Location:
        return await self.set_location(
            Location(latitude=latitude, longitude=longitude, address=CURRENT_LOCATION_LABEL)
        )

    async def set_distance_filter(self, distance_km: int) -> int:
        await self.collection.update_one(
            {"_id": self.user_id},
            {"$set": {"distance_km": distance_km}},
            upsert=True,
        )
        self.distance_km = distance_km
        return distance_km

    def coordinates(self) -> tuple[float, float]:
        """(lat, long) to search around, using the fallback when nothing is stored."""
        if self.location is None:
            return self.settings.fallback_latitude, self.settings.fallback_longitude
        return self.location.latitude, self.location.longitude

    def to_dict(self) -> dict:
        return {
            "location": self.location.model_dump() if self.location else None,
            "distance_km": self.distance_km,
            "anywhere": self.distance_km == ANYWHERE,
            "needs_permission": self.needs_permission,
            "loading": self.loading,
            "error": self.error,
        }


async def get_location_store(
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Session = Depends(get_current_user),
) -> LocationStore:
    return await LocationStore(db, current_user.id, settings).load()
