# routers/profile.py
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from auth.guards import require_role
from auth.jwt_handler import get_current_user
from database import get_db
from models.location import AddressSearch, DistanceFilter, GpsFix, Location, geo_point
from models.user import KitchenLocation, ProfileUpdate, Session
from services.geocoding import Geocoder, get_geocoder, short_address
from services.location_store import LocationStore, get_location_store
from services.orders import convert_mongo_document

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"], dependencies=[Depends(require_role())])

PROFILE_FIELDS = (
    "email",
    "full_name",
    "is_cook",
    "avatar_url",
    "phone_number",
    "address",
    "latitude",
    "longitude",
    "average_rating",
    "total_ratings",
)


def _profile_out(profile: dict) -> dict:
    out = {"id": profile["_id"]}
    for field in PROFILE_FIELDS:
        out[field] = convert_mongo_document(profile.get(field))
    out["has_kitchen_location"] = bool(profile.get("location"))
    return out


async def _save_coordinates(db: AsyncIOMotorDatabase, user: Session, latitude: float, longitude: float) -> dict:
    point = geo_point(latitude, longitude)
    await db["profiles"].update_one(
        {"_id": user.id},
        {"$set": {"latitude": latitude, "longitude": longitude, "location": point}},
    )
    if user.is_cook:
        # listings are searched by their own copy of the kitchen point
        await db["listings"].update_many({"cook_id": user.id}, {"$set": {"location": point}})
    return point


#-----------------------------------------Profile---------------------------------------#
@router.get("/profile")
async def get_profile(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    profile = await db["profiles"].find_one({"_id": current_user.id})
    if not profile:
        profile = {"_id": current_user.id, "email": current_user.email,
                   "full_name": current_user.full_name, "is_cook": current_user.is_cook}
    return {"profile": _profile_out(profile)}


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    update_data = data.model_dump(exclude_unset=True, exclude={"latitude", "longitude"})
    try:
        if update_data:
            await db["profiles"].update_one(
                {"_id": current_user.id}, {"$set": update_data}, upsert=True
            )
        if data.latitude is not None and data.longitude is not None:
            await _save_coordinates(db, current_user, data.latitude, data.longitude)
    except PyMongoError:
        logger.exception("Profile update failed for %s", current_user.id)
        raise HTTPException(status_code=503, detail="Failed to update profile")

    profile = await db["profiles"].find_one({"_id": current_user.id})
    return {
        "status": "success",
        "message": "Profile updated successfully!",
        "profile": _profile_out(profile),
    }


@router.post("/profile/kitchen-location")
async def set_kitchen_location(
    fix: KitchenLocation,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
):
    try:
        await _save_coordinates(db, current_user, fix.latitude, fix.longitude)
    except PyMongoError:
        logger.exception("Kitchen location save failed for %s", current_user.id)
        raise HTTPException(status_code=503, detail="Database sync failed")

    message = "Kitchen location saved!"
    address = None
    try:
        display_name = await geocoder.reverse(fix.latitude, fix.longitude)
    except httpx.HTTPError:
        logger.warning("Reverse geocoding failed for %s, %s", fix.latitude, fix.longitude)
        message = "Could not fetch address text, but coordinates saved."
    else:
        if display_name:
            address = short_address(display_name)
            await db["profiles"].update_one({"_id": current_user.id}, {"$set": {"address": address}})

    return {
        "status": "success",
        "message": message,
        "latitude": fix.latitude,
        "longitude": fix.longitude,
        "address": address,
    }


#-----------------------------------------Location---------------------------------------#
@router.get("/location")
async def get_location(locations: LocationStore = Depends(get_location_store)):
    return locations.to_dict()


@router.put("/location")
async def set_location(location: Location, locations: LocationStore = Depends(get_location_store)):
    await locations.set_location(location)
    return {"status": "success", "message": "Location updated!", **locations.to_dict()}


@router.post("/location/current")
async def use_current_location(fix: GpsFix, locations: LocationStore = Depends(get_location_store)):
    await locations.use_current_position(fix.latitude, fix.longitude)
    return {"status": "success", "message": "Location updated!", **locations.to_dict()}


@router.post("/location/search")
async def search_location(
    search: AddressSearch,
    locations: LocationStore = Depends(get_location_store),
    geocoder: Geocoder = Depends(get_geocoder),
):
    try:
        found = await geocoder.search(search.query)
    except httpx.HTTPError:
        logger.exception("Address search failed for %r", search.query)
        raise HTTPException(status_code=502, detail="Could not search location.")

    if found is None:
        raise HTTPException(
            status_code=404, detail="Location not found. Try a broader area (e.g., 'Kanpur')."
        )

    await locations.set_location(found)
    return {
        "status": "success",
        "message": f"Location updated to: {found.address or search.query}",
        **locations.to_dict(),
    }


@router.put("/location/distance")
async def set_distance(
    data: DistanceFilter, locations: LocationStore = Depends(get_location_store)
):
    await locations.set_distance_filter(data.distance_km)
    return {"status": "success", **locations.to_dict()}
