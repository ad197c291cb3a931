import logging
import uuid
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


async def liked_ids(db: AsyncIOMotorDatabase, user_id: str) -> set[str]:
    rows = await db["favorites"].find(
        {"user_id": user_id}, projection={"listing_id": 1}
    ).to_list(length=None)
    return {r["listing_id"] for r in rows}


async def toggle_favorite(db: AsyncIOMotorDatabase, user_id: str, listing_id: str) -> bool:
    """Flip membership of (user, listing); returns whether it is now liked."""
    pair = {"user_id": user_id, "listing_id": listing_id}
    result = await db["favorites"].delete_one(pair)
    if result.deleted_count:
        logger.info("%s unliked %s", user_id, listing_id)
        return False

    try:
        await db["favorites"].insert_one(
            {"_id": str(uuid.uuid4()), **pair, "created_at": datetime.now(timezone.utc)}
        )
    except DuplicateKeyError:
        # liked concurrently; the pair exists either way
        pass
    logger.info("%s liked %s", user_id, listing_id)
    return True


async def favorites_for(db: AsyncIOMotorDatabase, user_id: str) -> list[dict]:
    favs = await db["favorites"].find(
        {"user_id": user_id}, sort=[("created_at", -1)]
    ).to_list(length=None)
    listing_ids = [f["listing_id"] for f in favs]
    listings = {
        doc["_id"]: doc
        for doc in await db["listings"].find({"_id": {"$in": listing_ids}}).to_list(length=None)
    }
    cook_ids = list({doc["cook_id"] for doc in listings.values()})
    cooks = {
        doc["_id"]: doc
        for doc in await db["profiles"].find({"_id": {"$in": cook_ids}}).to_list(length=None)
    }

    out = []
    for f in favs:
        listing = listings.get(f["listing_id"])
        if listing is None:
            continue
        out.append(
            {
                "id": f["_id"],
                "listing": {
                    "id": listing["_id"],
                    "title": listing.get("title"),
                    "price": listing.get("price"),
                    "image_url": listing.get("image_url"),
                    "cook_id": listing["cook_id"],
                    "cook_name": (cooks.get(listing["cook_id"]) or {}).get("full_name"),
                },
            }
        )
    return out
