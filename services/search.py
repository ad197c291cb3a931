"""Location-driven listing discovery.

`search_food` is the nearest-neighbour query every discovery page runs. The
distance maths and ordering stay inside MongoDB's `$geoNear`; this module only
builds the pipeline and shapes the rows.
"""

import logging
import re
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from models.listing import FeedPost, FeedProfile
from models.location import ANYWHERE

logger = logging.getLogger(__name__)

UNBOUNDED = -1


def radius_for(distance_km: Optional[int]) -> int:
    """Metres for a distance filter in km; -1 when the filter is off or "anywhere"."""
    if not distance_km or distance_km == ANYWHERE:
        return UNBOUNDED
    return distance_km * 1000


def search_pipeline(lat: float, long: float, radius_meters: int, search_query: str = "") -> list[dict]:
    query: dict = {"is_active": True}
    search_query = (search_query or "").strip()
    if search_query:
        pattern = {"$regex": re.escape(search_query), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}]

    geo_near = {
        "near": {"type": "Point", "coordinates": [long, lat]},
        "distanceField": "dist_meters",
        "spherical": True,
        "query": query,
    }
    if radius_meters is not None and radius_meters >= 0:
        geo_near["maxDistance"] = radius_meters

    return [
        {"$geoNear": geo_near},
        {
            "$lookup": {
                "from": "profiles",
                "localField": "cook_id",
                "foreignField": "_id",
                "as": "cook",
            }
        },
        {"$unwind": {"path": "$cook", "preserveNullAndEmptyArrays": True}},
        {
            "$project": {
                "_id": 0,
                "id": "$_id",
                "title": 1,
                "description": 1,
                "price": 1,
                "image_url": 1,
                "category": 1,
                "cook_id": 1,
                "cook_name": "$cook.full_name",
                "cook_avatar": "$cook.avatar_url",
                "dist_meters": 1,
            }
        },
    ]


async def search_food(
    db: AsyncIOMotorDatabase,
    lat: float,
    long: float,
    radius_meters: int,
    search_query: str = "",
) -> list[dict]:
    pipeline = search_pipeline(lat, long, radius_meters, search_query)
    rows = await db["listings"].aggregate(pipeline).to_list(length=None)
    logger.debug("search_food(%s, %s, %s, %r) -> %d rows", lat, long, radius_meters, search_query, len(rows))
    return rows


def filter_by_category(items: Iterable[dict], category: Optional[str]) -> list[dict]:
    if not category:
        return list(items)
    wanted = category.lower()
    return [item for item in items if (item.get("category") or "").lower() == wanted]


def to_feed_post(row: dict) -> dict:
    cook_name = row.get("cook_name") or "Home Cook"
    post = FeedPost(
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        price=row.get("price") or 0,
        image_url=row.get("image_url"),
        category=row.get("category"),
        dist_meters=row.get("dist_meters") or 0,
        profiles=FeedProfile(
            full_name=cook_name,
            avatar_url=row.get("cook_avatar"),
            username=cook_name,
        ),
    )
    return post.model_dump()
