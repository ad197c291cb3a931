# routers/feed.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from auth.guards import require_role
from auth.jwt_handler import get_current_user
from config import Settings, get_settings
from database import get_db
from errors import Redirect
from models.listing import CommentCreate
from models.user import Session
from services.favorites import liked_ids, toggle_favorite
from services.location_store import LocationStore, get_location_store
from services.orders import convert_mongo_document
from services.search import search_food, to_feed_post

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feed"], dependencies=[Depends(require_role())])


@router.get("/feed")
async def feed(
    current_user: Session = Depends(get_current_user),
    locations: LocationStore = Depends(get_location_store),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    lat, long = locations.coordinates()
    try:
        rows = await search_food(db, lat, long, settings.feed_radius_meters, "")
        liked = await liked_ids(db, current_user.id)
    except PyMongoError:
        logger.exception("Feed search failed")
        raise HTTPException(status_code=503, detail="Failed to refresh feed")

    posts = []
    for row in rows:
        post = to_feed_post(row)
        post["is_liked"] = post["id"] in liked
        posts.append(post)
    return {"is_cook": current_user.is_cook, "count": len(posts), "posts": posts}


#--------------------individual listing-------------------------#
@router.get("/listings/{listing_id}")
async def listing_detail(listing_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    listing = await db["listings"].find_one({"_id": listing_id})
    if not listing:
        raise Redirect("/feed", notice="Dish not found")

    cook = await db["profiles"].find_one({"_id": listing["cook_id"]}) or {}
    row = convert_mongo_document(listing)
    row["profiles"] = {
        "full_name": cook.get("full_name"),
        "avatar_url": cook.get("avatar_url"),
        "average_rating": cook.get("average_rating", 0),
        "total_ratings": cook.get("total_ratings", 0),
    }
    return {"listing": row}


#--------------------favorites-------------------------#
@router.post("/favorites/{listing_id}/toggle")
async def toggle_like(
    listing_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await db["listings"].find_one({"_id": listing_id}):
        raise HTTPException(status_code=404, detail="Dish not found")
    try:
        liked = await toggle_favorite(db, current_user.id, listing_id)
    except PyMongoError:
        logger.exception("Favorite toggle failed for %s", listing_id)
        raise HTTPException(status_code=503, detail="Failed to save")

    return {
        "status": "success",
        "message": "Saved to favorites" if liked else "Removed from favorites",
        "liked": liked,
    }


@router.get("/favorites/ids")
async def my_favorite_ids(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    return {"liked_ids": sorted(await liked_ids(db, current_user.id))}


#--------------------comments-------------------------#
async def _comments(db: AsyncIOMotorDatabase, listing_id: str) -> list[dict]:
    comments = await db["comments"].find(
        {"listing_id": listing_id}, sort=[("created_at", 1)]
    ).to_list(length=None)
    authors = {
        doc["_id"]: doc
        for doc in await db["profiles"].find(
            {"_id": {"$in": list({c["user_id"] for c in comments})}}
        ).to_list(length=None)
    }
    out = []
    for c in comments:
        author = authors.get(c["user_id"]) or {}
        row = convert_mongo_document(c)
        row["profiles"] = {
            "full_name": author.get("full_name"),
            "avatar_url": author.get("avatar_url"),
        }
        out.append(row)
    return out


@router.get("/listings/{listing_id}/comments")
async def list_comments(listing_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return {"comments": await _comments(db, listing_id)}


@router.post("/listings/{listing_id}/comments")
async def post_comment(
    listing_id: str,
    comment: CommentCreate,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await db["listings"].find_one({"_id": listing_id}):
        raise HTTPException(status_code=404, detail="Dish not found")
    try:
        await db["comments"].insert_one(
            {
                "_id": str(uuid.uuid4()),
                "listing_id": listing_id,
                "user_id": current_user.id,
                "content": comment.content,
                "created_at": datetime.now(timezone.utc),
            }
        )
    except PyMongoError:
        logger.exception("Comment failed on %s", listing_id)
        raise HTTPException(status_code=503, detail="Failed to post comment")

    return {
        "status": "success",
        "message": "Comment posted!",
        "comments": await _comments(db, listing_id),
    }
