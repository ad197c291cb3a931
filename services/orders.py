import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from models.order import OrderStatus
from models.user import Role
from services.order_flow import InvalidTransition, check_transition

logger = logging.getLogger(__name__)


def convert_mongo_document(doc):
    """Rename `_id` to `id` and turn datetimes into ISO strings, recursively."""
    if isinstance(doc, dict):
        out = {}
        for k, v in doc.items():
            out["id" if k == "_id" else k] = convert_mongo_document(v)
        return out
    elif isinstance(doc, list):
        return [convert_mongo_document(i) for i in doc]
    elif isinstance(doc, datetime):
        return doc.isoformat()
    return doc


async def apply_transition(
    db: AsyncIOMotorDatabase,
    order: dict,
    target: OrderStatus,
    role: Role,
    extra: Optional[dict] = None,
) -> dict:
    """Move `order` to `target` if `role` may do so from its current status.

    The write only matches while the order still has the status it was read
    with, so a concurrent change makes this a 409 instead of a silent overwrite.
    """
    current = OrderStatus(order["status"])
    try:
        check_transition(current, target, role)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    update = {"status": target.value, "updated_at": datetime.now(timezone.utc)}
    if extra:
        update.update(extra)

    result = await db["orders"].update_one(
        {"_id": order["_id"], "status": current.value},
        {"$set": update},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=409, detail="Order was updated by someone else, please refresh")

    logger.info("Order %s: %s -> %s by %s", order["_id"], current.value, target.value, role.value)
    order = dict(order)
    order.update(update)
    return order


async def _index(db: AsyncIOMotorDatabase, collection: str, ids: set) -> dict:
    if not ids:
        return {}
    docs = await db[collection].find({"_id": {"$in": list(ids)}}).to_list(length=None)
    return {d["_id"]: d for d in docs}


async def orders_for(db: AsyncIOMotorDatabase, role: Role, user_id: str) -> list[dict]:
    """All orders of a cook or customer, newest first, with listing and cook summary."""
    field = "cook_id" if role == Role.cook else "customer_id"
    orders = await db["orders"].find(
        {field: user_id}, sort=[("created_at", -1)]
    ).to_list(length=None)

    listings = await _index(db, "listings", {o["listing_id"] for o in orders})
    cooks = await _index(db, "profiles", {o["cook_id"] for o in orders})

    out = []
    for o in orders:
        listing = listings.get(o["listing_id"]) or {}
        cook = cooks.get(o["cook_id"]) or {}
        row = convert_mongo_document(o)
        row["listing"] = {
            "title": listing.get("title"),
            "image_url": listing.get("image_url"),
            "price": listing.get("price"),
        }
        row["cook"] = {
            "full_name": cook.get("full_name"),
            "avatar_url": cook.get("avatar_url"),
        }
        row["customer_short_id"] = o["customer_id"].split("-")[0]
        out.append(row)
    return out
