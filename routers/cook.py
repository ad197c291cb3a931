# routers/cook.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from auth.guards import require_role
from auth.jwt_handler import get_current_user
from config import Settings, get_settings
from database import get_db
from errors import Redirect
from models.listing import Category
from models.order import OrderStatus, StatusUpdate
from models.user import Role, Session
from services.earnings import dashboard_stats, summarize_earnings
from services.order_flow import ACTIVE
from services.orders import apply_transition, convert_mongo_document, orders_for
from services.reviews import anonymous_name, has_written_review
from services.storage import INVALID_IMAGE, resolve_image

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cook",
    tags=["cook"],
    dependencies=[Depends(require_role(Role.cook))],  # every route below is cook-only
)

DASHBOARD = "/cook/dashboard"


def _category(value: str) -> str:
    try:
        return Category.parse(value).value
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _check_basics(title: str, price: float) -> str:
    title = title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    if price < 0:
        raise HTTPException(status_code=400, detail="Price cannot be negative")
    return title


def compose_description(description: str, quantity: Optional[str], pickup_time: Optional[str]) -> str:
    extras = []
    if quantity:
        extras.append(f"Quantity: {quantity}")
    if pickup_time:
        extras.append(f"Pickup Time: {pickup_time}")
    if not extras:
        return description
    return f"{description}\n\n" + "\n".join(extras)


async def _owned_listing(db: AsyncIOMotorDatabase, listing_id: str, cook_id: str) -> Optional[dict]:
    return await db["listings"].find_one({"_id": listing_id, "cook_id": cook_id})


#======================add item ------------------
@router.post("/listings")
async def add_listing(
    title: str = Form(...),
    price: float = Form(...),
    category: str = Form(...),
    description: str = Form(""),
    quantity: Optional[str] = Form(None),
    pickup_time: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    title = _check_basics(title, price)
    category = _category(category)

    profile = await db["profiles"].find_one({"_id": current_user.id}) or {}
    if not profile.get("location"):
        raise HTTPException(
            status_code=400, detail="Please set your Kitchen Address in your Profile first!"
        )

    final_image_url = await resolve_image(photo, image_url, settings.upload_dir)
    if not final_image_url:
        raise HTTPException(status_code=400, detail=INVALID_IMAGE)

    now = datetime.now(timezone.utc)
    listing = {
        "_id": str(uuid.uuid4()),
        "title": title,
        "description": compose_description(description, quantity, pickup_time),
        "price": price,
        "category": category,
        "image_url": final_image_url,
        "cook_id": current_user.id,
        "is_active": True,
        "location": profile["location"],
        "created_at": now,
        "updated_at": now,
    }
    await db["listings"].insert_one(listing)
    logger.info("Cook %s listed %s", current_user.id, listing["_id"])

    return {
        "status": "success",
        "message": "Food live! Neighbors can now see it.",
        "listing": convert_mongo_document(listing),
    }


#-----------------------------------My listings---------------------------#
@router.get("/listings")
async def my_listings(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    listings = await db["listings"].find(
        {"cook_id": current_user.id}, sort=[("created_at", -1)]
    ).to_list(length=None)
    return {"listings": convert_mongo_document(listings)}


@router.get("/listings/{listing_id}")
async def get_listing_for_edit(
    listing_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    listing = await _owned_listing(db, listing_id, current_user.id)
    if not listing:
        raise Redirect(DASHBOARD, notice="Could not load dish details")
    return {"listing": convert_mongo_document(listing)}


@router.put("/listings/{listing_id}")
async def update_listing(
    listing_id: str,
    title: str = Form(...),
    price: float = Form(...),
    category: str = Form(...),
    description: str = Form(""),
    is_active: Optional[bool] = Form(None),
    image_url: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    listing = await _owned_listing(db, listing_id, current_user.id)
    if not listing:
        raise Redirect(DASHBOARD, notice="Could not load dish details")

    update_data = {
        "title": _check_basics(title, price),
        "description": description,
        "price": price,
        "category": _category(category),
        "updated_at": datetime.now(timezone.utc),
    }
    # visibility only changes when the form says so
    if is_active is not None:
        update_data["is_active"] = is_active
    # keep the current image unless a new one was sent
    new_image = await resolve_image(photo, image_url, settings.upload_dir)
    if new_image:
        update_data["image_url"] = new_image

    await db["listings"].update_one({"_id": listing_id}, {"$set": update_data})
    listing.update(update_data)
    return {
        "status": "success",
        "message": "Dish updated",
        "listing": convert_mongo_document(listing),
    }


@router.patch("/listings/{listing_id}/active")
async def toggle_listing(
    listing_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    listing = await _owned_listing(db, listing_id, current_user.id)
    if not listing:
        raise HTTPException(status_code=404, detail="Food item not found")

    is_active = not listing.get("is_active", False)
    try:
        await db["listings"].update_one(
            {"_id": listing_id},
            {"$set": {"is_active": is_active, "updated_at": datetime.now(timezone.utc)}},
        )
    except PyMongoError:
        logger.exception("Could not toggle listing %s", listing_id)
        raise HTTPException(status_code=503, detail="Failed to update status")

    logger.info("Listing %s is_active=%s", listing_id, is_active)
    return {
        "status": "success",
        "message": "Listing activated (Visible)" if is_active else "Listing deactivated (Hidden)",
        "is_active": is_active,
    }


# Delete food item
@router.delete("/listings/{listing_id}")
async def delete_listing(
    listing_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    listing = await _owned_listing(db, listing_id, current_user.id)
    if not listing:
        raise HTTPException(status_code=404, detail="Food item not found")

    try:
        await db["listings"].delete_one({"_id": listing_id, "cook_id": current_user.id})
        await db["favorites"].delete_many({"listing_id": listing_id})
        await db["comments"].delete_many({"listing_id": listing_id})
    except PyMongoError:
        logger.exception("Could not delete listing %s", listing_id)
        raise HTTPException(status_code=503, detail="Could not delete")

    return {"status": "success", "message": "Dish deleted", "listing_id": listing_id}


#-----------------------------------------Orders------------------------------------#
@router.get("/orders")
async def incoming_orders(
    tab: str = Query("active", pattern="^(active|history)$"),
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    orders = await orders_for(db, Role.cook, current_user.id)
    active = {s.value for s in ACTIVE}
    if tab == "active":
        shown = [o for o in orders if o["status"] in active]
    else:
        shown = [o for o in orders if o["status"] not in active]

    return {
        "pending_count": sum(1 for o in orders if o["status"] == OrderStatus.pending.value),
        "ready_count": sum(1 for o in orders if o["status"] == OrderStatus.ready.value),
        "completed_count": sum(1 for o in orders if o["status"] == OrderStatus.completed.value),
        "orders": shown,
    }


@router.post("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    status_data: StatusUpdate,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    order = await db["orders"].find_one({"_id": order_id, "cook_id": current_user.id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found or access denied")

    order = await apply_transition(db, order, status_data.status, Role.cook)
    return {
        "status": "success",
        "message": f"Order status: {status_data.status.value.upper()}",
        "order": convert_mongo_document(order),
    }


#---------------------------------------------------Dashboard----------------------------------#
def _review_row(order: dict) -> dict:
    return {
        "id": order["_id"],
        "rating": order.get("rating"),
        "review": order["review"],
        "created_at": convert_mongo_document(order["created_at"]),
        "reviewer": anonymous_name(order["_id"]),
    }


@router.get("/dashboard")
async def cook_dashboard(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        listings = await db["listings"].find(
            {"cook_id": current_user.id}, sort=[("created_at", -1)]
        ).to_list(length=None)
        orders = await db["orders"].find(
            {"cook_id": current_user.id, "status": {"$ne": OrderStatus.cancelled.value}},
            sort=[("created_at", -1)],
        ).to_list(length=None)
        profile = await db["profiles"].find_one({"_id": current_user.id})
    except PyMongoError:
        logger.exception("Dashboard load failed for %s", current_user.id)
        raise HTTPException(status_code=503, detail="Failed to load dashboard data")

    return {
        "stats": dashboard_stats(orders, listings, profile),
        "listings": convert_mongo_document(listings),
        "reviews": [_review_row(o) for o in orders if has_written_review(o)],
    }


@router.get("/earnings")
async def cook_earnings(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        orders = await db["orders"].find(
            {"cook_id": current_user.id, "status": OrderStatus.completed.value},
            sort=[("created_at", -1)],
        ).to_list(length=None)
        listing_ids = list({o["listing_id"] for o in orders})
        titles = {
            doc["_id"]: doc.get("title")
            for doc in await db["listings"].find({"_id": {"$in": listing_ids}}).to_list(length=None)
        }
    except PyMongoError:
        logger.exception("Earnings load failed for %s", current_user.id)
        raise HTTPException(status_code=503, detail="Failed to load earnings")

    rows = []
    for o in orders:
        rows.append(
            {
                "id": o["_id"],
                "total_price": o["total_price"],
                "quantity": o["quantity"],
                "customer_id": o["customer_id"],
                "created_at": o["created_at"],
                "listing_title": titles.get(o["listing_id"]),
            }
        )
    return convert_mongo_document(summarize_earnings(rows))


@router.get("/reviews")
async def cook_reviews(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    orders = await db["orders"].find(
        {"cook_id": current_user.id, "review": {"$ne": None}},
        sort=[("created_at", -1)],
    ).to_list(length=None)
    return {"reviews": [_review_row(o) for o in orders if has_written_review(o)]}
