# routers/customer.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from auth.guards import require_role
from auth.jwt_handler import get_current_user
from database import get_db
from errors import Redirect
from models.location import check_distance_km
from models.order import OrderCreate, OrderStatus, ReviewCreate
from models.user import Role, Session
from services.earnings import customer_stats
from services.favorites import favorites_for, liked_ids
from services.location_store import LocationStore, get_location_store
from services.orders import apply_transition, convert_mongo_document, orders_for
from services.reviews import refresh_cook_rating
from services.search import filter_by_category, radius_for, search_food

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["customer"],
    dependencies=[Depends(require_role(Role.customer))],  # every route below is customer-only
)

DASHBOARD = "/customer/dashboard"


#-------------------------------------------------Discover--------------------------------------------------------#
@router.get("/discover")
async def discover(
    q: str = "",
    category: Optional[str] = None,
    distance_km: Optional[int] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    long: Optional[float] = Query(None, ge=-180, le=180),
    current_user: Session = Depends(get_current_user),
    locations: LocationStore = Depends(get_location_store),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if lat is None or long is None:
        lat, long = locations.coordinates()
    if distance_km is None:
        distance_km = locations.distance_km
    else:
        try:
            check_distance_km(distance_km)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    radius = radius_for(distance_km)

    try:
        rows = await search_food(db, lat, long, radius, q)
        liked = await liked_ids(db, current_user.id)
    except PyMongoError:
        logger.exception("search_food failed at %s, %s", lat, long)
        raise HTTPException(status_code=503, detail="Could not load food nearby.")

    items = filter_by_category(rows, category)
    for item in items:
        item["is_liked"] = item["id"] in liked

    return {
        "count": len(items),
        "center": {"latitude": lat, "longitude": long},
        "radius_meters": radius,
        "needs_permission": locations.needs_permission,
        "items": items,
        "liked_ids": sorted(liked),
    }


#-----------------------------------------Place Order------------------------------------#
@router.post("/orders")
async def place_order(
    data: OrderCreate,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    listing = await db["listings"].find_one({"_id": data.listing_id})
    if not listing or not listing.get("is_active"):
        raise HTTPException(status_code=404, detail="Dish not found")

    now = datetime.now(timezone.utc)
    order = {
        "_id": str(uuid.uuid4()),
        "listing_id": listing["_id"],
        "customer_id": current_user.id,
        "cook_id": listing["cook_id"],
        "quantity": data.quantity,
        "total_price": listing["price"] * data.quantity,
        "status": OrderStatus.pending.value,
        "payment_method": None,
        "rating": None,
        "review": None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        await db["orders"].insert_one(order)
    except PyMongoError:
        logger.exception("Could not place order for listing %s", listing["_id"])
        raise HTTPException(status_code=503, detail="Failed to place order")

    logger.info("Order %s placed by %s", order["_id"], current_user.id)
    return {
        "status": "success",
        "message": "Order placed successfully!",
        "order": convert_mongo_document(order),
    }


#-------------------------------Payment--------------------------#
async def _my_order(db: AsyncIOMotorDatabase, order_id: str, customer_id: str) -> dict:
    order = await db["orders"].find_one({"_id": order_id, "customer_id": customer_id})
    if not order:
        raise Redirect(DASHBOARD, notice="Order not found")
    return order


@router.get("/payment/{order_id}")
async def payment_summary(
    order_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    order = await _my_order(db, order_id, current_user.id)
    listing = await db["listings"].find_one({"_id": order["listing_id"]}) or {}
    row = convert_mongo_document(order)
    row["listing"] = {"title": listing.get("title"), "image_url": listing.get("image_url")}
    return {"order": row, "can_confirm": order["status"] == OrderStatus.accepted.value}


@router.post("/payment/{order_id}/confirm")
async def confirm_payment(
    order_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    order = await _my_order(db, order_id, current_user.id)
    order = await apply_transition(
        db, order, OrderStatus.confirmed, Role.customer, extra={"payment_method": "cash"}
    )
    return {
        "status": "success",
        "message": "Order confirmed! Please pay cash on delivery.",
        "order": convert_mongo_document(order),
        "landing": DASHBOARD,
    }


#----------------------------------------------Rate order----------------------------------------#
@router.post("/orders/{order_id}/review")
async def rate_order(
    order_id: str,
    review: ReviewCreate,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    order = await db["orders"].find_one({"_id": order_id, "customer_id": current_user.id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order["status"] != OrderStatus.completed.value:
        raise HTTPException(status_code=409, detail="Only completed orders can be rated")
    if order.get("rating") is not None:
        raise HTTPException(status_code=409, detail="Order already rated")

    text = review.review.strip() if review.review else None
    result = await db["orders"].update_one(
        {"_id": order_id, "status": OrderStatus.completed.value, "rating": None},
        {"$set": {
            "rating": review.rating,
            "review": text,
            "updated_at": datetime.now(timezone.utc),
        }},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=409, detail="Order already rated")

    aggregate = await refresh_cook_rating(db, order["cook_id"])
    return {
        "status": "success",
        "message": "Thank you for your feedback!",
        "cook_rating": aggregate,
    }


#---------------------------------------------------Dashboard-------------------------------#
@router.get("/customer/dashboard")
async def customer_dashboard(
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        orders = await orders_for(db, Role.customer, current_user.id)
        favorites = await favorites_for(db, current_user.id)
    except PyMongoError:
        logger.exception("Dashboard load failed for %s", current_user.id)
        raise HTTPException(status_code=503, detail="Failed to load dashboard data")

    return {
        "stats": customer_stats(orders, len(favorites)),
        "orders": orders,
        "favorites": favorites,
    }
