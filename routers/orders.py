# routers/orders.py
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from auth.jwt_handler import get_current_user
from auth.session import SessionStore
from config import Settings, get_settings
from database import get_db
from models.order import OrderStatus
from models.user import Role, Session
from services.orders import apply_transition, convert_mongo_document, orders_for
from services.realtime import notice_for, watch_orders

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


@router.post("/orders/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    current_user: Session = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    order = await db["orders"].find_one({"_id": order_id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    if current_user.id == order["cook_id"]:
        role = Role.cook
    elif current_user.id == order["customer_id"]:
        role = Role.customer
    else:
        raise HTTPException(status_code=404, detail="Order not found")

    order = await apply_transition(db, order, OrderStatus.cancelled, role)
    return {
        "status": "success",
        "message": "Order cancelled",
        "order": convert_mongo_document(order),
    }


# ------------------------------
# Live order list
# ------------------------------
async def _push_orders(websocket: WebSocket, db: AsyncIOMotorDatabase, user: Session) -> None:
    await websocket.send_json(
        {"type": "orders", "orders": await orders_for(db, user.role, user.id)}
    )
    # every change re-sends the whole list
    async for change in watch_orders(db, user.role, user.id):
        payload = {"type": "orders", "orders": await orders_for(db, user.role, user.id)}
        notice = notice_for(change, user.role)
        if notice:
            payload["notice"] = notice
        await websocket.send_json(payload)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # incoming frames carry nothing; only the close matters
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws/orders")
async def orders_ws(
    websocket: WebSocket,
    token: str = Query(...),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    store = SessionStore(db, settings)
    try:
        user = await store.resolve(token)
    except HTTPException:
        user = None
    if user is None:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    push = asyncio.create_task(_push_orders(websocket, db, user))
    listen = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        await asyncio.wait({push, listen}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        # cancelling the push task closes its change stream
        for task in (push, listen):
            task.cancel()
        await asyncio.gather(push, listen, return_exceptions=True)

    if push.cancelled():
        logger.info("Order stream for %s disconnected", user.id)
        return
    try:
        push.result()
    except WebSocketDisconnect:
        logger.info("Order stream for %s disconnected", user.id)
    except PyMongoError:
        logger.exception("Order stream for %s failed", user.id)
        await websocket.close(code=1011)
