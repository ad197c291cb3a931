"""Order change notifications from a MongoDB change stream."""

import logging
from typing import AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from models.order import OrderStatus
from models.user import Role

logger = logging.getLogger(__name__)

ACCEPTED_NOTICE = "Order accepted! Please proceed to pay."


def owner_field(role: Role) -> str:
    return "cook_id" if role == Role.cook else "customer_id"


async def watch_orders(db: AsyncIOMotorDatabase, role: Role, user_id: str) -> AsyncIterator[dict]:
    pipeline = [{"$match": {f"fullDocument.{owner_field(role)}": user_id}}]
    async with db["orders"].watch(pipeline, full_document="updateLookup") as stream:
        logger.info("Watching orders for %s %s", role.value, user_id)
        async for change in stream:
            yield change


def notice_for(change: dict, role: Role) -> Optional[str]:
    if role != Role.customer or change.get("operationType") != "update":
        return None
    updated = (change.get("updateDescription") or {}).get("updatedFields") or {}
    if updated.get("status") == OrderStatus.accepted.value:
        return ACCEPTED_NOTICE
    return None
