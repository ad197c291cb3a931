import logging

from fastapi.requests import HTTPConnection
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, GEOSPHERE

from config import Settings

logger = logging.getLogger(__name__)


def connect(settings: Settings) -> AsyncIOMotorClient:
    logger.info("Connecting to MongoDB database %s", settings.db_name)
    return AsyncIOMotorClient(settings.mongo_url, tz_aware=True)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["users"].create_index("email", unique=True)
    await db["profiles"].create_index([("location", GEOSPHERE)])
    await db["listings"].create_index([("location", GEOSPHERE)])
    await db["listings"].create_index([("cook_id", ASCENDING), ("created_at", DESCENDING)])
    await db["favorites"].create_index(
        [("user_id", ASCENDING), ("listing_id", ASCENDING)], unique=True
    )
    await db["orders"].create_index([("cook_id", ASCENDING), ("created_at", DESCENDING)])
    await db["orders"].create_index([("customer_id", ASCENDING), ("created_at", DESCENDING)])
    await db["comments"].create_index([("listing_id", ASCENDING), ("created_at", ASCENDING)])


async def get_db(conn: HTTPConnection) -> AsyncIOMotorDatabase:
    return conn.app.state.db
