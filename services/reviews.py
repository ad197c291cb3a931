import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

ADJECTIVES = ("Happy", "Hungry", "Spicy", "Sweet", "Speedy", "Tasty", "Zesty", "Crunchy")
ANIMALS = ("Panda", "Tiger", "Bear", "Eagle", "Koala", "Chef", "Fox", "Lion")


def _int32(n: int) -> int:
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def _string_hash(value: str) -> int:
    # h = c + ((h << 5) - h) with 32-bit shifts, over UTF-16 code units
    data = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = code + (_int32(_int32(h) << 5) - h)
    return h


def anonymous_name(order_id: str) -> str:
    """Stable display name for a reviewer, derived from the order id.

    Not unique: different orders can share a name.
    """
    h = _string_hash(order_id)
    adjective = ADJECTIVES[abs(h) % len(ADJECTIVES)]
    animal = ANIMALS[abs(_int32(h) >> 3) % len(ANIMALS)]
    return f"{adjective} {animal}"


def has_written_review(order: dict) -> bool:
    review = order.get("review")
    return bool(review and review.strip())


async def refresh_cook_rating(db: AsyncIOMotorDatabase, cook_id: str) -> dict:
    rated = await db["orders"].find(
        {"cook_id": cook_id, "rating": {"$ne": None}},
        projection={"rating": 1},
    ).to_list(length=None)

    total = len(rated)
    average = round(sum(o["rating"] for o in rated) / total, 1) if total else 0
    await db["profiles"].update_one(
        {"_id": cook_id},
        {"$set": {"average_rating": average, "total_ratings": total}},
    )
    logger.info("Cook %s rating now %s over %d ratings", cook_id, average, total)
    return {"average_rating": average, "total_ratings": total}
