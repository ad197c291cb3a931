"""search_food against a real MongoDB.

Set FOODPOOL_TEST_MONGO_URL (e.g. mongodb://localhost:27017) to run these;
the in-memory mock cannot evaluate $geoNear.
"""

import os
import uuid

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient

from database import ensure_indexes
from models.location import geo_point
from services.search import UNBOUNDED, search_food

MONGO_URL = os.environ.get("FOODPOOL_TEST_MONGO_URL")

pytestmark = pytest.mark.skipif(not MONGO_URL, reason="FOODPOOL_TEST_MONGO_URL not set")

# Swaroop Nagar, Kanpur
CENTER = (26.4677, 80.3463)


@pytest_asyncio.fixture
async def mongo_db():
    client = AsyncIOMotorClient(MONGO_URL, tz_aware=True)
    name = f"foodpool_test_{uuid.uuid4().hex[:8]}"
    db = client[name]
    await ensure_indexes(db)
    await db["profiles"].insert_one({"_id": "cook-1", "full_name": "Asha Verma", "avatar_url": None})
    await db["listings"].insert_many(
        [
            # roughly 0.1 km, 3 km and 30 km north of the center
            {"_id": "near", "title": "Rajma Chawal", "description": "Home style", "price": 120,
             "category": "Veg", "cook_id": "cook-1", "is_active": True,
             "location": geo_point(CENTER[0] + 0.001, CENTER[1])},
            {"_id": "mid", "title": "Aloo Paratha", "description": "With curd", "price": 60,
             "category": "Veg", "cook_id": "cook-1", "is_active": True,
             "location": geo_point(CENTER[0] + 0.027, CENTER[1])},
            {"_id": "far", "title": "Chicken Curry", "description": "Spicy rajma-free", "price": 200,
             "category": "Non-Veg", "cook_id": "missing-cook", "is_active": True,
             "location": geo_point(CENTER[0] + 0.27, CENTER[1])},
            {"_id": "hidden", "title": "Rajma Special", "description": "Off today", "price": 150,
             "category": "Veg", "cook_id": "cook-1", "is_active": False,
             "location": geo_point(CENTER[0], CENTER[1])},
        ]
    )
    yield db
    await client.drop_database(name)
    client.close()


@pytest.mark.asyncio
async def test_radius_limits_results_in_distance_order(mongo_db) -> None:
    rows = await search_food(mongo_db, *CENTER, 5000)
    assert [r["id"] for r in rows] == ["near", "mid"]
    assert 0 <= rows[0]["dist_meters"] < rows[1]["dist_meters"] <= 5000


@pytest.mark.asyncio
async def test_unbounded_search_skips_inactive(mongo_db) -> None:
    rows = await search_food(mongo_db, *CENTER, UNBOUNDED)
    assert [r["id"] for r in rows] == ["near", "mid", "far"]


@pytest.mark.asyncio
async def test_text_query_matches_title_or_description(mongo_db) -> None:
    rows = await search_food(mongo_db, *CENTER, UNBOUNDED, "RAJMA")
    assert [r["id"] for r in rows] == ["near", "far"]


@pytest.mark.asyncio
async def test_rows_carry_cook_profile(mongo_db) -> None:
    rows = await search_food(mongo_db, *CENTER, UNBOUNDED)
    by_id = {r["id"]: r for r in rows}
    assert by_id["near"]["cook_name"] == "Asha Verma"
    assert "cook_name" not in by_id["far"]
    assert "_id" not in by_id["near"]
