import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings, get_settings
from database import get_db
from main import create_app
from services.geocoding import Geocoder, get_geocoder

KANPUR = {"lat": "26.4499", "lon": "80.3319", "display_name": "Swaroop Nagar, Kanpur, Uttar Pradesh, India"}


def nominatim_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/reverse":
        return httpx.Response(200, json={"display_name": KANPUR["display_name"]})
    if request.url.path == "/search":
        if request.url.params["q"].lower() == "nowhere":
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[KANPUR])
    return httpx.Response(404)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        secret_key="test-secret",
        upload_dir=tmp_path / "food-images",
        nominatim_url="https://nominatim.test",
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["foodpool_test"]


@pytest.fixture
def geocoder_transport():
    return httpx.MockTransport(nominatim_handler)


@pytest.fixture
def app(settings, db, geocoder_transport):
    app = create_app(settings)

    async def override_geocoder():
        async with httpx.AsyncClient(
            base_url=settings.nominatim_url, transport=geocoder_transport
        ) as client:
            yield Geocoder(settings, client)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_geocoder] = override_geocoder
    return app


@pytest.fixture
def client(app):
    # no context manager: the lifespan would connect to a real MongoDB
    return TestClient(app)


def signup(client: TestClient, name: str, email: str, role: str) -> dict:
    resp = client.post(
        "/auth/signup",
        json={"full_name": name, "email": email, "password": "secret123", "role": role},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return {
        "id": body["user"]["id"],
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
    }


@pytest.fixture
def cook(client):
    return signup(client, "Asha Verma", "asha@foodpool.in", "cook")


@pytest.fixture
def customer(client):
    return signup(client, "Ravi Kumar", "ravi@foodpool.in", "customer")


@pytest.fixture
def kitchen(client, cook):
    resp = client.post(
        "/profile/kitchen-location",
        json={"latitude": 26.4499, "longitude": 80.3319},
        headers=cook["headers"],
    )
    assert resp.status_code == 200, resp.text
    return cook


@pytest.fixture
def make_listing(client):
    def make(cook: dict, **fields) -> dict:
        data = {
            "title": "Rajma Chawal",
            "price": "120",
            "category": "veg",
            "description": "Home style rajma",
            "image_url": "https://images.foodpool.in/rajma.jpg",
        }
        data.update(fields)
        resp = client.post("/cook/listings", data=data, headers=cook["headers"])
        assert resp.status_code == 200, resp.text
        return resp.json()["listing"]

    return make


@pytest.fixture
def listing(kitchen, make_listing):
    return make_listing(kitchen)
