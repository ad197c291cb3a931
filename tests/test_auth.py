import pytest

from auth.session import SessionStore, session_from_records
from models.user import Role


def test_signup_lands_on_role_dashboard(client) -> None:
    resp = client.post(
        "/auth/signup",
        json={
            "full_name": "Asha Verma",
            "email": "Asha@FoodPool.in",
            "password": "secret123",
            "role": "cook",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Welcome to FoodPool!"
    assert body["landing"] == "/cook/dashboard"
    assert body["user"]["email"] == "asha@foodpool.in"
    assert body["user"]["is_cook"] is True


def test_signup_requires_name(client) -> None:
    resp = client.post(
        "/auth/signup",
        json={"full_name": "  ", "email": "x@foodpool.in", "password": "secret123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please enter your name"


def test_signup_rejects_duplicate_email(client, customer) -> None:
    resp = client.post(
        "/auth/signup",
        json={"full_name": "Other", "email": "ravi@foodpool.in", "password": "secret123"},
    )
    assert resp.status_code == 409


def test_login_and_session(client, customer) -> None:
    resp = client.post("/auth/login", json={"email": "ravi@foodpool.in", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["landing"] == "/customer/dashboard"

    token = resp.json()["access_token"]
    session = client.get("/auth/session", headers={"Authorization": f"Bearer {token}"}).json()
    assert session["is_authenticated"] is True
    assert session["loading"] is False
    assert session["user"]["full_name"] == "Ravi Kumar"


def test_login_with_wrong_password(client, customer) -> None:
    resp = client.post("/auth/login", json={"email": "ravi@foodpool.in", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


def test_anonymous_session(client) -> None:
    session = client.get("/auth/session").json()
    assert session == {"user": None, "is_authenticated": False, "loading": False}


def test_bad_token_is_rejected(client) -> None:
    resp = client.get("/feed", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_session_falls_back_to_signup_metadata() -> None:
    user = {
        "_id": "u1",
        "email": "meera@foodpool.in",
        "user_metadata": {"full_name": "Meera", "is_cook": True},
    }
    session = session_from_records(user, None)
    assert session.full_name == "Meera"
    assert session.role == Role.cook


def test_profile_wins_over_metadata() -> None:
    user = {"_id": "u1", "email": "meera@foodpool.in", "user_metadata": {"is_cook": True}}
    session = session_from_records(user, {"is_cook": False, "full_name": "Meera S"})
    assert session.role == Role.customer
    assert session.full_name == "Meera S"


@pytest.mark.asyncio
async def test_store_resolves_signed_up_user(db, settings) -> None:
    store = SessionStore(db, settings)
    assert store.loading is True
    token = await store.signup("Meera", "meera@foodpool.in", "secret123", Role.customer)

    fresh = SessionStore(db, settings)
    user = await fresh.resolve(token)
    assert user.email == "meera@foodpool.in"
    assert fresh.loading is False
    await fresh.logout()
    assert not fresh.is_authenticated
