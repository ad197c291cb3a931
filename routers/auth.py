# routers/auth.py
from typing import Optional

from fastapi import APIRouter, Depends

from auth.guards import landing_for
from auth.jwt_handler import get_session_store, oauth2_scheme
from auth.session import SessionStore
from models.user import LoginRequest, SignupRequest

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_payload(store: SessionStore, token: str, message: str) -> dict:
    return {
        "message": message,
        "access_token": token,
        "token_type": "bearer",
        "user": store.user.model_dump(),
        "landing": landing_for(store.user),
    }


@router.post("/signup")
async def signup(data: SignupRequest, store: SessionStore = Depends(get_session_store)):
    token = await store.signup(data.full_name, data.email, data.password, data.role)
    return _login_payload(store, token, "Welcome to FoodPool!")


@router.post("/login")
async def login(data: LoginRequest, store: SessionStore = Depends(get_session_store)):
    token = await store.login(data.email, data.password)
    return _login_payload(store, token, "Welcome back!")


@router.get("/session")
async def current_session(
    token: Optional[str] = Depends(oauth2_scheme),
    store: SessionStore = Depends(get_session_store),
):
    await store.resolve(token)
    return {
        "user": store.user.model_dump() if store.user else None,
        "is_authenticated": store.is_authenticated,
        "loading": store.loading,
    }


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    store: SessionStore = Depends(get_session_store),
):
    await store.resolve(token)
    await store.logout()
    return {"status": "success", "message": "Signed out"}
