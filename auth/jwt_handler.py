from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from auth.session import SessionStore
from config import Settings, get_settings
from database import get_db
from models.user import Session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


async def get_session_store(
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SessionStore:
    return SessionStore(db, settings)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    store: SessionStore = Depends(get_session_store),
) -> Optional[Session]:
    return await store.resolve(token)


async def get_current_user(user: Optional[Session] = Depends(get_optional_user)) -> Session:
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
