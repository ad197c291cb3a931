import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from jose import JWTError, jwt
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from auth.utils import create_access_token, hash_password, verify_password
from config import Settings
from models.user import Role, Session

logger = logging.getLogger(__name__)


def session_from_records(user: dict, profile: Optional[dict]) -> Session:
    """Build the session identity for a user row and its (maybe missing) profile.

    The profile row is written after the user row, so a fresh signup can be
    resolved before it exists; the signup metadata covers that gap.
    """
    metadata = user.get("user_metadata") or {}
    profile = profile or {}

    is_cook = profile.get("is_cook")
    if is_cook is None:
        is_cook = metadata.get("is_cook") is True

    return Session(
        id=user["_id"],
        email=user["email"],
        full_name=profile.get("full_name") or metadata.get("full_name"),
        is_cook=bool(is_cook),
    )


class SessionStore:
    """Current identity for one request.

    `loading` stays true until `resolve()` has run; `login`/`signup` hand back
    a bearer token and leave the store holding the new identity.
    """

    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings) -> None:
        self.db = db
        self.settings = settings
        self.user: Optional[Session] = None
        self.loading = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def resolve(self, token: Optional[str]) -> Optional[Session]:
        try:
            if not token:
                self.user = None
                return None
            try:
                payload = jwt.decode(
                    token, self.settings.secret_key, algorithms=[self.settings.algorithm]
                )
            except JWTError:
                raise HTTPException(status_code=401, detail="Invalid or expired token")

            user_id = payload.get("sub")
            if not user_id:
                raise HTTPException(status_code=401, detail="Invalid token")

            user = await self.db["users"].find_one({"_id": user_id})
            if not user:
                raise HTTPException(status_code=401, detail="User not found")

            profile = await self.db["profiles"].find_one({"_id": user_id})
            self.user = session_from_records(user, profile)
            return self.user
        finally:
            self.loading = False

    async def signup(self, full_name: str, email: str, password: str, role: Role) -> str:
        full_name = full_name.strip()
        if not full_name:
            raise HTTPException(status_code=400, detail="Please enter your name")

        email = email.lower()
        user_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        is_cook = role == Role.cook
        user = {
            "_id": user_id,
            "email": email,
            "password_hash": hash_password(password),
            "user_metadata": {"full_name": full_name, "is_cook": is_cook},
            "created_at": now,
        }
        if await self.db["users"].find_one({"email": email}):
            raise HTTPException(status_code=409, detail="An account with this email already exists")
        try:
            await self.db["users"].insert_one(user)
        except DuplicateKeyError:
            raise HTTPException(status_code=409, detail="An account with this email already exists")

        await self.db["profiles"].insert_one(
            {
                "_id": user_id,
                "email": email,
                "full_name": full_name,
                "is_cook": is_cook,
                "average_rating": 0,
                "total_ratings": 0,
                "created_at": now,
            }
        )
        logger.info("New %s signed up: %s", role.value, user_id)

        self.user = session_from_records(user, None)
        self.loading = False
        return create_access_token({"sub": user_id, "role": role.value}, self.settings)

    async def login(self, email: str, password: str) -> str:
        user = await self.db["users"].find_one({"email": email.lower()})
        if not user or not verify_password(user["password_hash"], password):
            raise HTTPException(status_code=401, detail="Invalid email or password")

        profile = await self.db["profiles"].find_one({"_id": user["_id"]})
        self.user = session_from_records(user, profile)
        self.loading = False
        return create_access_token(
            {"sub": user["_id"], "role": self.user.role.value}, self.settings
        )

    async def logout(self) -> None:
        self.user = None
