# models/user.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    cook = "cook"
    customer = "customer"


class SignupRequest(BaseModel):
    full_name: str = ""
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.customer


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Session(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    is_cook: bool = False

    @property
    def role(self) -> Role:
        return Role.cook if self.is_cook else Role.customer


#profile

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class KitchenLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
