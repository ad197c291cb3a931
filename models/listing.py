# models/listing.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class Category(str, Enum):
    veg = "Veg"
    non_veg = "Non-Veg"
    snacks = "Snacks"
    sweets = "Sweets"

    @classmethod
    def parse(cls, value: str) -> "Category":
        wanted = value.strip().lower().replace("_", "-").replace(" ", "-")
        for category in cls:
            if category.value.lower() == wanted:
                return category
        raise ValueError(f"Unknown category {value!r}")


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment must not be empty")
        return v.strip()


class FeedProfile(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    username: Optional[str] = None


class FeedPost(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    category: Optional[str] = None
    dist_meters: float
    profiles: FeedProfile
