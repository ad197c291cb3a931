# models/location.py
from pydantic import BaseModel, Field, field_validator

ANYWHERE = -1


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str = ""


class GpsFix(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class AddressSearch(BaseModel):
    query: str

    @field_validator("query")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be empty")
        return v


def check_distance_km(v: int) -> int:
    if v != ANYWHERE and v <= 0:
        raise ValueError("distance_km must be positive or -1 for anywhere")
    return v


class DistanceFilter(BaseModel):
    # kilometres, or -1 for "anywhere"
    distance_km: int

    @field_validator("distance_km")
    @classmethod
    def positive_or_anywhere(cls, v: int) -> int:
        return check_distance_km(v)


def geo_point(latitude: float, longitude: float) -> dict:
    # GeoJSON wants [longitude, latitude]
    return {"type": "Point", "coordinates": [longitude, latitude]}
