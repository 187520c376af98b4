# backend/mapdraw/schemas/pin.py
from pydantic import BaseModel, Field
from typing import Optional
import datetime as dt

from .commons import PinStatus, PinVisibility


class PinIn(BaseModel):
    name: str
    description: Optional[str] = None
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    visibility: PinVisibility = "public"
    emoji: Optional[str] = None
    address: Optional[str] = None
    tag_id: Optional[str] = None


class PinOut(BaseModel):
    id: str
    profile_id: str
    name: str
    description: Optional[str] = None
    lat: float
    lng: float
    visibility: PinVisibility
    status: PinStatus
    emoji: Optional[str] = None
    address: Optional[str] = None
    tag_id: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class PinUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    visibility: Optional[PinVisibility] = None
    status: Optional[PinStatus] = None
    emoji: Optional[str] = None
    address: Optional[str] = None
    tag_id: Optional[str] = None
