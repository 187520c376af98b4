# backend/mapdraw/schemas/area.py
from pydantic import BaseModel
from typing import Optional
import datetime as dt

from .commons import AreaCategory, AreaVisibility


class AreaIn(BaseModel):
    name: str
    description: Optional[str] = None
    visibility: AreaVisibility = "public"
    category: AreaCategory = "custom"
    geometry: dict  # GeoJSON Polygon | MultiPolygon


class AreaOut(BaseModel):
    id: str
    profile_id: str
    name: str
    description: Optional[str] = None
    visibility: AreaVisibility
    category: AreaCategory
    geometry: dict
    created_at: dt.datetime
    updated_at: dt.datetime


class AreaUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[AreaVisibility] = None
    category: Optional[AreaCategory] = None
    geometry: Optional[dict] = None
