# backend/mapdraw/models/area.py
import uuid

from sqlalchemy import Column, DateTime, String, Text
from .base import Base
from .pin import _now


class Area(Base):
    __tablename__ = "areas"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    visibility = Column(String, nullable=False, default="public")  # public|private
    category = Column(String, nullable=False, default="custom")
    geometry = Column(Text, nullable=False)  # GeoJSON string (Polygon|MultiPolygon, EPSG:4326)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
