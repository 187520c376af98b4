# backend/mapdraw/models/pin.py
from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, Float, String
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class Pin(Base):
    __tablename__ = "pins"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    visibility = Column(String, nullable=False, default="public")  # public|private|accounts_only
    status = Column(String, nullable=False, default="active")  # active|draft|archived|hidden|completed
    emoji = Column(String, nullable=True)
    address = Column(String, nullable=True)
    tag_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
