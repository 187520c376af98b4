# backend/mapdraw/schemas/datalog.py
from pydantic import BaseModel
from typing import Optional

from .commons import MapFeature


class DataLogEntry(BaseModel):
    id: str
    feature: MapFeature
    label: Optional[str] = None
    timestamp: int  # epoch ms

    @property
    def feature_type(self) -> str | None:
        return self.feature.feature_type
