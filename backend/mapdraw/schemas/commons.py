# backend/mapdraw/schemas/commons.py
from pydantic import BaseModel, Field
from typing import Literal

FeatureType = Literal["pin", "area"]
PinVisibility = Literal["public", "private", "accounts_only"]
PinStatus = Literal["active", "draft", "archived", "hidden", "completed"]
AreaVisibility = Literal["public", "private"]
AreaCategory = Literal["custom", "county", "city", "state", "region", "zipcode"]


class MapFeature(BaseModel):
    id: str
    type: Literal["Feature"] = "Feature"
    geometry: dict
    properties: dict = Field(default_factory=dict)

    @property
    def feature_type(self) -> str | None:
        return self.properties.get("featureType")


class MapFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[MapFeature] = Field(default_factory=list)
