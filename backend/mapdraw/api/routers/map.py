# backend/mapdraw/api/routers/map.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
import json
import logging

from mapdraw.api.deps import get_optional_profile
from mapdraw.api.routers.areas import visible_areas
from mapdraw.api.routers.pins import visible_pins
from mapdraw.db import get_db
from mapdraw.models.pin import Pin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/features")
def list_features(db: Session = Depends(get_db), viewer: Optional[str] = Depends(get_optional_profile)):
    """
    保存済みの pin / area を GeoJSON FeatureCollection で返す。
    - 閲覧者から見えるものだけ（匿名は public のみ）
    - properties.featureType で pin / area を区別
    """
    feats: list[dict] = []

    for p in visible_pins(db, viewer).filter(Pin.status == "active").all():
        feats.append({
            "type": "Feature",
            "id": p.id,
            "geometry": {"type": "Point", "coordinates": [p.lng, p.lat]},
            "properties": {
                "featureType": "pin",
                "name": p.name,
                "profile_id": p.profile_id,
                "visibility": p.visibility,
                "tag_id": p.tag_id,
            },
        })

    for a in visible_areas(db, viewer).all():
        try:
            geom = json.loads(a.geometry)
        except ValueError:
            logger.warning("area %s has unreadable geometry, skipped", a.id)
            continue
        feats.append({
            "type": "Feature",
            "id": a.id,
            "geometry": geom,
            "properties": {
                "featureType": "area",
                "name": a.name,
                "profile_id": a.profile_id,
                "visibility": a.visibility,
                "category": a.category,
            },
        })

    return {"type": "FeatureCollection", "features": feats}
