# backend/mapdraw/api/routers/areas.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional
import json
import logging

from mapdraw.api.deps import get_optional_profile, require_profile
from mapdraw.db import get_db
from mapdraw.errors import InvalidGeometryError
from mapdraw.models.area import Area
from mapdraw.schemas.area import AreaIn, AreaOut, AreaUpdate
from mapdraw.services.geometry.features import validate_geometry

logger = logging.getLogger(__name__)

router = APIRouter()


def to_out(a: Area) -> AreaOut:
    return AreaOut(
        id=a.id,
        profile_id=a.profile_id,
        name=a.name,
        description=a.description,
        visibility=a.visibility,
        category=a.category,
        geometry=json.loads(a.geometry),
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def visible_areas(db: Session, profile_id: Optional[str]):
    q = db.query(Area)
    if profile_id is None:
        return q.filter(Area.visibility == "public")
    return q.filter(or_(Area.visibility == "public", Area.profile_id == profile_id))


def _geometry_str(geometry: dict) -> str:
    # 許可する形状のみ（Polygon | MultiPolygon）
    try:
        validate_geometry(geometry, "area")
    except InvalidGeometryError as e:
        raise HTTPException(status_code=400, detail=f"Geometry must be a Polygon or MultiPolygon: {e}")
    return json.dumps(geometry, ensure_ascii=False)


def _owned(db: Session, area_id: str, profile_id: str) -> Area:
    a = db.get(Area, area_id)
    if not a:
        raise HTTPException(status_code=404, detail="area not found")
    if a.profile_id != profile_id:
        raise HTTPException(status_code=403, detail="not the owner of this area")
    return a


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_area(payload: AreaIn, db: Session = Depends(get_db), profile_id: str = Depends(require_profile)) -> AreaOut:
    obj = Area(
        profile_id=profile_id,
        name=payload.name,
        description=payload.description,
        visibility=payload.visibility,
        category=payload.category,
        geometry=_geometry_str(payload.geometry),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("area %s created by %s", obj.id, profile_id)
    return to_out(obj)


@router.get("")
@router.get("/", include_in_schema=False)
def list_areas(
    mine: bool = False,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[str] = Depends(get_optional_profile),
) -> list[AreaOut]:
    if mine and viewer is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    q = visible_areas(db, viewer)
    if mine:
        q = q.filter(Area.profile_id == viewer)
    if category:
        q = q.filter(Area.category == category)
    return [to_out(a) for a in q.order_by(Area.created_at.desc()).all()]


@router.get("/{area_id}")
def get_area(area_id: str, db: Session = Depends(get_db), viewer: Optional[str] = Depends(get_optional_profile)) -> AreaOut:
    a = visible_areas(db, viewer).filter(Area.id == area_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="area not found")
    return to_out(a)


@router.patch("/{area_id}")
def update_area(
    area_id: str,
    payload: AreaUpdate,
    db: Session = Depends(get_db),
    profile_id: str = Depends(require_profile),
) -> AreaOut:
    a = _owned(db, area_id, profile_id)
    if payload.name is not None:
        a.name = payload.name
    if payload.description is not None:
        a.description = payload.description
    if payload.visibility is not None:
        a.visibility = payload.visibility
    if payload.category is not None:
        a.category = payload.category
    if payload.geometry is not None:
        a.geometry = _geometry_str(payload.geometry)
    db.add(a)
    db.commit()
    db.refresh(a)
    return to_out(a)


@router.delete("/{area_id}")
def delete_area(area_id: str, db: Session = Depends(get_db), profile_id: str = Depends(require_profile)):
    a = _owned(db, area_id, profile_id)
    db.delete(a)
    db.commit()
    return {"ok": True}
