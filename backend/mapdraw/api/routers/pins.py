# backend/mapdraw/api/routers/pins.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional
import logging

from mapdraw.api.deps import get_optional_profile, require_profile
from mapdraw.db import get_db
from mapdraw.models.pin import Pin
from mapdraw.schemas.pin import PinIn, PinOut, PinUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def to_out(p: Pin) -> PinOut:
    return PinOut(
        id=p.id,
        profile_id=p.profile_id,
        name=p.name,
        description=p.description,
        lat=p.lat,
        lng=p.lng,
        visibility=p.visibility,
        status=p.status,
        emoji=p.emoji,
        address=p.address,
        tag_id=p.tag_id,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def visible_pins(db: Session, profile_id: Optional[str]):
    """匿名は public のみ。ログイン中は public / accounts_only / 自分の private"""
    q = db.query(Pin)
    if profile_id is None:
        return q.filter(Pin.visibility == "public")
    return q.filter(or_(Pin.visibility.in_(("public", "accounts_only")), Pin.profile_id == profile_id))


def _owned(db: Session, pin_id: str, profile_id: str) -> Pin:
    p = db.get(Pin, pin_id)
    if not p:
        raise HTTPException(status_code=404, detail="pin not found")
    if p.profile_id != profile_id:
        raise HTTPException(status_code=403, detail="not the owner of this pin")
    return p


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_pin(payload: PinIn, db: Session = Depends(get_db), profile_id: str = Depends(require_profile)) -> PinOut:
    obj = Pin(
        profile_id=profile_id,
        name=payload.name,
        description=payload.description,
        lat=payload.lat,
        lng=payload.lng,
        visibility=payload.visibility,
        emoji=payload.emoji,
        address=payload.address,
        tag_id=payload.tag_id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("pin %s created by %s", obj.id, profile_id)
    return to_out(obj)


@router.get("")
@router.get("/", include_in_schema=False)
def list_pins(
    tag_id: Optional[str] = None,
    profile_id: Optional[str] = None,
    visibility: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[str] = Depends(get_optional_profile),
) -> list[PinOut]:
    q = visible_pins(db, viewer).filter(Pin.status == "active")
    if tag_id:
        q = q.filter(Pin.tag_id == tag_id)
    if profile_id:
        q = q.filter(Pin.profile_id == profile_id)
    if visibility:
        q = q.filter(Pin.visibility == visibility)
    return [to_out(p) for p in q.order_by(Pin.created_at.desc()).all()]


@router.get("/{pin_id}")
def get_pin(pin_id: str, db: Session = Depends(get_db), viewer: Optional[str] = Depends(get_optional_profile)) -> PinOut:
    p = visible_pins(db, viewer).filter(Pin.id == pin_id).first()
    if not p:
        raise HTTPException(status_code=404, detail="pin not found")
    return to_out(p)


@router.patch("/{pin_id}")
def update_pin(
    pin_id: str,
    payload: PinUpdate,
    db: Session = Depends(get_db),
    profile_id: str = Depends(require_profile),
) -> PinOut:
    p = _owned(db, pin_id, profile_id)
    for k, v in payload.model_dump(exclude_none=True).items():
        setattr(p, k, v)
    db.add(p)
    db.commit()
    db.refresh(p)
    return to_out(p)


@router.delete("/{pin_id}")
def delete_pin(pin_id: str, db: Session = Depends(get_db), profile_id: str = Depends(require_profile)):
    p = _owned(db, pin_id, profile_id)
    db.delete(p)
    db.commit()
    return {"ok": True}
