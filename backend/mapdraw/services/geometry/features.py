# backend/mapdraw/services/geometry/features.py
"""
描画済みフィーチャ（pin / area）を GeoJSON に変換・検証するユーティリティ。

- 座標は GeoJSON 順 [lng, lat]（EPSG:4326）
- pin は Point、area は Polygon | MultiPolygon
"""
from __future__ import annotations

import math
import random
import string
import time
from typing import Iterable, Literal, Optional, Sequence

from pydantic import BaseModel
from pyproj import Geod
from shapely.geometry import shape
from shapely.geometry.polygon import orient

from mapdraw.errors import InvalidGeometryError
from mapdraw.schemas.commons import MapFeature
from mapdraw.schemas.datalog import DataLogEntry

GEOMETRY_TYPES = {
    "pin": ("Point",),
    "area": ("Polygon", "MultiPolygon"),
}

_ID_ALPHABET = string.ascii_lowercase + string.digits
_geod = Geod(ellps="WGS84")


def generate_feature_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"feature_{int(time.time() * 1000)}_{suffix}"


# ---- 検証 -------------------------------------------------------------

def to_position(pos) -> list[float]:
    if not isinstance(pos, (list, tuple)) or len(pos) not in (2, 3):
        raise InvalidGeometryError(f"position must be [lng, lat], got {pos!r}")
    for v in pos:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise InvalidGeometryError(f"position values must be finite numbers, got {pos!r}")
    lng, lat = float(pos[0]), float(pos[1])
    if not -180.0 <= lng <= 180.0 or not -90.0 <= lat <= 90.0:
        raise InvalidGeometryError(f"position out of range: {pos!r}")
    return [lng, lat]


def _check_ring(ring) -> None:
    if not isinstance(ring, (list, tuple)) or len(ring) < 4:
        raise InvalidGeometryError("polygon ring needs at least 4 positions")
    pts = [to_position(p) for p in ring]
    if pts[0] != pts[-1]:
        raise InvalidGeometryError("polygon ring is not closed")
    if len({tuple(p) for p in pts}) < 3:
        raise InvalidGeometryError("polygon ring needs at least 3 unique vertices")


def _check_polygon(coords) -> None:
    if not isinstance(coords, (list, tuple)) or not coords:
        raise InvalidGeometryError("polygon needs at least one ring")
    for ring in coords:
        _check_ring(ring)


def validate_geometry(geometry: dict, feature_type: Optional[str] = None) -> dict:
    """構造チェックのみ（自己交差などの位相までは見ない）。問題なければ geometry を返す。"""
    if not isinstance(geometry, dict):
        raise InvalidGeometryError("geometry must be an object")
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")

    if feature_type is not None:
        allowed = GEOMETRY_TYPES.get(feature_type)
        if allowed is None:
            raise InvalidGeometryError(f"unknown featureType: {feature_type!r}")
        if gtype not in allowed:
            raise InvalidGeometryError(f"{feature_type} geometry must be {'|'.join(allowed)}, got {gtype!r}")

    if gtype == "Point":
        to_position(coords)
    elif gtype == "Polygon":
        _check_polygon(coords)
    elif gtype == "MultiPolygon":
        if not isinstance(coords, (list, tuple)) or not coords:
            raise InvalidGeometryError("multipolygon needs at least one polygon")
        for poly in coords:
            _check_polygon(poly)
    else:
        raise InvalidGeometryError("geometry.type must be Point|Polygon|MultiPolygon")

    try:
        shape(geometry)
    except Exception as e:
        raise InvalidGeometryError(f"geometry could not be parsed: {e}") from e
    return geometry


def validate_feature(feature: MapFeature) -> MapFeature:
    validate_geometry(feature.geometry, feature.feature_type or "")
    return feature


# ---- 生成 -------------------------------------------------------------

def close_ring(vertices: Sequence[Sequence[float]]) -> list[list[float]]:
    """
    クリックで集めた頂点列を閉じたリングにする。
    連続重複は除去し、ユニーク頂点が3未満なら InvalidGeometryError。
    """
    ring: list[list[float]] = []
    for v in vertices:
        p = to_position(v)
        if not ring or ring[-1] != p:
            ring.append(p)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    if len({tuple(p) for p in ring}) < 3:
        raise InvalidGeometryError(f"area needs at least 3 vertices, got {len(ring)}")
    return ring + [list(ring[0])]


def pin_feature(
    lng: float,
    lat: float,
    order: Optional[int] = None,
    hide_pin: bool = False,
    feature_id: Optional[str] = None,
) -> MapFeature:
    geometry = {"type": "Point", "coordinates": to_position([lng, lat])}
    props: dict = {"featureType": "pin", "hidePin": hide_pin}
    if order is not None:
        props["order"] = order
    return MapFeature(id=feature_id or generate_feature_id(), geometry=geometry, properties=props)


def area_feature(
    vertices: Optional[Sequence[Sequence[float]]] = None,
    geometry: Optional[dict] = None,
    order: Optional[int] = None,
    feature_id: Optional[str] = None,
) -> MapFeature:
    if geometry is None:
        if vertices is None:
            raise InvalidGeometryError("area needs vertices or a geometry")
        geometry = {"type": "Polygon", "coordinates": [close_ring(vertices)]}
    validate_geometry(geometry, "area")
    props: dict = {"featureType": "area"}
    if order is not None:
        props["order"] = order
    return MapFeature(id=feature_id or generate_feature_id(), geometry=geometry, properties=props)


# ---- FeatureCollection ------------------------------------------------

def _as_feature(item) -> tuple[MapFeature, Optional[str]]:
    if isinstance(item, DataLogEntry):
        return item.feature, item.label
    if isinstance(item, MapFeature):
        return item, None
    return MapFeature.model_validate(item), None


def to_feature_collection(items: Iterable) -> dict:
    """MapFeature / DataLogEntry / dict の列を描画用 FeatureCollection に変換"""
    feats = []
    for item in items:
        feat, label = _as_feature(item)
        props = dict(feat.properties)
        if label is not None:
            props["label"] = label
        feats.append({
            "type": "Feature",
            "id": feat.id,
            "geometry": feat.geometry,
            "properties": props,
        })
    return {"type": "FeatureCollection", "features": feats}


def split_layers(items: Iterable) -> tuple[dict, dict]:
    """
    pin レイヤ用と area レイヤ用の FeatureCollection に分割する。
    - hidePin の pin は除外
    - pin はドラッグ識別用に properties.id を持つ
    """
    pins, areas = [], []
    for item in items:
        feat, _ = _as_feature(item)
        if feat.feature_type == "pin":
            if feat.properties.get("hidePin"):
                continue
            pins.append({"type": "Feature", "geometry": feat.geometry, "properties": {"id": feat.id}})
        elif feat.feature_type == "area":
            areas.append({"type": "Feature", "geometry": feat.geometry, "properties": {}})
    return (
        {"type": "FeatureCollection", "features": pins},
        {"type": "FeatureCollection", "features": areas},
    )


def feature_registry(items: Iterable) -> dict[str, MapFeature]:
    registry: dict[str, MapFeature] = {}
    for item in items:
        feat, _ = _as_feature(item)
        registry[feat.id] = feat
    return registry


def validate_feature_collection(obj) -> bool:
    if not isinstance(obj, dict) or obj.get("type") != "FeatureCollection":
        return False
    features = obj.get("features")
    if not isinstance(features, list):
        return False
    for f in features:
        if not isinstance(f, dict):
            return False
        props = f.get("properties")
        if not (
            isinstance(f.get("id"), str)
            and f.get("type") == "Feature"
            and f.get("geometry")
            and isinstance(props, dict)
            and isinstance(props.get("featureType"), str)
        ):
            return False
    return True


# ---- 旧形式（単一フィーチャ）との相互変換 --------------------------------

class PostMapData(BaseModel):
    type: Literal["pin", "area", "both"]
    geometry: dict
    center: Optional[tuple[float, float]] = None
    hide_pin: bool = False
    polygon: Optional[dict] = None
    screenshot: Optional[str] = None


def post_map_data_to_feature_collection(data: Optional[PostMapData]) -> list[MapFeature]:
    if data is None:
        return []
    features: list[MapFeature] = []
    if data.type in ("pin", "both"):
        if data.geometry.get("type") == "Point":
            lng, lat = data.geometry["coordinates"][:2]
        else:
            lng, lat = data.center or (0.0, 0.0)
        features.append(pin_feature(lng, lat, order=len(features), hide_pin=data.hide_pin))
    if data.type in ("area", "both"):
        area_geom = data.polygon
        if area_geom is None and data.geometry.get("type") != "Point":
            area_geom = data.geometry
        if area_geom and area_geom.get("type") in GEOMETRY_TYPES["area"]:
            features.append(area_feature(geometry=area_geom, order=len(features)))
    return features


def feature_collection_to_post_map_data(
    items: Iterable, screenshot: Optional[str] = None
) -> Optional[PostMapData]:
    """先頭の pin と先頭の area だけを取り出す"""
    feats = [_as_feature(i)[0] for i in items]
    pin = next((f for f in feats if f.feature_type == "pin" and f.geometry.get("type") == "Point"), None)
    area = next(
        (f for f in feats if f.feature_type == "area" and f.geometry.get("type") in GEOMETRY_TYPES["area"]),
        None,
    )
    if pin and area:
        lng, lat = pin.geometry["coordinates"][:2]
        return PostMapData(
            type="both", geometry=pin.geometry, center=(lng, lat),
            hide_pin=bool(pin.properties.get("hidePin")), polygon=area.geometry, screenshot=screenshot,
        )
    if pin:
        lng, lat = pin.geometry["coordinates"][:2]
        return PostMapData(
            type="pin", geometry=pin.geometry, center=(lng, lat),
            hide_pin=bool(pin.properties.get("hidePin")), screenshot=screenshot,
        )
    if area:
        return PostMapData(type="area", geometry=area.geometry, screenshot=screenshot)
    return None


# ---- 表示用 -----------------------------------------------------------

def describe_coordinates(feature: MapFeature) -> str:
    g = feature.geometry
    gtype = g.get("type")
    if gtype == "Point":
        lng, lat = g["coordinates"][:2]
        return f"{lat:.6f}, {lng:.6f}"
    if gtype == "Polygon":
        return f"{len(g['coordinates'][0])} points"
    if gtype == "MultiPolygon":
        total = sum(len(poly[0]) for poly in g["coordinates"])
        return f"{len(g['coordinates'])} polygons, {total} points"
    return "N/A"


def area_hectares(geometry: dict) -> float:
    """WGS84 楕円体上の測地面積（ha）"""
    geom = shape(geometry)
    polys = list(geom.geoms) if geom.geom_type == "MultiPolygon" else [geom]
    total_m2 = 0.0
    for poly in polys:
        # 外輪を反時計回りに揃えて面積を正にする
        area_m2, _ = _geod.geometry_area_perimeter(orient(poly, sign=1.0))
        total_m2 += abs(area_m2)
    return round(total_m2 / 10000, 6)
