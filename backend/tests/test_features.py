# backend/tests/test_features.py
import pytest

from mapdraw.errors import InvalidGeometryError
from mapdraw.services.geometry.features import (
    PostMapData,
    area_feature,
    area_hectares,
    close_ring,
    describe_coordinates,
    feature_collection_to_post_map_data,
    feature_registry,
    generate_feature_id,
    pin_feature,
    post_map_data_to_feature_collection,
    split_layers,
    to_feature_collection,
    validate_feature_collection,
    validate_geometry,
)

SQUARE = [[-93.27, 44.97], [-93.26, 44.97], [-93.26, 44.98], [-93.27, 44.98]]


def test_feature_id_format():
    fid = generate_feature_id()
    prefix, ms, suffix = fid.split("_")
    assert prefix == "feature"
    assert ms.isdigit()
    assert len(suffix) == 9
    assert generate_feature_id() != fid


def test_pin_feature_is_single_point():
    f = pin_feature(-93.2650, 44.9778)
    assert f.geometry == {"type": "Point", "coordinates": [-93.2650, 44.9778]}
    assert f.properties["featureType"] == "pin"


def test_close_ring_appends_closing_point():
    ring = close_ring(SQUARE)
    assert ring[0] == ring[-1]
    assert len(ring) == 5


def test_close_ring_ignores_repeated_clicks():
    # ダブルクリックで同じ点が続いても頂点は増えない
    ring = close_ring([SQUARE[0], SQUARE[1], SQUARE[1], SQUARE[2], SQUARE[0]])
    assert ring == [SQUARE[0], SQUARE[1], SQUARE[2], SQUARE[0]]


@pytest.mark.parametrize("vertices", [
    [],
    [[-93.0, 45.0]],
    [[-93.0, 45.0], [-93.1, 45.0]],
    [[-93.0, 45.0], [-93.1, 45.0], [-93.0, 45.0]],
])
def test_close_ring_needs_three_vertices(vertices):
    with pytest.raises(InvalidGeometryError):
        close_ring(vertices)


def test_area_feature_from_vertices():
    f = area_feature(SQUARE)
    ring = f.geometry["coordinates"][0]
    assert f.geometry["type"] == "Polygon"
    assert f.properties["featureType"] == "area"
    assert ring[0] == ring[-1]
    assert len(ring) >= 4


def test_validate_geometry_rejects_open_ring():
    with pytest.raises(InvalidGeometryError):
        validate_geometry({"type": "Polygon", "coordinates": [SQUARE]})


def test_validate_geometry_accepts_multipolygon():
    ring = close_ring(SQUARE)
    geom = {"type": "MultiPolygon", "coordinates": [[ring], [ring]]}
    assert validate_geometry(geom, "area") is geom


@pytest.mark.parametrize("geometry,feature_type", [
    ({"type": "Point", "coordinates": [-93.0, 45.0]}, "area"),
    ({"type": "Polygon", "coordinates": [close_ring(SQUARE)]}, "pin"),
    ({"type": "LineString", "coordinates": SQUARE}, None),
    ({"type": "Point", "coordinates": [-200.0, 45.0]}, "pin"),
    ({"type": "Point", "coordinates": [-93.0, float("nan")]}, "pin"),
    ({"type": "Point", "coordinates": [-93.0]}, "pin"),
    ({"type": "Point", "coordinates": [-93.0, 45.0]}, "marker"),
])
def test_validate_geometry_rejects(geometry, feature_type):
    with pytest.raises(InvalidGeometryError):
        validate_geometry(geometry, feature_type)


def test_split_layers_hides_hidden_pins():
    visible = pin_feature(-93.0, 45.0)
    hidden = pin_feature(-93.1, 45.1, hide_pin=True)
    area = area_feature(SQUARE)
    pins, areas = split_layers([visible, hidden, area])
    assert [f["properties"]["id"] for f in pins["features"]] == [visible.id]
    assert len(areas["features"]) == 1


def test_to_feature_collection_is_valid(log):
    entry = log.add(pin_feature(-93.0, 45.0), "Home")
    fc = to_feature_collection([entry, area_feature(SQUARE)])
    assert validate_feature_collection(fc)
    assert fc["features"][0]["properties"]["label"] == "Home"
    assert fc["features"][0]["id"] == entry.feature.id


def test_validate_feature_collection_rejects_missing_feature_type():
    fc = {"type": "FeatureCollection", "features": [{"id": "x", "type": "Feature", "geometry": {}, "properties": {}}]}
    assert not validate_feature_collection(fc)
    assert not validate_feature_collection({"type": "Feature"})


def test_feature_registry():
    a, b = pin_feature(-93.0, 45.0), area_feature(SQUARE)
    assert feature_registry([a, b]) == {a.id: a, b.id: b}


def test_post_map_data_both_roundtrip():
    polygon = {"type": "Polygon", "coordinates": [close_ring(SQUARE)]}
    data = PostMapData(type="both", geometry={"type": "Point", "coordinates": [-93.2, 44.9]}, polygon=polygon)
    feats = post_map_data_to_feature_collection(data)
    assert [f.properties["featureType"] for f in feats] == ["pin", "area"]

    back = feature_collection_to_post_map_data(feats, screenshot="shot.png")
    assert back.type == "both"
    assert back.center == (-93.2, 44.9)
    assert back.polygon == polygon
    assert back.screenshot == "shot.png"


def test_post_map_data_pin_from_center():
    polygon = {"type": "Polygon", "coordinates": [close_ring(SQUARE)]}
    feats = post_map_data_to_feature_collection(PostMapData(type="pin", geometry=polygon, center=(-93.5, 45.5)))
    assert feats[0].geometry["coordinates"] == [-93.5, 45.5]
    assert post_map_data_to_feature_collection(None) == []
    assert feature_collection_to_post_map_data([]) is None


def test_describe_coordinates():
    assert describe_coordinates(pin_feature(-93.265, 44.9778)) == "44.977800, -93.265000"
    assert describe_coordinates(area_feature(SQUARE)) == "5 points"
    ring = close_ring(SQUARE)
    multi = area_feature(geometry={"type": "MultiPolygon", "coordinates": [[ring], [ring]]})
    assert describe_coordinates(multi) == "2 polygons, 10 points"


def test_area_hectares_is_orientation_independent():
    ring = close_ring([[0.0, 0.0], [0.01, 0.0], [0.01, 0.01], [0.0, 0.01]])
    ccw = {"type": "Polygon", "coordinates": [ring]}
    cw = {"type": "Polygon", "coordinates": [list(reversed(ring))]}
    # 赤道付近の 0.01° 四方 ≒ 1.11km x 1.11km
    assert 120 < area_hectares(ccw) < 126
    assert area_hectares(cw) == area_hectares(ccw)
