# backend/tests/test_api.py
from mapdraw.services.geometry.features import close_ring

RING = close_ring([[-93.27, 44.97], [-93.26, 44.97], [-93.26, 44.98]])
POLYGON = {"type": "Polygon", "coordinates": [RING]}


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_create_pin_requires_session(client):
    res = client.post("/pins", json={"name": "x", "lat": 45.0, "lng": -93.0})
    assert res.status_code == 401


def test_pin_crud(client, alice):
    res = client.post("/pins", json={"name": "Cabin", "lat": 46.5, "lng": -94.1, "tag_id": "t1"}, headers=alice)
    assert res.status_code == 201
    pin = res.json()
    assert pin["profile_id"] == "profile-alice"
    assert pin["visibility"] == "public"
    assert pin["status"] == "active"

    assert client.get(f"/pins/{pin['id']}").json()["name"] == "Cabin"
    assert [p["id"] for p in client.get("/pins", params={"tag_id": "t1"}).json()] == [pin["id"]]
    assert client.get("/pins", params={"tag_id": "other"}).json() == []

    res = client.patch(f"/pins/{pin['id']}", json={"name": "Lake cabin"}, headers=alice)
    assert res.json()["name"] == "Lake cabin"

    assert client.delete(f"/pins/{pin['id']}", headers=alice).json() == {"ok": True}
    assert client.get(f"/pins/{pin['id']}").status_code == 404


def test_pin_out_of_range_is_rejected(client, alice):
    res = client.post("/pins", json={"name": "x", "lat": 95.0, "lng": -93.0}, headers=alice)
    assert res.status_code == 422


def test_private_pin_visibility(client, alice, bob):
    pin = client.post("/pins", json={"name": "Secret", "lat": 45.0, "lng": -93.0, "visibility": "private"},
                      headers=alice).json()
    assert client.get(f"/pins/{pin['id']}", headers=alice).status_code == 200
    assert client.get(f"/pins/{pin['id']}", headers=bob).status_code == 404
    assert client.get(f"/pins/{pin['id']}").status_code == 404
    assert client.get("/pins").json() == []


def test_only_owner_can_modify_pin(client, alice, bob):
    pin = client.post("/pins", json={"name": "Mine", "lat": 45.0, "lng": -93.0}, headers=alice).json()
    assert client.patch(f"/pins/{pin['id']}", json={"name": "Ours"}, headers=bob).status_code == 403
    assert client.delete(f"/pins/{pin['id']}", headers=bob).status_code == 403
    assert client.delete("/pins/missing", headers=bob).status_code == 404


def test_invalid_token_falls_back_to_public_view(client, alice):
    client.post("/pins", json={"name": "Open", "lat": 45.0, "lng": -93.0}, headers=alice)
    client.post("/pins", json={"name": "Closed", "lat": 45.0, "lng": -93.0, "visibility": "private"}, headers=alice)
    garbage = {"Authorization": "Bearer not-a-jwt"}

    res = client.get("/pins", headers=garbage)
    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["Open"]
    assert len(client.get("/map/features", headers=garbage).json()["features"]) == 1


def test_invalid_token_cannot_write(client):
    res = client.post("/pins", json={"name": "x", "lat": 45.0, "lng": -93.0},
                      headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid session. Please sign in again."


def test_area_crud(client, alice):
    res = client.post("/areas", json={"name": "Loring Park", "geometry": POLYGON}, headers=alice)
    assert res.status_code == 201
    area = res.json()
    assert area["category"] == "custom"
    assert area["geometry"] == POLYGON

    res = client.patch(f"/areas/{area['id']}", json={"category": "city"}, headers=alice)
    assert res.json()["category"] == "city"
    assert [a["id"] for a in client.get("/areas", params={"category": "city"}).json()] == [area["id"]]

    assert client.delete(f"/areas/{area['id']}", headers=alice).json() == {"ok": True}
    assert client.get(f"/areas/{area['id']}").status_code == 404


def test_area_geometry_must_be_polygon(client, alice):
    point = {"type": "Point", "coordinates": [-93.0, 45.0]}
    res = client.post("/areas", json={"name": "x", "geometry": point}, headers=alice)
    assert res.status_code == 400

    open_ring = {"type": "Polygon", "coordinates": [RING[:-1]]}
    res = client.post("/areas", json={"name": "x", "geometry": open_ring}, headers=alice)
    assert res.status_code == 400


def test_area_category_is_validated(client, alice):
    res = client.post("/areas", json={"name": "x", "geometry": POLYGON, "category": "planet"}, headers=alice)
    assert res.status_code == 422


def test_private_area_hidden_from_others(client, alice, bob):
    area = client.post("/areas", json={"name": "Yard", "geometry": POLYGON, "visibility": "private"},
                       headers=alice).json()
    assert client.get(f"/areas/{area['id']}").status_code == 404
    assert client.get(f"/areas/{area['id']}", headers=bob).status_code == 404
    assert client.get(f"/areas/{area['id']}", headers=alice).status_code == 200
    assert [a["id"] for a in client.get("/areas", params={"mine": "true"}, headers=alice).json()] == [area["id"]]
    assert client.get("/areas", params={"mine": "true"}, headers=bob).json() == []
    assert client.get("/areas", params={"mine": "true"}).status_code == 401


def test_map_features(client, alice):
    client.post("/pins", json={"name": "Pin", "lat": 44.9778, "lng": -93.265}, headers=alice)
    client.post("/areas", json={"name": "Area", "geometry": POLYGON}, headers=alice)
    client.post("/areas", json={"name": "Hidden", "geometry": POLYGON, "visibility": "private"}, headers=alice)

    fc = client.get("/map/features").json()
    assert fc["type"] == "FeatureCollection"
    by_name = {f["properties"]["name"]: f for f in fc["features"]}
    assert set(by_name) == {"Pin", "Area"}
    assert by_name["Pin"]["geometry"] == {"type": "Point", "coordinates": [-93.265, 44.9778]}
    assert by_name["Area"]["properties"]["featureType"] == "area"

    fc = client.get("/map/features", headers=alice).json()
    assert len(fc["features"]) == 3
