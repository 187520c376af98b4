# backend/mapdraw/services/save/client.py
"""pins / areas 作成APIへの HTTP クライアント（セッションCookie認証）"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from mapdraw import config
from mapdraw.errors import BackendError
from mapdraw.schemas.datalog import DataLogEntry

logger = logging.getLogger(__name__)

DEFAULT_PIN_NAME = "Untitled pin"
DEFAULT_AREA_NAME = "Untitled area"


def pin_payload(entry: DataLogEntry) -> dict:
    lng, lat = entry.feature.geometry["coordinates"][:2]
    return {
        "name": entry.label or DEFAULT_PIN_NAME,
        "description": None,
        "lat": lat,
        "lng": lng,
        "visibility": "public",
    }


def area_payload(entry: DataLogEntry) -> dict:
    return {
        "name": entry.label or DEFAULT_AREA_NAME,
        "description": None,
        "visibility": "public",
        "category": "custom",
        "geometry": entry.feature.geometry,
    }


class PinAreaClient:
    def __init__(
        self,
        session_token: str,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        # http を渡せば base_url は無視（テストでは TestClient を渡す）
        self.http = http or httpx.Client(base_url=base_url or config.API_URL)
        self.http.cookies.set(config.SESSION_COOKIE, session_token)

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _post(self, path: str, body: dict) -> dict:
        try:
            res = self.http.post(path, json=body)
        except httpx.HTTPError as e:
            raise BackendError(None, f"request failed: {e}") from e
        try:
            data = res.json()
        except ValueError:
            data = None
        if res.status_code >= 400:
            detail = data.get("detail", res.text) if isinstance(data, dict) else res.text
            raise BackendError(res.status_code, str(detail))
        # 2xx でも作成行（JSONオブジェクト）が返らなければ失敗扱い
        if not isinstance(data, dict):
            raise BackendError(res.status_code, f"unexpected response body: {res.text[:200]!r}")
        return data

    def create_pin(self, entry: DataLogEntry) -> dict:
        return self._post("/pins", pin_payload(entry))

    def create_area(self, entry: DataLogEntry) -> dict:
        return self._post("/areas", area_payload(entry))
