# backend/mapdraw/services/drawing/controller.py
"""
地図の描画モード（idle / pin / area）を管理するステートマシン。

  idle --start_pin--> pin  --click--> idle   (Point をデータログへ)
  idle --start_area-> area --click*--> area --finish--> idle (Polygon をデータログへ)
  any  --stop--> idle   (描きかけは破棄、ログには残さない)

描画中のツールを切り替えると描きかけの頂点は破棄される。
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from mapdraw.errors import InvalidGeometryError
from mapdraw.schemas.datalog import DataLogEntry
from mapdraw.services.datalog.store import DataLog
from mapdraw.services.geometry.features import area_feature, close_ring, pin_feature, to_position

logger = logging.getLogger(__name__)


class DrawingMode(str, enum.Enum):
    idle = "idle"
    pin = "pin"
    area = "area"


class MapRenderer(Protocol):
    def draw(self, geometry: dict) -> None: ...

    def undraw(self) -> None: ...


class NullRenderer:
    def draw(self, geometry: dict) -> None:
        pass

    def undraw(self) -> None:
        pass


@dataclass
class DrawingSession:
    mode: DrawingMode = DrawingMode.idle
    vertices: list[list[float]] = field(default_factory=list)
    is_complete: bool = False

    @property
    def current_geometry(self) -> Optional[dict]:
        """描きかけの形状（未閉合の LineString 相当）"""
        if self.mode is not DrawingMode.area or not self.vertices:
            return None
        if len(self.vertices) == 1:
            return {"type": "Point", "coordinates": self.vertices[0]}
        return {"type": "LineString", "coordinates": list(self.vertices)}


class DrawingController:
    def __init__(self, log: DataLog, renderer: Optional[MapRenderer] = None):
        self.log = log
        self.renderer = renderer or NullRenderer()
        self.session = DrawingSession()
        # 直前に確定したセッション（is_complete=True、頂点は確定時のまま）
        self.last_session: Optional[DrawingSession] = None

    @property
    def mode(self) -> DrawingMode:
        return self.session.mode

    def _reset(self, mode: DrawingMode) -> None:
        if self.session.vertices:
            logger.debug("discarding %d uncommitted vertices", len(self.session.vertices))
        self.renderer.undraw()
        self.session = DrawingSession(mode=mode)

    def start_pin(self) -> None:
        self._reset(DrawingMode.pin)

    def start_area(self) -> None:
        self._reset(DrawingMode.area)

    def stop(self) -> None:
        self._reset(DrawingMode.idle)

    def _order(self) -> int:
        return len(self.log)

    def _commit(self, feature, label: Optional[str]) -> DataLogEntry:
        # ログ書き込みに失敗しても idle に戻る（描きかけは元々未保存）
        session = self.session
        try:
            entry = self.log.add(feature, label)
        finally:
            self._reset(DrawingMode.idle)
        session.is_complete = True
        self.last_session = session
        return entry

    def click(self, lng: float, lat: float, label: Optional[str] = None) -> Optional[DataLogEntry]:
        """
        地図クリック。
        - pin: Point を確定してログへ追加し idle に戻る
        - area: 頂点を追加（確定は finish）
        - idle: 何もしない
        """
        mode = self.session.mode
        if mode is DrawingMode.pin:
            feature = pin_feature(lng, lat, order=self._order())
            return self._commit(feature, label)
        if mode is DrawingMode.area:
            self.session.vertices.append(to_position([lng, lat]))
            self.renderer.draw(self.session.current_geometry)
            return None
        return None

    def undo_vertex(self) -> None:
        if self.session.mode is not DrawingMode.area or not self.session.vertices:
            return
        self.session.vertices.pop()
        if self.session.vertices:
            self.renderer.draw(self.session.current_geometry)
        else:
            self.renderer.undraw()

    def finish(self, label: Optional[str] = None) -> DataLogEntry:
        """area の頂点を閉じて Polygon として確定する（ダブルクリック / 完了ボタン）"""
        if self.session.mode is not DrawingMode.area:
            raise InvalidGeometryError("no area is being drawn")
        # 頂点不足なら area モードのまま（頂点も保持）
        ring = close_ring(self.session.vertices)
        feature = area_feature(geometry={"type": "Polygon", "coordinates": [ring]}, order=self._order())
        return self._commit(feature, label)
