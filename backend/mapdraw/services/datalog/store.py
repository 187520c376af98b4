# backend/mapdraw/services/datalog/store.py
"""
保存前（未送信）の描画フィーチャを溜めておくデータログ。

- 永続化は KeyValueStorage の固定キー DATA_LOG_KEY に JSON 配列で保存
- 書き込み系の操作のたびに "dataLogUpdated" を購読者へ通知
- バックエンドへの送信は save フロー（services.save）側の責務
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable, Optional

from pydantic import ValidationError

from mapdraw.errors import StorageError
from mapdraw.schemas.commons import MapFeature
from mapdraw.schemas.datalog import DataLogEntry
from mapdraw.services.datalog.storage import KeyValueStorage
from mapdraw.services.geometry.features import validate_feature

logger = logging.getLogger(__name__)

DATA_LOG_KEY = "map_data_log"
UPDATED_EVENT = "dataLogUpdated"

_UNSET = object()

Listener = Callable[[str], None]


class DataLog:
    def __init__(self, storage: KeyValueStorage, key: str = DATA_LOG_KEY):
        self.storage = storage
        self.key = key
        self._listeners: list[Listener] = []

    # ---- 読み込み ----
    def list(self) -> list[DataLogEntry]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("data log under %r is not valid JSON, ignoring", self.key)
            return []
        if not isinstance(data, list):
            logger.warning("data log under %r is not a list, ignoring", self.key)
            return []

        entries = []
        for item in data:
            try:
                entries.append(DataLogEntry.model_validate(item))
            except ValidationError as e:
                # スキーマ変更で読めなくなった古いエントリは捨てる（移行処理なし）
                logger.warning("skipping unreadable data log entry: %s", e.errors()[:1])
        return entries

    def get(self, entry_id: str) -> Optional[DataLogEntry]:
        return next((e for e in self.list() if e.id == entry_id), None)

    def __len__(self) -> int:
        return len(self.list())

    # ---- 書き込み ----
    def add(self, feature: MapFeature, label: Optional[str] = None) -> DataLogEntry:
        validate_feature(feature)
        entry = DataLogEntry(
            id=str(uuid.uuid4()),
            feature=feature,
            label=label,
            timestamp=int(time.time() * 1000),
        )
        self._write(self.list() + [entry])
        logger.info("data log: added %s %s", feature.feature_type, entry.id)
        return entry

    def remove(self, entry_id: str) -> None:
        entries = self.list()
        kept = [e for e in entries if e.id != entry_id]
        if len(kept) == len(entries):
            return
        self._write(kept)

    def remove_many(self, entry_ids) -> None:
        ids = set(entry_ids)
        entries = self.list()
        kept = [e for e in entries if e.id not in ids]
        if len(kept) != len(entries):
            self._write(kept)

    def update(self, entry_id: str, feature: Optional[MapFeature] = None, label=_UNSET) -> DataLogEntry:
        """pin のドラッグ移動やラベル変更。id と timestamp は変えない。"""
        entries = self.list()
        for i, e in enumerate(entries):
            if e.id != entry_id:
                continue
            changes: dict = {}
            if feature is not None:
                validate_feature(feature)
                changes["feature"] = feature
            if label is not _UNSET:
                changes["label"] = label
            entries[i] = e.model_copy(update=changes)
            self._write(entries)
            return entries[i]
        raise KeyError(entry_id)

    def clear(self) -> None:
        self.storage.remove_item(self.key)
        self._notify()

    # ---- 通知 ----
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(UPDATED_EVENT)

    def _write(self, entries: list[DataLogEntry]) -> None:
        payload = json.dumps([e.model_dump(mode="json") for e in entries], ensure_ascii=False)
        try:
            self.storage.set_item(self.key, payload)
        except OSError as e:
            raise StorageError(f"failed to persist data log: {e}") from e
        self._notify()
