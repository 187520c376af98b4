# backend/mapdraw/services/save/flow.py
"""
Save & Complete: データログの全エントリをバックエンドへ送る。

成功したエントリだけログから消し、失敗したものは再送用に残す（部分成功を許容）。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from mapdraw.errors import BackendError, StorageError
from mapdraw.schemas.datalog import DataLogEntry
from mapdraw.services.datalog.store import DataLog

logger = logging.getLogger(__name__)


class FeatureBackend(Protocol):
    def create_pin(self, entry: DataLogEntry) -> dict: ...

    def create_area(self, entry: DataLogEntry) -> dict: ...


@dataclass
class SaveReport:
    saved: dict[str, dict] = field(default_factory=dict)  # entry_id -> 作成された行
    failed: dict[str, str] = field(default_factory=dict)  # entry_id -> エラーメッセージ
    storage_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failed and self.storage_error is None


def save_and_complete(log: DataLog, backend: FeatureBackend) -> SaveReport:
    report = SaveReport()
    try:
        for entry in log.list():
            ftype = entry.feature_type
            try:
                if ftype == "pin":
                    row = backend.create_pin(entry)
                elif ftype == "area":
                    row = backend.create_area(entry)
                else:
                    raise BackendError(None, f"unsupported featureType: {ftype!r}")
            except BackendError as e:
                logger.warning("save failed for %s entry %s: %s", ftype, entry.id, e)
                report.failed[entry.id] = str(e)
                continue
            report.saved[entry.id] = row
    finally:
        # 途中で想定外の例外が出ても、作成済みのエントリはログから外す
        _drop_saved(log, report)
    logger.info("save & complete: %d saved, %d failed", len(report.saved), len(report.failed))
    return report


def _drop_saved(log: DataLog, report: SaveReport) -> None:
    if not report.saved:
        return
    try:
        log.remove_many(report.saved.keys())
    except StorageError as e:
        # 送信済みだがログから消せなかった。次回の Save で重複送信になりうる
        logger.error("saved entries could not be removed from the data log: %s", e)
        report.storage_error = str(e)
