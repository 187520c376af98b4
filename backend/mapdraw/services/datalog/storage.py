# backend/mapdraw/services/datalog/storage.py
"""
ブラウザの localStorage 相当のキー・バリュー保存。
値は文字列（JSON）のまま扱い、解釈は呼び出し側に任せる。
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from mapdraw.errors import StorageError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """テスト用のインメモリ実装"""

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """キーごとに <directory>/<key>.json を1ファイル持つ"""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            logger.error("storage write failed: %s", e)
            raise StorageError(f"failed to write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"failed to remove {path}: {e}") from e
