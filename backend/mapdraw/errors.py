# backend/mapdraw/errors.py


class MapDrawError(Exception):
    pass


class InvalidGeometryError(MapDrawError, ValueError):
    """ログ追加前に弾く形状エラー（例: 頂点3未満の面）"""


class StorageError(MapDrawError):
    """ローカル保存（データログ）の読み書き失敗"""


class BackendError(MapDrawError):
    def __init__(self, status_code: int | None, detail: str):
        super().__init__(f"{status_code}: {detail}" if status_code else detail)
        self.status_code = status_code
        self.detail = detail
