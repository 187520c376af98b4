# backend/mapdraw/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
import logging

from mapdraw import config
from mapdraw.models.base import Base

logger = logging.getLogger(__name__)

# 1) DATABASE_URL が指定されていれば優先（例: postgresql+psycopg://...）
# 2) それ以外は <repo root>/data/app.db の SQLite を使用
if config.DATABASE_URL:
    SQLALCHEMY_DATABASE_URL = config.DATABASE_URL
else:
    db_path = config.DATA_DIR / "app.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    SQLALCHEMY_DATABASE_URL = f"sqlite:///{db_path}"

_is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    # モデルを明示 import してメタデータ登録を確実化
    import mapdraw.models.pin  # noqa: F401
    import mapdraw.models.area  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("database ready: %s", engine.url.render_as_string(hide_password=True))


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
