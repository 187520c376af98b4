# backend/mapdraw/config.py
from pathlib import Path
import os

from dotenv import load_dotenv

# backend/mapdraw/config.py → ../.. = <repo root>
ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env")

DATABASE_URL = os.getenv("DATABASE_URL")

# Supabase 互換の HS256 JWT（aud=authenticated）をセッションCookieで受け取る
JWT_SECRET = os.getenv("MAPDRAW_JWT_SECRET", "dev-secret")
JWT_AUDIENCE = "authenticated"
SESSION_COOKIE = os.getenv("MAPDRAW_SESSION_COOKIE", "sb-access-token")

API_URL = os.getenv("MAPDRAW_API_URL", "http://127.0.0.1:8000")
DATA_DIR = Path(os.getenv("MAPDRAW_DATA_DIR", str(ROOT_DIR / "data")))
LOG_LEVEL = os.getenv("MAPDRAW_LOG_LEVEL", "INFO")
