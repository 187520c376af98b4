# backend/mapdraw/api/deps.py
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from typing import Optional
import logging

from mapdraw import config

logger = logging.getLogger(__name__)

# Cookie が無い場合は Authorization: Bearer も受け付ける
bearer = HTTPBearer(auto_error=False)


def issue_token(profile_id: str) -> str:
    """開発・テスト用: Supabase と同形式のアクセストークンを発行"""
    return jwt.encode(
        {"sub": profile_id, "aud": config.JWT_AUDIENCE, "role": "authenticated"},
        config.JWT_SECRET,
        algorithm="HS256",
    )


def _read_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    token = request.cookies.get(config.SESSION_COOKIE)
    if not token and credentials:
        token = credentials.credentials
    return token or None


def _profile_from_token(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=["HS256"], audience=config.JWT_AUDIENCE)
    except JWTError as e:
        logger.info("rejected session token: %s", e)
        return None
    return payload.get("sub") or None


def get_optional_profile(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[str]:
    # 期限切れ・不正なセッションは匿名扱い（public のみ見える）
    token = _read_token(request, credentials)
    return _profile_from_token(token) if token else None


def require_profile(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> str:
    token = _read_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="User not authenticated")
    profile_id = _profile_from_token(token)
    if not profile_id:
        raise HTTPException(status_code=401, detail="Invalid session. Please sign in again.")
    return profile_id
