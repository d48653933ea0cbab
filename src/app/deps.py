# src/app/deps.py
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import settings
from src.app.infra.db.base import FavoritesRepository
from src.app.infra.db.supabase_favorites_repo import SupabaseFavoritesRepository

logger = logging.getLogger(__name__)

_client: Client | None = None
_favorites_repo: FavoritesRepository | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_favorites_repository(
    supa: Client = Depends(get_supabase),
) -> FavoritesRepository:
    global _favorites_repo
    if _favorites_repo is None:
        _favorites_repo = SupabaseFavoritesRepository(supa, settings.FAVORITES_TABLE)
    return _favorites_repo


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Takes Authorization: Bearer <access_token> issued by Supabase,
    validates it against GoTrue and returns the minimal user data.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
        user = res.user
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        name = None
        meta = getattr(user, "user_metadata", None) or {}
        if isinstance(meta, dict):
            name = meta.get("name")

        return CurrentUser(id=str(user.id), email=user.email, name=name)
    except HTTPException:
        raise
    except Exception:
        logger.info("Rejected bearer token")
        raise HTTPException(status_code=401, detail="Invalid/expired token")
