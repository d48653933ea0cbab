from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

import pytest

# src.app.config builds Settings at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

from fastapi import FastAPI  # noqa: E402

from src.app.deps import CurrentUser, get_current_user, get_favorites_repository  # noqa: E402
from src.app.domain.errors import FavoriteAlreadyExistsError, FavoriteRepositoryError  # noqa: E402
from src.app.domain.models import StoredFavorite, favorite_doc_id  # noqa: E402
from src.app.infra.db.base import FavoritesRepository  # noqa: E402

TEST_USER = CurrentUser(id="user-1", email="cook@example.com")


class InMemoryFavoritesRepository(FavoritesRepository):
    """Dict-backed repository; every write advances a fake server clock by one second."""

    def __init__(self) -> None:
        self.rows: dict[str, StoredFavorite] = {}
        self.failing = False
        self._now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    def _check(self, operation: str) -> None:
        if self.failing:
            raise FavoriteRepositoryError(operation, "database unavailable")

    def add_favorite(self, owner_id: str, recipe: dict[str, Any]) -> StoredFavorite:
        self._check("add")
        recipe_id = str(recipe["id"])
        doc_id = favorite_doc_id(owner_id, recipe_id)
        if doc_id in self.rows:
            raise FavoriteAlreadyExistsError(owner_id, recipe_id)
        now = self._tick()
        favorite = StoredFavorite(owner_id, recipe_id, dict(recipe), created_at=now, updated_at=now)
        self.rows[doc_id] = favorite
        return favorite

    def list_favorites(self, owner_id: str) -> list[StoredFavorite]:
        self._check("list")
        return [favorite for favorite in self.rows.values() if favorite.owner_id == owner_id]

    def remove_favorite(self, owner_id: str, recipe_id: str) -> bool:
        self._check("remove")
        return self.rows.pop(favorite_doc_id(owner_id, recipe_id), None) is not None


@pytest.fixture
def favorites_repo() -> InMemoryFavoritesRepository:
    return InMemoryFavoritesRepository()


@pytest.fixture
def api_app(favorites_repo: InMemoryFavoritesRepository) -> Iterator[FastAPI]:
    from src.app.main import app

    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    app.dependency_overrides[get_favorites_repository] = lambda: favorites_repo
    try:
        yield app
    finally:
        app.dependency_overrides.clear()
