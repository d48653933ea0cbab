from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.app.domain.errors import FavoriteAlreadyExistsError, FavoriteRepositoryError
from src.app.domain.models import StoredFavorite, favorite_doc_id
from src.app.infra.db.base import FavoritesRepository

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _row_to_favorite(row: dict[str, Any]) -> StoredFavorite:
    recipe = row.get("recipe")
    return StoredFavorite(
        owner_id=str(row["owner_id"]),
        recipe_id=str(row["recipe_id"]),
        recipe=recipe if isinstance(recipe, dict) else {},
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _create_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
    return create_client(url, key)


class SupabaseFavoritesRepository(FavoritesRepository):
    TABLE_NAME = "favorites"

    def __init__(self, client: Client | None = None, table_name: str | None = None):
        self._client = client or _create_supabase_client()
        if table_name:
            self.TABLE_NAME = table_name
        logger.info("SupabaseFavoritesRepository initialized: table=%s", self.TABLE_NAME)

    def add_favorite(self, owner_id: str, recipe: dict[str, Any]) -> StoredFavorite:
        recipe_id = str(recipe["id"])
        doc_id = favorite_doc_id(owner_id, recipe_id)

        try:
            existing = (
                self._client.table(self.TABLE_NAME)
                .select("id")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
            if existing.data:
                raise FavoriteAlreadyExistsError(owner_id, recipe_id)

            now = _now_utc().isoformat()
            row = {
                "id": doc_id,
                "owner_id": owner_id,
                "recipe_id": recipe_id,
                "recipe": recipe,
                "created_at": now,
                "updated_at": now,
            }
            result = self._client.table(self.TABLE_NAME).insert(row).execute()
        except FavoriteAlreadyExistsError:
            raise
        except APIError as error:
            if error.code == UNIQUE_VIOLATION:
                raise FavoriteAlreadyExistsError(owner_id, recipe_id) from error
            logger.error("Database error adding favorite: %s", error)
            raise FavoriteRepositoryError("add", str(error)) from error
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error adding favorite: %s", error)
            raise FavoriteRepositoryError("add", str(error)) from error

        favorite = _row_to_favorite(result.data[0] if result.data else row)
        logger.info("Favorite added: owner=%s, recipe=%s", owner_id, recipe_id)
        return favorite

    def list_favorites(self, owner_id: str) -> list[StoredFavorite]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("owner_id, recipe_id, recipe, created_at, updated_at")
                .eq("owner_id", owner_id)
                .order("created_at")
                .execute()
            )
        except (APIError, ConnectionError, TimeoutError) as error:
            logger.error("Error listing favorites: %s", error)
            raise FavoriteRepositoryError("list", str(error)) from error

        return [_row_to_favorite(row) for row in result.data or []]

    def remove_favorite(self, owner_id: str, recipe_id: str) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .delete()
                .eq("id", favorite_doc_id(owner_id, recipe_id))
                .execute()
            )
        except (APIError, ConnectionError, TimeoutError) as error:
            logger.error("Error removing favorite: %s", error)
            raise FavoriteRepositoryError("remove", str(error)) from error

        removed = bool(result.data)
        logger.info("Favorite removed: owner=%s, recipe=%s, existed=%s", owner_id, recipe_id, removed)
        return removed
