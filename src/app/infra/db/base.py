# src/app/infra/db/base.py
"""
Abstract base class for the favorites repository.
This interface allows easy swapping between different storage backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.app.domain.models import StoredFavorite


class FavoritesRepository(ABC):
    """
    Abstract interface for server-side favorites.

    Implementations:
    - SupabaseFavoritesRepository: Postgres table through Supabase
    """

    @abstractmethod
    def add_favorite(
        self,
        owner_id: str,
        recipe: dict[str, Any],
    ) -> StoredFavorite:
        """
        Store a new favorite for a user.

        Args:
            owner_id: The user favoriting the recipe
            recipe: Recipe body; must carry an "id"

        Returns:
            The stored favorite with its timestamps

        Raises:
            FavoriteAlreadyExistsError: If the user already has this favorite
        """
        pass

    @abstractmethod
    def list_favorites(self, owner_id: str) -> list[StoredFavorite]:
        """
        Get every favorite of a user, oldest first.

        Args:
            owner_id: The user

        Returns:
            List of favorites
        """
        pass

    @abstractmethod
    def remove_favorite(self, owner_id: str, recipe_id: str) -> bool:
        """
        Delete a favorite. Deleting a missing favorite is not an error.

        Args:
            owner_id: The user
            recipe_id: The recipe to unfavorite

        Returns:
            True if a favorite was deleted
        """
        pass
