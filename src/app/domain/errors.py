from __future__ import annotations


class FavoritesError(Exception):
    pass


class FavoriteAlreadyExistsError(FavoritesError):
    def __init__(self, owner_id: str, recipe_id: str):
        super().__init__("Recipe already in favorites")
        self.owner_id = owner_id
        self.recipe_id = recipe_id


class FavoriteRepositoryError(FavoritesError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Favorites repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
