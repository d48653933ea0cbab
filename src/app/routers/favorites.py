# src/app/routers/favorites.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.app.deps import CurrentUser, get_current_user, get_favorites_repository
from src.app.domain.errors import FavoriteAlreadyExistsError, FavoriteRepositoryError
from src.app.infra.db.base import FavoritesRepository
from src.app.schemas.favorites import FavoriteCreate, FavoriteResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    payload: FavoriteCreate,
    user: CurrentUser = Depends(get_current_user),
    repo: FavoritesRepository = Depends(get_favorites_repository),
) -> MessageResponse:
    if not payload.id:
        raise HTTPException(status_code=400, detail="Missing recipe id")
    try:
        repo.add_favorite(str(user.id), payload.model_dump(exclude_none=True))
    except FavoriteAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except FavoriteRepositoryError as exc:
        logger.error("Failed to add favorite: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to add favorite")
    return MessageResponse(message="Recipe added to favorites")


@router.get("", response_model=list[FavoriteResponse])
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    repo: FavoritesRepository = Depends(get_favorites_repository),
) -> list[FavoriteResponse]:
    try:
        favorites = repo.list_favorites(str(user.id))
    except FavoriteRepositoryError as exc:
        logger.error("Failed to fetch favorites: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch favorites")
    return [FavoriteResponse(**favorite.to_payload()) for favorite in favorites]


@router.delete("/{recipe_id}", response_model=MessageResponse)
async def remove_favorite(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    repo: FavoritesRepository = Depends(get_favorites_repository),
) -> MessageResponse:
    try:
        repo.remove_favorite(str(user.id), recipe_id)
    except FavoriteRepositoryError as exc:
        logger.error("Failed to remove favorite: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to remove favorite")
    return MessageResponse(message="Recipe removed from favorites")
