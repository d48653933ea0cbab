from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class FavoriteIngredient(BaseModel):
    name: str = ""


class FavoriteCreate(BaseModel):
    # optional so a missing id answers 400 like the mobile client expects
    id: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: Optional[list[str]] = None
    ingredients: Optional[list[FavoriteIngredient]] = None
    steps: Optional[list[str]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # numeric ids from the recipe catalogue
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class FavoriteResponse(BaseModel):
    id: str
    name: str = ""
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    ingredients: list[FavoriteIngredient] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", "ingredients", "steps", mode="before")
    @classmethod
    def _list_default(cls, value: Any) -> Any:
        return [] if value is None else value


class MessageResponse(BaseModel):
    message: str
