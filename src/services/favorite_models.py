# src/services/favorite_models.py
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class FavoriteRecord(BaseModel):
    """Snapshot of a favorited recipe as the server and the local cache see it."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    name: str = ""
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # numeric ids from the recipe catalogue
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _name_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", "ingredients", "steps", mode="before")
    @classmethod
    def _list_default(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @property
    def display_image(self) -> Optional[str]:
        return self.thumbnail or self.image


class RemoteFavorite(FavoriteRecord):
    """A favorite as returned by the server, with its server-side timestamps."""

    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @property
    def server_timestamp(self) -> Optional[str]:
        return self.updatedAt or self.createdAt

    def to_record(self) -> FavoriteRecord:
        return FavoriteRecord.model_validate(
            self.model_dump(exclude={"createdAt", "updatedAt"})
        )
