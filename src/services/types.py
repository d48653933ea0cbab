from dataclasses import dataclass, field

from src.services.favorite_models import FavoriteRecord


@dataclass(frozen=True)
class LocalFavoriteRow:
    recipe_id: str
    record: FavoriteRecord
    updated_at: int  # ms since epoch, last local mutation
    is_deleted: bool = False
    dirty: bool = False


@dataclass(frozen=True)
class ToggleResult:
    is_favorite: bool


@dataclass
class SyncReport:
    pushed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    merged: int = 0

    @property
    def success(self) -> bool:
        return not self.failed
