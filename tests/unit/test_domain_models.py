from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.app.domain.models import StoredFavorite, favorite_doc_id, format_timestamp


class TestFavoriteDocId:
    def test_doc_id_joins_owner_and_recipe(self) -> None:
        assert favorite_doc_id("user-1", "42") == "user-1_42"


class TestFormatTimestamp:
    def test_utc_uses_z_suffix(self) -> None:
        value = datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-01-01T12:30:00Z"

    def test_naive_is_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00Z"

    def test_offset_is_converted_to_utc(self) -> None:
        value = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
        assert format_timestamp(value) == "2024-01-01T00:00:00Z"

    def test_none(self) -> None:
        assert format_timestamp(None) is None


class TestStoredFavorite:
    def test_create_favorite(self) -> None:
        favorite = StoredFavorite(owner_id="user-1", recipe_id="42")

        assert favorite.recipe == {}
        assert favorite.created_at is None
        assert favorite.doc_id == "user-1_42"

    def test_payload_carries_recipe_and_timestamps(self) -> None:
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        updated = datetime(2024, 1, 2, tzinfo=timezone.utc)
        favorite = StoredFavorite(
            owner_id="user-1",
            recipe_id="42",
            recipe={"id": "42", "name": "Soup", "tags": ["dinner"]},
            created_at=created,
            updated_at=updated,
        )

        payload = favorite.to_payload()

        assert payload["id"] == "42"
        assert payload["name"] == "Soup"
        assert payload["tags"] == ["dinner"]
        assert payload["createdAt"] == "2024-01-01T00:00:00Z"
        assert payload["updatedAt"] == "2024-01-02T00:00:00Z"

    def test_updated_at_falls_back_to_created_at(self) -> None:
        favorite = StoredFavorite(
            owner_id="user-1",
            recipe_id="42",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        assert favorite.to_payload()["updatedAt"] == "2024-01-01T00:00:00Z"

    def test_payload_does_not_mutate_recipe(self) -> None:
        recipe = {"id": "42", "name": "Soup"}
        favorite = StoredFavorite(owner_id="user-1", recipe_id="42", recipe=recipe)

        favorite.to_payload()

        assert recipe == {"id": "42", "name": "Soup"}
