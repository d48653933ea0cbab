from __future__ import annotations

from src.services.favorite_models import FavoriteRecord, RemoteFavorite
from src.services.favorites_merge import merge_favorites, parse_server_timestamp
from src.services.types import LocalFavoriteRow

JAN_1_2024_MS = 1704067200000


def make_row(
    recipe_id: str,
    name: str = "Local",
    updated_at: int = 100,
    is_deleted: bool = False,
    dirty: bool = False,
) -> LocalFavoriteRow:
    return LocalFavoriteRow(
        recipe_id=recipe_id,
        record=FavoriteRecord(id=recipe_id, name=name),
        updated_at=updated_at,
        is_deleted=is_deleted,
        dirty=dirty,
    )


def by_id(rows: list[LocalFavoriteRow]) -> dict[str, LocalFavoriteRow]:
    return {row.recipe_id: row for row in rows}


class TestParseServerTimestamp:
    def test_zulu_timestamp(self) -> None:
        assert parse_server_timestamp("2024-01-01T00:00:00Z") == JAN_1_2024_MS

    def test_offset_timestamp(self) -> None:
        assert parse_server_timestamp("2024-01-01T01:00:00+01:00") == JAN_1_2024_MS

    def test_naive_timestamp_is_utc(self) -> None:
        assert parse_server_timestamp("2024-01-01T00:00:00") == JAN_1_2024_MS

    def test_milliseconds_kept(self) -> None:
        assert parse_server_timestamp("2024-01-01T00:00:00.250Z") == JAN_1_2024_MS + 250

    def test_unparseable_is_zero(self) -> None:
        assert parse_server_timestamp("yesterday") == 0

    def test_absent_is_zero(self) -> None:
        assert parse_server_timestamp(None) == 0
        assert parse_server_timestamp("") == 0
        assert parse_server_timestamp(1704067200) == 0


class TestMergeFavorites:
    def test_remote_only_record_is_added_clean(self) -> None:
        remote = RemoteFavorite(id="42", name="Soup", updatedAt="2024-01-01T00:00:00Z")

        merged = merge_favorites([], [remote])

        assert len(merged) == 1
        row = merged[0]
        assert row.recipe_id == "42"
        assert row.record.name == "Soup"
        assert row.updated_at == JAN_1_2024_MS
        assert row.is_deleted is False
        assert row.dirty is False

    def test_dirty_local_wins_on_tie(self) -> None:
        local = make_row("1", name="Local edit", updated_at=JAN_1_2024_MS, dirty=True)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="2024-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"] is local
        assert merged["1"].record.name == "Local edit"

    def test_dirty_local_wins_even_when_remote_is_newer(self) -> None:
        local = make_row("1", name="Local edit", updated_at=100, dirty=True)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="2030-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "Local edit"
        assert merged["1"].dirty is True

    def test_dirty_tombstone_survives_remote_record(self) -> None:
        local = make_row("1", updated_at=100, is_deleted=True, dirty=True)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="2030-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].is_deleted is True

    def test_remote_wins_when_newer(self) -> None:
        local = make_row("1", name="Old", updated_at=100)
        remote = RemoteFavorite(id="1", name="New", updatedAt="1970-01-01T00:00:00.200Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "New"
        assert merged["1"].updated_at == 200
        assert merged["1"].dirty is False

    def test_clean_local_wins_on_tie(self) -> None:
        local = make_row("1", name="Local", updated_at=JAN_1_2024_MS)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="2024-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "Local"

    def test_clean_local_wins_when_newer(self) -> None:
        local = make_row("1", name="Local", updated_at=JAN_1_2024_MS + 1)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="2024-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "Local"

    def test_created_at_used_when_updated_at_missing(self) -> None:
        local = make_row("1", name="Old", updated_at=100)
        remote = RemoteFavorite(id="1", name="New", createdAt="2024-01-01T00:00:00Z")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "New"
        assert merged["1"].updated_at == JAN_1_2024_MS

    def test_unparseable_remote_timestamp_loses_to_local(self) -> None:
        local = make_row("1", name="Local", updated_at=0)
        remote = RemoteFavorite(id="1", name="Server", updatedAt="not-a-date")

        merged = by_id(merge_favorites([local], [remote]))

        assert merged["1"].record.name == "Local"

    def test_local_rows_missing_remotely_are_kept(self) -> None:
        clean = make_row("1", updated_at=100)
        tombstone = make_row("2", updated_at=100, is_deleted=True)

        merged = by_id(merge_favorites([clean, tombstone], []))

        assert set(merged) == {"1", "2"}
        assert merged["1"] is clean
        assert merged["2"] is tombstone

    def test_inputs_are_not_mutated(self) -> None:
        local_rows = [make_row("1", updated_at=100)]
        remote = [RemoteFavorite(id="1", name="New", updatedAt="2024-01-01T00:00:00Z")]

        merge_favorites(local_rows, remote)

        assert local_rows[0].record.name == "Local"
        assert local_rows[0].updated_at == 100

    def test_merge_is_deterministic(self) -> None:
        local_rows = [make_row("1", updated_at=100), make_row("3", updated_at=5, dirty=True)]
        remote = [
            RemoteFavorite(id="1", name="New", updatedAt="2024-01-01T00:00:00Z"),
            RemoteFavorite(id="2", name="Other", createdAt="2024-01-01T00:00:00Z"),
        ]

        first = merge_favorites(local_rows, remote)
        second = merge_favorites(local_rows, remote)

        assert first == second
