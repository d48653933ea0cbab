# src/services/favorites_merge.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from src.services.favorite_models import RemoteFavorite
from src.services.types import LocalFavoriteRow

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_server_timestamp(value: object) -> int:
    """Epoch milliseconds of an ISO-8601 server timestamp, 0 if it can't be read."""
    if not isinstance(value, str) or not value.strip():
        return 0
    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


def remote_to_row(remote: RemoteFavorite) -> LocalFavoriteRow:
    return LocalFavoriteRow(
        recipe_id=remote.id,
        record=remote.to_record(),
        updated_at=parse_server_timestamp(remote.server_timestamp),
        is_deleted=False,
        dirty=False,
    )


def merge_favorites(
    local_rows: Iterable[LocalFavoriteRow],
    remote_records: Iterable[RemoteFavorite],
) -> list[LocalFavoriteRow]:
    """
    Reconcile the local cache with a full remote snapshot.

    Dirty local rows always win. A clean local row is replaced only by a
    strictly newer remote record; on equal timestamps the local row stays.
    Local rows missing from the snapshot are kept as they are.

    Args:
        local_rows: Every local row, tombstones included
        remote_records: The remote favorites with their server timestamps

    Returns:
        The reconciled set that should replace the local table
    """
    merged: dict[str, LocalFavoriteRow] = {row.recipe_id: row for row in local_rows}

    for remote in remote_records:
        remote_row = remote_to_row(remote)
        local = merged.get(remote_row.recipe_id)

        if local is None:
            merged[remote_row.recipe_id] = remote_row
            continue

        if local.dirty:
            continue

        # TODO: same-millisecond remote updates lose to a clean local row; revisit if the
        # server starts sending revision numbers.
        if local.updated_at >= remote_row.updated_at:
            continue

        merged[remote_row.recipe_id] = remote_row

    return list(merged.values())
