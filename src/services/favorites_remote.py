# src/services/favorites_remote.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .errors import (
    MissingAuthTokenError,
    NetworkTimeoutError,
    RemoteErrorKind,
    RemoteOperationError,
)
from .favorite_models import FavoriteRecord, RemoteFavorite

logger = logging.getLogger(__name__)

FAVORITES_PATH = "/api/favorites"
DEFAULT_TIMEOUT = 15.0

_TRANSIENT_STATUSES = {408, 425, 429}

TokenProvider = Callable[[], Optional[str]]


class FavoritesRemote(ABC):
    """
    Remote source of truth for a user's favorites.

    Every failure is raised as RemoteOperationError with a RemoteErrorKind.
    """

    @abstractmethod
    async def add(self, record: FavoriteRecord) -> None:
        pass

    @abstractmethod
    async def remove(self, recipe_id: str) -> None:
        pass

    @abstractmethod
    async def list(self) -> list[RemoteFavorite]:
        pass


def classify_status(status_code: int) -> RemoteErrorKind:
    if status_code == 409:
        return RemoteErrorKind.ALREADY_EXISTS
    if status_code == 404:
        return RemoteErrorKind.NOT_FOUND
    if status_code in _TRANSIENT_STATUSES or status_code >= 500:
        return RemoteErrorKind.TRANSIENT
    return RemoteErrorKind.FATAL


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body)
    return str(body)


class HttpFavoritesRemote(FavoritesRemote):
    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, operation: str) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            raise MissingAuthTokenError(operation)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        headers = self._headers(operation)
        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, self._timeout) from error
        except httpx.RequestError as error:
            # connection failures, undecodable bodies, redirect loops
            raise RemoteOperationError(RemoteErrorKind.TRANSIENT, operation, str(error)) from error

        if response.is_success:
            return response

        kind = classify_status(response.status_code)
        message = _error_message(response)
        logger.debug(
            "favorites.remote_error op=%s status=%d kind=%s", operation, response.status_code, kind.value
        )
        raise RemoteOperationError(kind, operation, message)

    async def add(self, record: FavoriteRecord) -> None:
        await self._request("add", "POST", FAVORITES_PATH, json=record.to_payload())

    async def remove(self, recipe_id: str) -> None:
        await self._request("remove", "DELETE", f"{FAVORITES_PATH}/{quote(recipe_id, safe='')}")

    async def list(self) -> list[RemoteFavorite]:
        response = await self._request("list", "GET", FAVORITES_PATH)
        try:
            body = response.json()
        except ValueError as error:
            raise RemoteOperationError(RemoteErrorKind.FATAL, "list", "Invalid JSON body") from error
        if not isinstance(body, list):
            raise RemoteOperationError(RemoteErrorKind.FATAL, "list", "Expected a list of favorites")
        try:
            return [RemoteFavorite.model_validate(item) for item in body]
        except ValidationError as error:
            raise RemoteOperationError(RemoteErrorKind.FATAL, "list", str(error)) from error
