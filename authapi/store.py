"""HTTP client for the remote user document store."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .config import StoreSettings
from .errors import StoreError, UnexpectedRecordError
from .models import User

logger = logging.getLogger("authgateway.store")

_ILLEGAL_KEY_CHARACTERS = re.compile(r"[.#$\[\]]")


def storage_key(email: str) -> str:
    """Return the store key for ``email``; characters illegal in keys become ``_``."""

    return _ILLEGAL_KEY_CHARACTERS.sub("_", email)


def _build_path(key: str) -> str:
    return f"/users/{quote(key, safe='@+')}.json"


class UserStore:
    """Read and write user records through the store's authenticated REST API."""

    def __init__(
        self,
        settings: StoreSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    async def get(self, key: str) -> Optional[User]:
        payload = await self._request("GET", key)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise UnexpectedRecordError(f"Store returned an unexpected record for users/{key}")
        return User.from_record(payload)

    async def put(self, key: str, user: User) -> None:
        await self._request("PUT", key, user.to_record())

    def _client(self) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {"base_url": self._settings.base_url}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        if self._settings.timeout is not None:
            kwargs["timeout"] = self._settings.timeout
        return httpx.AsyncClient(**kwargs)

    async def _request(self, method: str, key: str, data: Optional[Dict[str, Any]] = None) -> Any:
        path = _build_path(key)
        params = {"auth": self._settings.secret}

        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    json=data,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.error("Store %s %s failed: %s", method, path, exc)
            raise StoreError(f"Failed to contact user store: {exc}") from exc

        body = response.text
        logger.info("Store %s %s responded with %s", method, path, response.status_code)

        if response.status_code >= 400:
            raise StoreError(
                f"Store request failed: {response.status_code} - {body}",
                status=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                f"Store returned an invalid response: {body}",
                status=response.status_code,
                body=body,
            ) from exc


__all__ = ["UserStore", "storage_key"]
