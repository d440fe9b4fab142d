"""Signup and login gateway backed by a remote JSON document store."""

from __future__ import annotations

from typing import Any

from .config import StoreSettings, load_store_settings, resolve_config_path
from .store import UserStore, storage_key


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "StoreSettings",
    "UserStore",
    "create_app",
    "load_store_settings",
    "resolve_config_path",
    "storage_key",
]
