"""Configuration management for the auth gateway's backing store."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Store base URL must not be empty")
    return cleaned.rstrip("/")


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return _env_bool(value, default)
    return bool(value)


def _env_float(value: Optional[str], default: Optional[float]) -> Optional[float]:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid timeout value {value!r} for store settings") from exc


@dataclass(frozen=True)
class StoreSettings:
    """Connection details for the remote user document store."""

    base_url: str
    secret: str
    timeout: Optional[float] = None
    lookup_errors_as_absent: bool = True

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "StoreSettings":
        """Create :class:`StoreSettings` from raw dictionary data."""
        required_fields = {"url", "secret"}
        missing = {name for name in required_fields if not data.get(name)}
        if missing:
            raise ValueError(f"Missing required store configuration fields: {', '.join(sorted(missing))}")

        timeout = data.get("timeout")
        return StoreSettings(
            base_url=_normalize_base_url(str(data["url"])),
            secret=str(data["secret"]).strip(),
            timeout=float(timeout) if timeout is not None else None,  # type: ignore[arg-type]
            lookup_errors_as_absent=_as_bool(data.get("lookup_errors_as_absent"), True),
        )


def _read_config_file(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    store_raw = raw.get("store") if isinstance(raw, dict) else None
    if store_raw is None:
        return {}
    if not isinstance(store_raw, dict):
        raise ValueError("The 'store' key in the configuration file must be a mapping")
    return dict(store_raw)


def load_store_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> StoreSettings:
    """Load store settings from an optional YAML file overlaid with the environment."""
    env = os.environ if environ is None else environ

    data: Dict[str, object] = {}
    if config_path is not None and config_path.is_file():
        data.update(_read_config_file(config_path))

    if env.get("FIREBASE_URL"):
        data["url"] = env["FIREBASE_URL"]
    if env.get("FIREBASE_SECRET"):
        data["secret"] = env["FIREBASE_SECRET"]

    raw_timeout = data.get("timeout")
    data["timeout"] = _env_float(
        env.get("AUTH_STORE_TIMEOUT"),
        float(raw_timeout) if raw_timeout is not None else None,  # type: ignore[arg-type]
    )
    data["lookup_errors_as_absent"] = _env_bool(
        env.get("AUTH_LOOKUP_ERRORS_AS_ABSENT"),
        _as_bool(data.get("lookup_errors_as_absent"), True),
    )

    return StoreSettings.from_dict(data)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "auth.yaml").resolve(strict=False)
    return candidate


__all__ = ["StoreSettings", "load_store_settings", "resolve_config_path"]
