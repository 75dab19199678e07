from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

from dotenv import load_dotenv

ENV_PREFIX = "INVENTORY_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    store_id: str | None = None

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


@dataclass(frozen=True)
class GridSettings:
    search_debounce_ms: int = 500
    low_stock_threshold: int = 10
    medium_stock_threshold: int = 50
    default_rows_per_page: int = 10
    rows_per_page_options: tuple[int, ...] = (5, 10, 20, 50)
    low_stock_rows_per_page: int = 5


@dataclass(frozen=True)
class _Bound:
    """One numeric setting: env suffix, parser, default and lower bound."""

    suffix: str
    parse: Callable[[str], int | float]
    default: int | float
    minimum: int | float
    exclusive: bool = False


# dataclass field -> env bound
_CLIENT_BOUNDS = {
    "retries": _Bound("RETRIES", int, 3, 0),
    "retry_backoff_seconds": _Bound("RETRY_BACKOFF_SECONDS", float, 0.3, 0),
    "max_connections": _Bound("MAX_CONNECTIONS", int, 20, 1),
}

_GRID_BOUNDS = {
    "search_debounce_ms": _Bound("SEARCH_DEBOUNCE_MS", int, 500, 0),
    "low_stock_threshold": _Bound("LOW_STOCK_THRESHOLD", int, 10, 0),
    "low_stock_rows_per_page": _Bound("LOW_STOCK_ROWS_PER_PAGE", int, 5, 1),
}


def _env(suffix: str) -> str | None:
    value = os.getenv(ENV_PREFIX + suffix)
    if value is None or not value.strip():
        return None
    return value.strip()


def _read(bound: _Bound, default: float | None = None, minimum: float | None = None) -> Any:
    name = ENV_PREFIX + bound.suffix
    raw = _env(bound.suffix)
    try:
        value = bound.parse(raw) if raw is not None else (default if default is not None else bound.default)
    except ValueError as exc:
        kind = "an integer" if bound.parse is int else "a number"
        raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    floor = bound.minimum if minimum is None else minimum
    if value < floor or (bound.exclusive and value == floor):
        relation = ">" if bound.exclusive else ">="
        raise ConfigError(f"Invalid {name}: expected {relation} {floor}, got {value}")
    return value


def _read_all(bounds: dict[str, _Bound]) -> dict[str, int | float]:
    return {field: _read(bound) for field, bound in bounds.items()}


def _read_options(suffix: str, default: tuple[int, ...]) -> tuple[int, ...]:
    name = ENV_PREFIX + suffix
    raw = _env(suffix)
    if raw is None:
        return default
    try:
        options = tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: expected comma separated integers, got {raw!r}") from exc
    if not options or min(options) < 1:
        raise ConfigError(f"Invalid {name}: expected values >= 1, got {raw!r}")
    return options


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load remote store config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = _env("ENV") or "dev"
    api_base_url = _env(f"API_BASE_URL_{env_name.upper()}") or _env("API_BASE_URL")
    if not api_base_url:
        raise ConfigError(f"Missing required config values: {ENV_PREFIX}API_BASE_URL")

    # connect and read default from the overall timeout
    timeout = _read(_Bound("TIMEOUT_SECONDS", float, 10.0, 0, exclusive=True))
    connect = _read(_Bound("CONNECT_TIMEOUT_SECONDS", float, 0, 0, exclusive=True), default=min(timeout, 5.0))
    read = _read(_Bound("READ_TIMEOUT_SECONDS", float, 0, 0, exclusive=True), default=max(timeout, connect))

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect,
        read_timeout_seconds=read,
        verify_ssl=(_env("VERIFY_SSL") or "true").lower() in {"1", "true", "yes", "on"},
        store_id=_env("STORE_ID"),
        **_read_all(_CLIENT_BOUNDS),
    )


def load_grid_settings(env_file: str | None = None) -> GridSettings:
    load_dotenv(env_file)

    values = _read_all(_GRID_BOUNDS)
    low = int(values["low_stock_threshold"])
    medium = _read(_Bound("MEDIUM_STOCK_THRESHOLD", int, 50, 0), minimum=low)

    options = _read_options("ROWS_PER_PAGE_OPTIONS", GridSettings.rows_per_page_options)
    default_rows = _read(_Bound("DEFAULT_ROWS_PER_PAGE", int, 10, 1))
    if default_rows not in options:
        raise ConfigError(
            f"Invalid {ENV_PREFIX}DEFAULT_ROWS_PER_PAGE: expected one of {options}, got {default_rows}"
        )

    return GridSettings(
        medium_stock_threshold=medium,
        default_rows_per_page=default_rows,
        rows_per_page_options=options,
        **values,
    )
