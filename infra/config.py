# infra/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from core.exceptions import ValidationError
from core.services.capacity.service import DEFAULT_LOCK_TIMEOUT_SECONDS
from core.services.capacity.suggestions import DEFAULT_SUGGESTION_LIMIT
from infra.db.base import default_db_url

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _read_int(env: Mapping[str, str], key: str, default: int, *, minimum: int = 0) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be an integer (got {raw!r}).", code="INVALID_SETTING") from exc
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum} (got {value}).", code="INVALID_SETTING")
    return value


def _read_float(env: Mapping[str, str], key: str, default: float) -> float | None:
    raw = (env.get(key) or "").strip().lower()
    if not raw:
        return default
    if raw in {"none", "inf", "infinite"}:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be a number (got {raw!r}).", code="INVALID_SETTING") from exc
    if value < 0:
        raise ValidationError(f"{key} cannot be negative.", code="INVALID_SETTING")
    return value


@dataclass(frozen=True)
class EngineSettings:
    db_url: str
    suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT
    lock_timeout_seconds: float | None = DEFAULT_LOCK_TIMEOUT_SECONDS
    sql_echo: bool = False

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "EngineSettings":
        env = os.environ if env is None else env
        db_url = (env.get("CAPACITY_DB_URL") or "").strip() or default_db_url()
        settings = EngineSettings(
            db_url=db_url,
            suggestion_limit=_read_int(env, "CAPACITY_SUGGESTION_LIMIT", DEFAULT_SUGGESTION_LIMIT),
            lock_timeout_seconds=_read_float(
                env, "CAPACITY_LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS
            ),
            sql_echo=(env.get("CAPACITY_SQL_ECHO") or "").strip().lower() in _TRUTHY,
        )
        logger.debug(
            "Loaded engine settings (suggestion_limit=%s, lock_timeout=%s, echo=%s)",
            settings.suggestion_limit,
            settings.lock_timeout_seconds,
            settings.sql_echo,
        )
        return settings


__all__ = ["EngineSettings"]
