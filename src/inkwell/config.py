# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime configuration, read from the environment (and an optional .env)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEV_SECRET_KEY = "inkwell-dev-secret"
# Only these environments may sign sessions with DEV_SECRET_KEY.
DEV_ENVS = {"development", "test"}


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    env: str
    secret_key: str
    database_url: str
    cookie_name: str
    session_max_age: int
    session_salt: str
    cookie_secure: bool
    hash_time_cost: int
    hash_memory_cost: int
    hash_parallelism: int
    log_level: str
    seed_users_path: str

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def allows_dev_secret(self) -> bool:
        return self.env.lower() in DEV_ENVS


def load_settings() -> Settings:
    return Settings(
        env=os.getenv("INKWELL_ENV", "development"),
        secret_key=os.getenv("SECRET_KEY") or os.getenv("INKWELL_SECRET_KEY") or "",
        database_url=os.getenv("INKWELL_DATABASE_URL", "sqlite:///./inkwell.db"),
        cookie_name=os.getenv("INKWELL_COOKIE_NAME", "inkwell_session"),
        session_max_age=_get_int("INKWELL_SESSION_MAX_AGE", 60 * 60 * 24 * 30),
        session_salt=os.getenv("INKWELL_SESSION_SALT", "inkwell.session.v1"),
        cookie_secure=_get_bool(os.getenv("INKWELL_COOKIE_SECURE"), default=False),
        # argon2-cffi RFC 9106 low-memory profile
        hash_time_cost=_get_int("INKWELL_HASH_TIME_COST", 3),
        hash_memory_cost=_get_int("INKWELL_HASH_MEMORY_COST", 65536),
        hash_parallelism=_get_int("INKWELL_HASH_PARALLELISM", 4),
        log_level=os.getenv("INKWELL_LOG_LEVEL", "INFO").upper(),
        seed_users_path=os.getenv("INKWELL_SEED_USERS", ""),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def secret_key() -> str:
    s = get_settings()
    if s.secret_key:
        return s.secret_key
    if not s.allows_dev_secret:
        raise RuntimeError(f"SECRET_KEY (or INKWELL_SECRET_KEY) is not set for INKWELL_ENV={s.env}")
    return DEV_SECRET_KEY


def validate_runtime_config() -> None:
    s = get_settings()
    if not s.secret_key and not s.allows_dev_secret:
        raise RuntimeError(f"SECRET_KEY must be set when INKWELL_ENV={s.env}.")
    if s.is_production and not s.cookie_secure:
        logging.getLogger(__name__).warning("INKWELL_COOKIE_SECURE is off in production")


def configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
