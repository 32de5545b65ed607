import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from inkwell.auth.passwords import reset_hasher
from inkwell.auth.users import create_user
from inkwell.config import get_settings
from inkwell.db import init_db, make_engine, make_session_factory


@pytest.fixture(autouse=True)
def inkwell_env(monkeypatch):
    """Deterministic secret and a cheap argon2 work factor for every test."""
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("INKWELL_ENV", "test")
    monkeypatch.setenv("INKWELL_HASH_TIME_COST", "1")
    monkeypatch.setenv("INKWELL_HASH_MEMORY_COST", "8192")
    monkeypatch.setenv("INKWELL_HASH_PARALLELISM", "1")
    monkeypatch.delenv("INKWELL_COOKIE_SECURE", raising=False)
    monkeypatch.delenv("INKWELL_SEED_USERS", raising=False)
    get_settings.cache_clear()
    reset_hasher()
    yield
    get_settings.cache_clear()
    reset_hasher()


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture()
def alice(db):
    return create_user(db, email="alice@example.com", name="Alice", password="Passw0rd", bio="Hi, I'm Alice")


@pytest.fixture()
def bob(db):
    return create_user(db, email="bob@example.com", name="Bob", password="Bobpass99")


@pytest.fixture()
def client(session_factory):
    from inkwell.app import create_app

    return TestClient(create_app(session_factory=session_factory))


def fake_request(cookies=None):
    return SimpleNamespace(cookies=cookies or {})


def cookie_value(set_cookie: str) -> str:
    """Token part of a ``Set-Cookie`` header value."""
    first = set_cookie.split(";", 1)[0]
    return first.split("=", 1)[1].strip('"')


def signin(client, email="alice@example.com", password="Passw0rd"):
    return client.post(
        "/signin",
        data={"email": email, "password": password},
        follow_redirects=False,
    )
