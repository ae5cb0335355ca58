"""Shared test fixtures for the portfolio manager."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

import db.session
from config import ServerConfig
from db import DatabaseManager, init_db


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Point the global database manager at a fresh SQLite file."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'portfolio.db'}")
    monkeypatch.setattr(db.session, "_db_manager", manager)
    init_db()
    yield manager
    manager.dispose()


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def make_client(database):
    """Build a TestClient for an app with the given server settings."""
    from api.main import create_app

    def _make(server: ServerConfig, **kwargs) -> TestClient:
        return TestClient(create_app(server), **kwargs)

    return _make


@pytest.fixture
def client(make_client):
    """API client without rate limiting; startup runs against the test database."""
    with make_client(ServerConfig(rate_limit_enabled=False)) as c:
        yield c
