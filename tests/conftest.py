"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points the app at the in-memory store so no Redis server is needed, and
provides a controllable clock for TTL, session and rate-limit window tests.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.adapters.kv_store.in_memory import InMemoryKeyValueStore
from app.adapters.records.in_memory import InMemoryRecordStore
from app.core.app_factory import create_app
from app.core.config import CacheSettings
from app.services.cache_service import CacheService
from app.services.session_service import SessionService

# 2024-01-01T00:00:00Z, aligned to every policy window
START_TIME = 1_704_067_200.0


class FakeClock:
    """Callable clock returning a settable UNIX time in seconds."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def records(clock: FakeClock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture
def cache(store: InMemoryKeyValueStore) -> CacheService:
    return CacheService(store, CacheSettings())


@pytest.fixture
def sessions(cache: CacheService, clock: FakeClock) -> SessionService:
    return SessionService(cache, clock=clock)


@pytest.fixture
def app(store: InMemoryKeyValueStore, records: InMemoryRecordStore, clock: FakeClock):
    return create_app(store=store, records=records, clock=clock)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def container(app):
    return app.state.container
