"""
StreamPanel Test Configuration

Shared fixtures and configuration for all tests.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Generator, Optional, Union

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from streampanel.config import reload_config
from streampanel.database.connection import configure_sqlite, get_db
from streampanel.database.models.base import Base
from streampanel.main import create_app


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path: Path):
    """Run each test with default configuration and no StreamPanel env vars."""
    for key in list(os.environ.keys()):
        if key.startswith("STREAMPANEL_"):
            monkeypatch.delenv(key, raising=False)
    # Keep a config.yaml in the working directory from leaking in
    monkeypatch.chdir(tmp_path)
    reload_config()
    yield
    reload_config()


# ============ Database Fixtures ============


@pytest.fixture(scope="function")
def engine():
    """Create a test database engine (in-memory SQLite)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Create a new database session for each test."""
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def db(db_session: Session) -> Generator[Session, None, None]:
    """Alias for db_session."""
    yield db_session


# ============ FastAPI Test Client Fixtures ============


@pytest.fixture(scope="function")
def app(db_session: Session) -> FastAPI:
    """Create a test FastAPI application."""
    app = create_app()

    # Override the database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    return app


@pytest.fixture(scope="function")
def client(app: FastAPI) -> TestClient:
    """
    Create a synchronous test client.

    Not entered as a context manager, so the lifespan (which opens the
    configured database) never runs.
    """
    return TestClient(app)


# ============ Upstream HTTP Fixtures ============


UpstreamReply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Routes outbound httpx requests to canned replies by exact URL.

    Unknown URLs answer 404. A reply may be an ``httpx.Response``, an
    exception to raise, or a callable taking the request.
    """

    def __init__(self):
        self.replies: dict[str, UpstreamReply] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        content: Union[bytes, str] = b"",
        status_code: int = 200,
        content_type: Optional[str] = None,
    ) -> None:
        headers = {"content-type": content_type} if content_type else {}
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.replies[url] = httpx.Response(status_code, content=content, headers=headers)

    def fail(self, url: str, error: Exception) -> None:
        self.replies[url] = error

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.get(str(request.url))
        if reply is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    """Fake every fetch made through ``streampanel.utils.http``."""
    fake = FakeUpstream()

    def create_client(timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(fake.handler),
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    monkeypatch.setattr("streampanel.utils.http.create_http_client", create_client)
    return fake


# ============ Threading Fixtures ============


def running_on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class LoopTracker:
    """Records, per wrapped call, whether it ran on the event loop thread."""

    def __init__(self, monkeypatch):
        self._monkeypatch = monkeypatch
        self.calls: dict[str, list[bool]] = {}

    def watch(self, owner: Any, name: str) -> None:
        original = getattr(owner, name)
        calls = self.calls.setdefault(name, [])

        def wrapper(*args, **kwargs):
            calls.append(running_on_event_loop())
            return original(*args, **kwargs)

        self._monkeypatch.setattr(owner, name, wrapper)


@pytest.fixture
def loop_tracker(monkeypatch) -> LoopTracker:
    return LoopTracker(monkeypatch)
