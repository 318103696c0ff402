"""
Shared fixtures.

Each test gets its own SQLite file so sessions used by the app and by the test
are independent connections, as they are against Postgres. Seed data is
committed before requests are made; assertions open a fresh session.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, List

from fastapi.testclient import TestClient
from pydantic import SecretStr
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from parkbook.api.dependencies.services import get_checkout_client
from parkbook.core.config import settings
from parkbook.database import Base, enable_sqlite_savepoints, get_db
from parkbook.integrations.stripe_checkout import CheckoutSession
from parkbook.main import app
from parkbook.principal import UserPrincipal
from tests.utils.stripe_events import WEBHOOK_SECRET
from tests.utils.tokens import TEST_JWT_SECRET, make_access_token


class FakeCheckoutGateway:
    """Stands in for Stripe Checkout; records every session request."""

    def __init__(self) -> None:
        self.calls: List[Dict] = []

    def create_checkout_session(self, **kwargs) -> CheckoutSession:
        self.calls.append(kwargs)
        number = len(self.calls)
        return CheckoutSession(
            id=f"cs_test_{number}",
            url=f"https://checkout.stripe.com/c/pay/cs_test_{number}",
        )


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    monkeypatch.setattr(settings, "site_mode", "test")
    monkeypatch.setattr(settings, "supabase_jwt_secret", SecretStr(TEST_JWT_SECRET))
    monkeypatch.setattr(settings, "stripe_webhook_secret", SecretStr(WEBHOOK_SECRET))
    monkeypatch.setattr(settings, "stripe_secret_key", SecretStr(""))
    monkeypatch.setattr(settings, "frontend_url", "http://localhost:3000")
    return settings


@pytest.fixture
def engine(tmp_path) -> Iterator[Engine]:
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'parkbook_test.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def fake_gateway() -> FakeCheckoutGateway:
    return FakeCheckoutGateway()


@pytest.fixture
def client(session_factory: sessionmaker, fake_gateway: FakeCheckoutGateway) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_checkout_client] = lambda: fake_gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    def _headers(user_id: str, **kwargs) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_access_token(user_id, **kwargs)}"}

    return _headers


@pytest.fixture
def admin_principal() -> UserPrincipal:
    return UserPrincipal(user_id="00000000-0000-0000-0000-00000000a0a0", role="admin")
