# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Generator, Iterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from dsigner.api.dependencies import get_custodial_client_dep, get_identity_client_dep
from dsigner.client.signer import RemoteSigner
from dsigner.db.session import Base
from dsigner.db.session import get_db as app_get_session
from dsigner.main import app as fastapi_app
from dsigner.models import WalletBinding
from tests.fakes import FakeCustodian, FakeIdentityProvider

TEST_DB_URL = "sqlite://"
TEST_API_URL = "http://test"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def identity_provider() -> FakeIdentityProvider:
    """Return an empty in-memory identity provider."""
    return FakeIdentityProvider()


@pytest.fixture()
def custodian() -> FakeCustodian:
    """Return an in-memory custodial provider with real signing keys."""
    return FakeCustodian()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    identity_provider: FakeIdentityProvider,
    custodian: FakeCustodian,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Any, Any] = {
        app_get_session: _get_session_override,
        get_identity_client_dep: lambda: identity_provider,
        get_custodial_client_dep: lambda: custodian,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url=TEST_API_URL) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def remote_signer(app: FastAPI) -> AsyncIterator[RemoteSigner]:
    """Return a RemoteSigner talking to the app in-process."""
    http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
    signer = RemoteSigner(TEST_API_URL, http_client=http_client)
    try:
        yield signer
    finally:
        await http_client.aclose()


@pytest.fixture()
def registered_user(identity_provider: FakeIdentityProvider) -> dict[str, str]:
    """Create a confirmed account and return its credentials."""
    email, password = "earthchie@example.com", "earth123"
    user = identity_provider.add_user(email, password)
    return {"email": email, "password": password, "id": user["id"]}


@pytest.fixture()
def bound_user(
    db_session: Session,
    identity_provider: FakeIdentityProvider,
    custodian: FakeCustodian,
    registered_user: dict[str, str],
) -> dict[str, str]:
    """Registered user with a persisted wallet binding and a live token."""
    account_address = _new_custodial_address(custodian)
    db_session.add(
        WalletBinding(
            user_id=registered_user["id"],
            email=registered_user["email"],
            wallet=account_address,
        )
    )
    db_session.flush()
    token = identity_provider.issue_token(registered_user["email"])
    return {**registered_user, "wallet": account_address, "token": token}


def _new_custodial_address(custodian: FakeCustodian) -> str:
    from eth_account import Account

    account = Account.create()
    custodian.accounts[account.address] = account
    return account.address
