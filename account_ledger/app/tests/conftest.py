from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session

from ..core import db
from ..core.config import get_settings
from ..core.db import create_engine_for_url, get_session, init_db
from ..main import app
from ..models import AccountCreate, AccountType, Currency
from ..services import AccountService


@pytest.fixture
def engine(tmp_path):
    test_engine = create_engine_for_url(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as test_session:
        yield test_session


@pytest.fixture
def make_account(session):
    def _make_account(
        owner_id: str = "user-1",
        name: str = "Everyday",
        balance: str | None = None,
    ):
        payload = AccountCreate(
            account_name=name,
            account_type=AccountType.PERSONAL,
            currency=Currency.USD,
            balance=Decimal(balance) if balance is not None else None,
        )
        return AccountService(session).create_account(owner_id, payload)

    return _make_account


def make_token(user_id: str) -> str:
    settings = get_settings()
    return jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: str = "user-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def client(engine) -> TestClient:
    original_engine = db.engine
    db.set_engine(engine)

    def _get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    db.set_engine(original_engine)
