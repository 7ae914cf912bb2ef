import os

# Settings are read at import time; configure before gigmarket is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "15")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("REFRESH_TOKEN_EXPIRE_DAYS", "7")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_ENV", "development")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gigmarket.config import settings
from gigmarket.database import Base, get_db
from gigmarket.dependencies import get_clock, get_sms_gateway
from gigmarket.main import app
from gigmarket.models import User
from gigmarket.services.otp_service import OtpService
from gigmarket.services.token_service import TokenService
from gigmarket.services.sms_service import SmsDeliveryError


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeSmsGateway:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_otp(self, phone_number, code):
        if self.fail:
            raise SmsDeliveryError("gateway down")
        self.sent.append((phone_number, code))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms_gateway():
    return FakeSmsGateway()


@pytest.fixture
def otp_service(db, clock):
    return OtpService(db, settings, clock)


@pytest.fixture
def token_service(db, clock):
    return TokenService(db, settings, clock)


@pytest.fixture
def user(db):
    user = User(phone_number="9876543210", role="customer")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client(engine, sms_gateway, clock):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sms_gateway] = lambda: sms_gateway
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
