"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import Base, MenuCategory, MenuItem, Table, Vendor
from rest_api.routers._common import get_broadcaster
from rest_api.services.notifications import SmsNotifier, get_notifier
from shared.infrastructure.db import get_db
from shared.infrastructure.events import EventBroadcaster
from shared.security.rate_limit import limiter
from tests.factories import OTHER_VENDOR_ID, VENDOR_ID, RecordingConnection, auth_headers_for


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Tables are created before and dropped after each test.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def broadcaster():
    """Broadcaster without heartbeats so it works outside an event loop."""
    return EventBroadcaster(heartbeat_interval=None)


@pytest.fixture
def vendor_stream(broadcaster):
    """Recording subscription on the test vendor's events."""
    connection = RecordingConnection()
    broadcaster.subscribe(connection, VENDOR_ID, "vendor")
    return connection


@pytest.fixture
def sms_requests():
    """Requests captured by the mocked Twilio transport."""
    return []


@pytest.fixture
def notifier(sms_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        sms_requests.append(request)
        return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

    return SmsNotifier(
        account_sid="AC123",
        auth_token="token",
        from_number="+15550001111",
        enabled=True,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture(scope="function")
def client(db_session, broadcaster, notifier):
    """
    Create a test client with database, broadcaster and notifier overrides.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    app.dependency_overrides[get_notifier] = lambda: notifier
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_vendor(db_session):
    """Vendor 7 with delivery and pickup enabled."""
    vendor = Vendor(
        id=VENDOR_ID,
        restaurant_name="Spice Route",
        address="12 MG Road",
        phone="+911234567890",
        gst_rate=Decimal("0"),
        gst_mode="exclude",
        is_delivery_enabled=True,
        is_pickup_enabled=True,
    )
    db_session.add(vendor)
    db_session.commit()
    return vendor


@pytest.fixture
def seed_menu(db_session, seed_vendor):
    """Margherita at 200.00 in a 5% GST (exclusive) category."""
    category = MenuCategory(
        id=1,
        vendor_id=seed_vendor.id,
        name="Pizza",
        gst_rate=Decimal("5"),
        gst_mode="exclude",
    )
    db_session.add(category)
    db_session.flush()

    item = MenuItem(
        id=1,
        vendor_id=seed_vendor.id,
        category_id=category.id,
        name="Margherita",
        price=Decimal("200.00"),
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def seed_table(db_session, seed_vendor):
    """Table number 3, currently available."""
    table = Table(id=1, vendor_id=seed_vendor.id, table_number=3, qr_data="T-7-3", is_active=True)
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def second_table(db_session, seed_vendor):
    table = Table(id=2, vendor_id=seed_vendor.id, table_number=4, qr_data="T-7-4", is_active=True)
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture
def other_vendor_table(db_session):
    """A table owned by a different vendor."""
    vendor = Vendor(id=OTHER_VENDOR_ID, restaurant_name="Other Place")
    db_session.add(vendor)
    db_session.flush()
    table = Table(id=10, vendor_id=vendor.id, table_number=1, is_active=True)
    db_session.add(table)
    db_session.commit()
    return table


# =============================================================================
# Auth
# =============================================================================


@pytest.fixture
def auth_headers():
    """Vendor owner token."""
    return auth_headers_for(["VENDOR"])


@pytest.fixture
def captain_headers():
    return auth_headers_for(["CAPTAIN"], user_id=2)
