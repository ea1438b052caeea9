"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite)
- Application settings with test VAPID and auth secrets
- Access token minting for authenticated endpoints
- Sample data factories (notifications, subscriptions, profiles, cards)
- FastAPI test client with dependency overrides
"""

import os
from datetime import datetime, timedelta

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['ROADMAP_DB_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('RATE_LIMIT_STORAGE_URI', 'memory://')

from backend.src.config.settings import AppSettings, get_settings
from backend.src.models import Base, Card, Notification, Profile, PushSubscription


TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
TEST_USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )


@pytest.fixture(scope='function')
def test_db_session(test_session_factory):
    """Create a test database session."""
    session = test_session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Settings and Auth Fixtures
# ============================================================================

def build_settings(**overrides) -> AppSettings:
    """Build AppSettings from explicit values, ignoring the environment's .env file."""
    values = {
        "VAPID_PUBLIC_KEY": "BEl62iUYgUivxIkv69yViEuiBIa-Ib9-SkvMeAtA3LFgDzkrxZJjSgSnfckjBJuBkr3qBUYIHBQFLXYp5Nksh8U",
        "VAPID_PRIVATE_KEY": "test-vapid-private-key",
        "VAPID_SUBJECT": "mailto:push@roadmap.test",
        "SUPABASE_URL": "https://project.supabase.test",
        "SUPABASE_SERVICE_ROLE_KEY": "test-service-role-key",
        "SUPABASE_JWT_SECRET": TEST_JWT_SECRET,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture
def test_settings():
    """Fully configured application settings."""
    return build_settings()


@pytest.fixture
def make_token():
    """Factory minting access tokens the way the hosted auth service does."""
    def _make(
        user_id=TEST_USER_ID,
        email="user@roadmap.test",
        expires_in=timedelta(hours=1),
        secret=TEST_JWT_SECRET,
        audience="authenticated",
    ):
        now = datetime.utcnow()
        payload = {
            "sub": user_id,
            "email": email,
            "role": "authenticated",
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
        }
        return jwt.encode(payload, secret, algorithm="HS256")
    return _make


@pytest.fixture
def auth_headers(make_token):
    """Authorization header for TEST_USER_ID."""
    return {"Authorization": f"Bearer {make_token()}"}


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def create_notification(test_db_session):
    """Factory for creating notification events."""
    def _create(
        type="like",
        receiver_id=TEST_USER_ID,
        actor_id=OTHER_USER_ID,
        card_id=None,
        is_read=False,
        created_at=None,
    ):
        notification = Notification(
            type=type,
            receiver_id=receiver_id,
            actor_id=actor_id,
            card_id=card_id,
            is_read=is_read,
            created_at=created_at or datetime.utcnow(),
        )
        test_db_session.add(notification)
        test_db_session.commit()
        test_db_session.refresh(notification)
        return notification
    return _create


@pytest.fixture
def create_subscription(test_db_session):
    """Factory for creating push subscriptions."""
    _counter = [0]

    def _create(user_id=TEST_USER_ID, endpoint=None):
        _counter[0] += 1
        sub = PushSubscription(
            user_id=user_id,
            endpoint=endpoint or f"https://push.example.com/{_counter[0]}",
            p256dh="test-p256dh-key",
            auth="test-auth-key",
        )
        test_db_session.add(sub)
        test_db_session.commit()
        test_db_session.refresh(sub)
        return sub
    return _create


@pytest.fixture
def create_profile(test_db_session):
    """Factory for creating public profiles."""
    def _create(id, username, avatar=None):
        profile = Profile(id=id, username=username, avatar=avatar)
        test_db_session.add(profile)
        test_db_session.commit()
        return profile
    return _create


@pytest.fixture
def create_card(test_db_session):
    """Factory for creating cards."""
    def _create(id, title, user_id=TEST_USER_ID):
        card = Card(id=id, title=title, user_id=user_id)
        test_db_session.add(card)
        test_db_session.commit()
        return card
    return _create


# ============================================================================
# FastAPI Test Client Fixture
# ============================================================================

@pytest.fixture
def test_client(test_db_session, test_settings):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.db.database import get_db
    from backend.src.main import app
    from backend.src.utils.rate_limit import limiter

    # Override dependencies
    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    limiter.enabled = False

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()
    limiter.enabled = True
