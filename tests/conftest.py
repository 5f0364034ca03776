"""
Shared pytest fixtures for Message Management API tests.

Provides fixtures for:
- In-memory document stores (Mongo and Firestore fakes)
- Mocked identity and project service clients
- API client (httpx over ASGI)
- Test data
"""
import os
from typing import Any, Dict

import jwt
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

# Test environment configuration
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_PROVIDER", "mongo")

from message_mng.application.services import AccessResolver, MessageService
from message_mng.config import AppSettings
from message_mng.domain.entities.access import IdentityUser, RequestContext, UserClients

from tests.fakes import FakeFirestoreClient, FakeMongoDatabase


# ============================================================================
# Token Fixtures
# ============================================================================

TOKEN_SECRET = "message-mng-test-secret-0123456789abcdef"


def make_token(claims: Dict[str, Any]) -> str:
    """Encode an ID token with the given claims; the signature is never checked."""
    return jwt.encode(claims, TOKEN_SECRET, algorithm="HS256")


@pytest.fixture
def sample_claims() -> Dict[str, Any]:
    return {
        "user_id": "user-123",
        "sub": "user-123",
        "email": "user@example.com",
        "aud": "sit-iot",
    }


@pytest.fixture
def sample_token(sample_claims) -> str:
    return make_token(sample_claims)


@pytest.fixture
def sample_context(sample_token) -> RequestContext:
    """Authenticated caller."""
    return RequestContext(user_id="user-123", email="user@example.com", token=sample_token)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def mongo_database() -> FakeMongoDatabase:
    return FakeMongoDatabase()


@pytest.fixture
def firestore_client() -> FakeFirestoreClient:
    return FakeFirestoreClient()


# ============================================================================
# Mock Service Fixtures
# ============================================================================

@pytest.fixture
def mock_project_client():
    """Project service client granting dev-1 and dev-2."""
    client = AsyncMock()
    client.fetch_users = AsyncMock(return_value=[
        UserClients(username="mqtt-a", client_ids=["dev-1"], project_id="proj-1"),
        UserClients(username="mqtt-b", client_ids=["dev-2"], project_id="proj-1"),
    ])
    return client


@pytest.fixture
def mock_identity_client():
    """Identity client accepting every token."""
    client = AsyncMock()
    client.verify_token = AsyncMock(
        return_value=IdentityUser(local_id="user-123", email="idp@example.com")
    )
    return client


@pytest.fixture
def mock_message_repository():
    repo = AsyncMock()
    repo.find_by_id = AsyncMock()
    repo.list = AsyncMock(return_value=([], 0))
    repo.find_by_topic = AsyncMock(return_value=[])
    repo.find_by_client_id = AsyncMock(return_value=[])
    repo.find_by_time_range = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_aggregation_repository():
    repo = AsyncMock()
    repo.find_by_client_id = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def message_service(mock_message_repository, mock_aggregation_repository, mock_project_client):
    """MessageService over mocked repositories."""
    return MessageService(
        message_repo=mock_message_repository,
        aggregation_repo=mock_aggregation_repository,
        access_resolver=AccessResolver(mock_project_client),
    )


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> AppSettings:
    return AppSettings(environment="test", debug=True)


@pytest_asyncio.fixture
async def api_client(test_settings, mock_identity_client, message_service):
    """
    Test API client for unit tests.

    The lifespan is not run; services are placed on app.state directly.
    """
    import httpx

    from message_mng.main import create_app

    app = create_app(test_settings)
    app.state.identity_client = mock_identity_client
    app.state.message_service = message_service

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client
