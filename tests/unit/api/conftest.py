"""Fixtures for HTTP-level tests: app wired to the in-memory store."""

from __future__ import annotations

import httpx
import pytest
from jose import jwt

from vault_gateway.config import get_settings
from vault_gateway.db.session import get_session_dependency
from vault_gateway.main import create_app
from vault_gateway.services.api_key import ApiKeyService


@pytest.fixture
async def client(db_session):
    app = create_app()

    async def override_session():
        yield db_session

    app.dependency_overrides[get_session_dependency] = override_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
async def api_key(db_session) -> str:
    plaintext, _ = await ApiKeyService.issue(db_session, "test")
    await db_session.commit()
    return plaintext


@pytest.fixture
def bearer_for():
    """Build an Authorization header for a user id."""
    identity = get_settings().identity

    def _headers(user_id: str) -> dict[str, str]:
        token = jwt.encode({"sub": user_id}, identity.jwt_secret, algorithm=identity.algorithm)
        return {"Authorization": f"Bearer {token}"}

    return _headers
