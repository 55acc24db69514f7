"""Shared fixtures. The environment is pinned before the app is imported."""

import os

os.environ["SECRET_KEY"] = "test-secret-key-for-mindmate-suite"
os.environ["DATABASE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "development"
os.environ["BCRYPT_ROUNDS"] = "4"
for _key in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER", "OPENAI_API_KEY", "XAI_API_KEY"):
    os.environ[_key] = ""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.db.directory import MemoryDirectory
from app.main import app


@pytest_asyncio.fixture
async def directory():
    """A fresh in-memory directory per test."""
    return MemoryDirectory()


@pytest_asyncio.fixture
async def repos(directory):
    async with directory.session() as bound:
        yield bound


@pytest.fixture
def client():
    """Test client with the full lifespan (new in-memory directory each time)."""
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="u@test.com", password="secret1", name="U"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
