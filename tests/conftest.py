"""Pytest configuration and shared fixtures"""
from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from contact_relay.api.app import create_app
from contact_relay.api.broadcast import BroadcastRegistry
from contact_relay.api.storage import ContactStore
from contact_relay.config import Settings


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite database file unique to each test"""
    return f"sqlite+aiosqlite:///{tmp_path / 'contact.db'}"


@pytest.fixture
def settings(database_url: str) -> Settings:
    """Settings with a rate limit high enough not to interfere"""
    return Settings(database_url=database_url, rate_limit_per_minute=1000)


@pytest_asyncio.fixture
async def store(database_url: str) -> AsyncGenerator[ContactStore, None]:
    """ContactStore with the schema created"""
    contact_store = ContactStore.from_url(database_url)
    await contact_store.create_schema()
    yield contact_store
    await contact_store.dispose()


@pytest.fixture
def registry() -> BroadcastRegistry:
    return BroadcastRegistry()


@pytest.fixture
def app(settings: Settings, store: ContactStore, registry: BroadcastRegistry) -> FastAPI:
    return create_app(settings, store=store, registry=registry)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client calling the app in-process"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
