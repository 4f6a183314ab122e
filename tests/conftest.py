"""
Pytest fixtures for the expense tracker API tests.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from database import DatabaseContext
from main import create_app

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)
CATEGORIES = ["food", "transport", "food", "rent"]


def make_expense(index: int) -> Dict[str, Any]:
    """Expense N is created N minutes after BASE_TIME and costs N * 10."""
    created = BASE_TIME + timedelta(minutes=index)
    return {
        "title": f"Expense {index}",
        "amount": float(index * 10),
        "category": CATEGORIES[index % len(CATEGORIES)],
        "incurred": created,
        "created": created,
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(mongodb_uri="mongodb://localhost:27017", db_name="expenses_test")


@pytest.fixture
def context(settings) -> DatabaseContext:
    return DatabaseContext.from_client(AsyncMongoMockClient(), settings)


@pytest.fixture
def collection(context):
    return context.expenses_collection


@pytest_asyncio.fixture
async def seeded_collection(collection):
    """Collection holding Expense 1..12."""
    documents: List[Dict[str, Any]] = [make_expense(i) for i in range(1, 13)]
    await collection.insert_many(documents)
    return collection


@pytest_asyncio.fixture
async def client(settings, context):
    app = create_app(settings=settings, context=context)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
