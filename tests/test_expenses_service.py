"""Tests for the expense service against an in-memory collection."""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from exceptions import StorageError, ValidationError
from models.expense import to_millis
from models.query import parse_query_params
from services.expenses_service import ExpenseService


@pytest.fixture
def service(collection):
    return ExpenseService(collection)


def _titles(expenses):
    return [expense.title for expense in expenses]


@pytest.mark.asyncio
async def test_create_expense_persists_and_returns_record(service, collection):
    before = to_millis(datetime.now(timezone.utc))

    expense = await service.create_expense({"title": "Coffee", "amount": 4.5, "category": "food"})

    assert expense.id
    assert (expense.title, expense.amount, expense.category) == ("Coffee", 4.5, "food")
    assert before <= expense.created <= datetime.now(timezone.utc)
    assert expense.incurred == expense.created
    assert expense.slug is None
    assert await collection.count_documents({}) == 1


@pytest.mark.asyncio
async def test_create_expense_keeps_given_incurred(service):
    expense = await service.create_expense(
        {"title": "Train", "amount": 30, "category": "transport", "incurred": "2024-03-01T09:00:00+00:00"}
    )

    assert expense.incurred == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert expense.created > expense.incurred


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"amount": 10, "category": "food"},
        {"title": "Lunch", "amount": 10},
        {"title": "Lunch", "amount": -0.01, "category": "food"},
    ],
)
async def test_invalid_expense_is_not_persisted(service, collection, payload):
    with pytest.raises(ValidationError):
        await service.create_expense(payload)

    assert await collection.count_documents({}) == 0


@pytest.mark.asyncio
async def test_insert_failure_raises_storage_error():
    collection = MagicMock()
    collection.insert_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
    service = ExpenseService(collection)

    with pytest.raises(StorageError, match="no servers"):
        await service.create_expense({"title": "Coffee", "amount": 4.5, "category": "food"})


@pytest.mark.asyncio
async def test_find_failure_raises_storage_error():
    collection = MagicMock()
    collection.find.side_effect = ServerSelectionTimeoutError("no servers")
    service = ExpenseService(collection)

    with pytest.raises(StorageError):
        await service.get_expenses({})


@pytest.mark.asyncio
async def test_default_listing_is_newest_first(service, seeded_collection):
    expenses = await service.get_expenses()

    assert _titles(expenses) == [f"Expense {i}" for i in range(12, 2, -1)]


@pytest.mark.asyncio
async def test_sort_by_amount(service, seeded_collection):
    ascending = await service.get_expenses({"sort": "amount", "limit": "3"})
    descending = await service.get_expenses({"sort": "-amount", "limit": "3"})

    assert [e.amount for e in ascending] == [10.0, 20.0, 30.0]
    assert [e.amount for e in descending] == [120.0, 110.0, 100.0]


@pytest.mark.asyncio
async def test_second_page_returns_records_six_to_ten(service, seeded_collection):
    expenses = await service.get_expenses({"page": "2", "limit": "5"})

    assert _titles(expenses) == [f"Expense {i}" for i in range(7, 2, -1)]


@pytest.mark.asyncio
async def test_page_past_the_end_is_empty(service, seeded_collection):
    assert await service.get_expenses({"page": "4", "limit": "5"}) == []


@pytest.mark.asyncio
async def test_filter_by_category(service, seeded_collection):
    expenses = await service.get_expenses({"category": "food"})

    assert expenses
    assert {e.category for e in expenses} == {"food"}
    assert len(expenses) == 6


@pytest.mark.asyncio
async def test_filter_by_amount_range(service, seeded_collection):
    expenses = await service.get_expenses([("amount[gte]", "100"), ("sort", "amount")])

    assert [e.amount for e in expenses] == [100.0, 110.0, 120.0]


@pytest.mark.asyncio
async def test_parsed_query_is_accepted(service, seeded_collection):
    query = parse_query_params({"amount[lt]": "30", "sort": "-amount"})

    assert [e.amount for e in await service.get_expenses(query)] == [20.0, 10.0]


@pytest.mark.asyncio
async def test_fields_projection_limits_response(service, seeded_collection):
    expenses = await service.get_expenses({"fields": "title", "limit": "1"})

    assert [set(e.to_response()) for e in expenses] == [{"id", "title"}]


@pytest.mark.asyncio
async def test_invalid_documents_are_skipped(service, collection):
    created = datetime(2024, 1, 1)
    await collection.insert_many([
        {"title": "Good", "amount": 5.0, "category": "food", "created": created},
        {"title": "Bad", "amount": "five", "category": "food", "created": created + timedelta(minutes=1)},
    ])

    assert _titles(await service.get_expenses()) == ["Good"]


@pytest.mark.asyncio
async def test_empty_collection_lists_nothing(service):
    assert await service.get_expenses({"category": "food"}) == []


@pytest.mark.asyncio
async def test_created_record_matches_stored_precision(service, collection):
    expense = await service.create_expense(
        {"title": "Snack", "amount": 2, "category": "food", "incurred": "2024-03-01T09:00:00.123456+00:00"}
    )

    assert expense.created.microsecond % 1000 == 0
    assert expense.incurred == datetime(2024, 3, 1, 9, 0, 0, 123000, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"fields": "notes,notes.text"}, {"sort": "$where"}, {"sort": "title."}])
async def test_malformed_field_names_do_not_fail(service, seeded_collection, params):
    expenses = await service.get_expenses(params)

    assert len(expenses) == 10
