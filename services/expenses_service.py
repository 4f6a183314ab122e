"""Service layer for handling expense-related logic."""
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from exceptions import StorageError
from models.expense import Expense, validate_expense
from models.query import ExpenseQuery, QueryParams, parse_query_params
from services.query_features import QueryFeatures

logger = logging.getLogger(__name__)


class ExpenseService:
    """Creates and lists expenses in a single MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection, default_limit: int = 10, max_limit: int = 100):
        self.collection = collection
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def create_expense(self, data: Mapping[str, Any]) -> Expense:
        """
        Validate `data` and insert it as a new expense.

        Returns:
            The persisted expense, including its generated id and default timestamps.

        Raises:
            ValidationError: If the input is invalid. Nothing is written.
            StorageError: If the insert fails.
        """
        expense_input = validate_expense(data)
        document = expense_input.to_document(datetime.now(timezone.utc))

        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Database error creating expense: {e}")
            raise StorageError(f"Database error creating expense: {e}") from e

        document["_id"] = result.inserted_id
        expense = Expense.from_document(document)
        logger.info(f"Created expense {expense.id}: '{expense.title}' ({expense.amount}, {expense.category})")
        return expense

    async def get_expenses(self, query: Optional[Union[ExpenseQuery, QueryParams]] = None) -> List[Expense]:
        """
        List expenses matching `query`.

        `query` is either an already parsed ExpenseQuery or raw query parameters.
        An empty result is returned as an empty list.

        Raises:
            StorageError: If the database query fails.
        """
        if not isinstance(query, ExpenseQuery):
            query = parse_query_params(query or {}, default_limit=self.default_limit, max_limit=self.max_limit)

        features = QueryFeatures(query).filter().sort().limit().paginate()

        expenses = []
        try:
            async for doc in features.find(self.collection):
                try:
                    expenses.append(Expense.from_document(doc))
                except PydanticValidationError as e:
                    logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                    # Skip invalid documents
                    continue
        except PyMongoError as e:
            logger.error(f"Database error fetching expenses: {e}")
            raise StorageError(f"Database error fetching expenses: {e}") from e

        logger.info(f"Fetched {len(expenses)} expenses (page {query.page}, limit {query.limit}).")
        return expenses
