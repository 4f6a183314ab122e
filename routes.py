"""API Routes for expenses"""
import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from config import Settings
from database import DatabaseContext
from exceptions import DatabaseUnavailableError
from models.query import parse_query_params
from services.expenses_service import ExpenseService

router = APIRouter()
logger = logging.getLogger(__name__)


def envelope(data: Any) -> Dict[str, Any]:
    return {"message": "success", "data": data}


# --- Dependency Functions ---
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> DatabaseContext:
    context = getattr(request.app.state, "context", None)
    return context or DatabaseContext.unavailable()


def get_expense_service(
    context: Annotated[DatabaseContext, Depends(get_database)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ExpenseService:
    """Build the expense service around the collection held by the application context."""
    if not context.available:
        logger.error("Expenses collection not found in application context. Check MongoDB connection.")
        raise DatabaseUnavailableError()
    return ExpenseService(
        context.expenses_collection,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )


ExpenseServiceDep = Annotated[ExpenseService, Depends(get_expense_service)]

# --- API Routes ---


@router.post("/expenses", status_code=201, summary="Create Expense", description="Validates and stores a single expense record.")
async def create_expense(service: ExpenseServiceDep, payload: Annotated[Any, Body(...)]) -> Dict[str, Any]:
    logger.info("POST /expenses endpoint called.")
    expense = await service.create_expense(payload)
    return envelope(expense.to_response())


@router.get("/expenses", summary="List Expenses", description="Lists expenses with field filters, `sort`, `fields`, `page` and `limit` query parameters. Newest first by default.")
async def get_expenses(request: Request, service: ExpenseServiceDep) -> Dict[str, Any]:
    query = parse_query_params(
        request.query_params.multi_items(),
        default_limit=service.default_limit,
        max_limit=service.max_limit,
    )
    logger.info(f"GET /expenses endpoint called. Filters: {len(query.filters)}, page {query.page}, limit {query.limit}")
    expenses = await service.get_expenses(query)
    return envelope([expense.to_response() for expense in expenses])


@router.get("/health", summary="Health Check", description="Reports whether the database answers a ping.")
async def health(context: Annotated[DatabaseContext, Depends(get_database)]) -> Dict[str, Any]:
    database_up = await context.ping()
    return envelope({"database": "up" if database_up else "down"})
