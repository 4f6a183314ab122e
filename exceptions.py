"""Custom exceptions for the expense tracker API."""
from typing import Any, Dict, List, Optional


class ExpenseTrackerException(Exception):
    """Base exception for all expense tracker errors."""

    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(ExpenseTrackerException):
    """Raised when an expense fails field validation."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Expense validation failed", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, status_code=400, details=details)


class StorageError(ExpenseTrackerException):
    """Raised when the database cannot complete an operation."""

    error_code = "STORAGE_ERROR"

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, status_code=500)


class DatabaseUnavailableError(ExpenseTrackerException):
    """Raised when no database connection is available to serve a request."""

    error_code = "DATABASE_UNAVAILABLE"

    def __init__(self, message: str = "Database service not available."):
        super().__init__(message, status_code=503)
