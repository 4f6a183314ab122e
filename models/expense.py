"""Pydantic models for Expense data"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from exceptions import ValidationError

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Annotated[str, StringConstraints(strip_whitespace=True)]


def to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot store."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class ExpenseCreate(BaseModel):
    """
    Input accepted when creating an expense. Unknown keys are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    title: RequiredText
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    category: RequiredText
    incurred: Optional[datetime] = None
    notes: Optional[OptionalText] = None

    def to_document(self, now: datetime) -> Dict[str, Any]:
        """Build the MongoDB document, defaulting `incurred` and `created` to `now`."""
        now = to_millis(now)
        document: Dict[str, Any] = {
            "title": self.title,
            "amount": self.amount,
            "category": self.category,
            "incurred": to_millis(self.incurred) if self.incurred else now,
            "created": now,
        }
        if self.notes is not None:
            document["notes"] = self.notes
        return document


class Expense(BaseModel):
    """
    A persisted expense as returned to clients.

    Every field is optional so documents read with a `fields` projection still load;
    `to_response` only emits the fields the document actually carried.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: Optional[str] = None
    title: Optional[str] = None
    amount: Optional[float] = None
    category: Optional[str] = None
    incurred: Optional[datetime] = None
    notes: Optional[str] = None
    slug: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Expense":
        doc = dict(document)
        if "_id" in doc:
            doc["id"] = str(doc.pop("_id"))
        return cls.model_validate(doc)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


def _describe_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        if error.get("type") == "missing":
            message = f"{field.capitalize()} is required"
        else:
            message = error.get("msg", "Invalid value")
        details.append({"field": field, "message": message})
    return details


def validate_expense(data: Any) -> ExpenseCreate:
    """
    Validate raw creation input.

    Raises:
        ValidationError: a required field is missing or blank, or `amount` is not a non-negative number.
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            "Expense payload must be a JSON object",
            details=[{"field": "body", "message": "Expected an object"}],
        )
    try:
        return ExpenseCreate.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError("Expense validation failed", details=_describe_errors(e)) from e
