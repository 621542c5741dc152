"""
Ticket form validation and text helpers.

``TicketForm`` carries the field limits enforced before a ticket is sent to
the backend. ``validate_ticket`` reports violations per wire field instead of
raising, so callers can show every problem at once.
"""

import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from .display import contributor_name
from .models import WIRE_CONFIG, BugType, Priority, Status, Ticket


# Wire field -> human label used in error messages
FIELD_LABELS = {
    "ticketSummary": "Ticket summary",
    "project": "Project",
    "issueDescription": "Issue description",
    "receivedDate": "Received date",
    "priority": "Priority",
    "ticketOwner": "Ticket owner",
    "contributor": "Contributor",
    "bugType": "Bug type",
    "status": "Status",
    "review": "Review",
    "impact": "Impact",
    "contact": "Contact",
    "employeeId": "Employee ID",
    "employeeName": "Employee name",
    "messageId": "Message ID",
}


class TicketValidationError(ValueError):
    """Ticket failed form validation."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Ticket validation failed for: {fields}")


class TicketForm(BaseModel):
    """Field limits for a ticket about to be saved."""

    ticket_summary: str = Field(..., min_length=1, max_length=500)
    project: str = Field(..., min_length=1, max_length=100)
    issue_description: str = Field(..., min_length=1, max_length=2000)
    received_date: str = Field(..., min_length=1, pattern=r"^\d{4}-\d{2}-\d{2}$")
    priority: Priority
    ticket_owner: str = Field(..., min_length=1, max_length=100)
    contributor: str = Field(default="", max_length=500)
    bug_type: BugType
    status: Status
    review: str = Field(default="", max_length=1000)
    impact: str = Field(default="", max_length=500)
    contact: str = Field(default="", max_length=100)
    employee_id: str = Field(default="", max_length=50)
    employee_name: str = Field(default="", max_length=100)
    message_id: str = Field(..., min_length=1)

    model_config = {**WIRE_CONFIG, "extra": "ignore"}

    @field_validator("contributor", mode="before")
    @classmethod
    def contributor_as_text(cls, v: Any) -> str:
        """Measure object-shaped contributors by their display name."""
        return "" if v is None else contributor_name(v)

    @field_validator("review", "impact", "contact", "employee_id", "employee_name", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


@dataclass
class ValidationOutcome:
    """Result of ``validate_ticket``."""

    success: bool
    errors: dict[str, list[str]] = field(default_factory=dict)


def _error_message(error: dict[str, Any]) -> str:
    """Translate a pydantic error into the form's wording."""
    loc = str(error["loc"][0]) if error.get("loc") else ""
    label = FIELD_LABELS.get(loc, loc)
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind in ("missing", "string_too_short"):
        return f"{label} is required"
    if kind == "string_too_long":
        return f"{label} must be less than {ctx.get('max_length')} characters"
    if kind == "string_pattern_mismatch":
        return "Date must be in YYYY-MM-DD format"
    if kind == "enum":
        return f"{label} must be one of: {ctx.get('expected', '')}"
    return f"{label}: {error.get('msg', 'invalid value')}"


def validate_ticket(data: Any) -> ValidationOutcome:
    """
    Validate a ticket against the form limits.

    Args:
        data: ``Ticket`` instance or camelCase mapping.

    Returns:
        ValidationOutcome with per-field error messages. Never raises.
    """
    if isinstance(data, Ticket):
        data = data.to_wire()
    if not isinstance(data, Mapping):
        return ValidationOutcome(success=False, errors={"ticket": ["Ticket data must be an object"]})

    try:
        TicketForm.model_validate(dict(data))
    except ValidationError as e:
        errors: dict[str, list[str]] = {}
        for error in e.errors():
            # loc uses the alias because input is keyed by wire names
            key = str(error["loc"][0]) if error.get("loc") else "ticket"
            errors.setdefault(key, []).append(_error_message(error))
        return ValidationOutcome(success=False, errors=errors)

    return ValidationOutcome(success=True)


def character_count(text: str, max_length: int) -> str:
    """Counter shown next to length-limited fields, e.g. ``"12/500"``."""
    return f"{len(text)}/{max_length}"


def is_character_limit_exceeded(text: str, max_length: int) -> bool:
    return len(text) > max_length


def truncate_text(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut with '...'."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def generate_message_id() -> str:
    """Message id for manually created tickets: ``msg_<millis>_<7 chars>``."""
    alphabet = string.digits + string.ascii_lowercase
    suffix = "".join(secrets.choice(alphabet) for _ in range(7))
    return f"msg_{int(time.time() * 1000)}_{suffix}"
