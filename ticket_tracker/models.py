"""
Data models for the Ticket Tracker client.

Uses Pydantic for validation and serialization of backend records. Wire
field names are camelCase; Python attributes are snake_case.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


DEPARTMENT_OPTIONS = (
    "L1 Support",
    "L2 Support",
    "L3 Support",
    "Development",
    "QA",
    "DevOps",
    "Management",
    "Other",
)


class Priority(str, Enum):
    LOW = "LOW"
    PRIORITY = "PRIORITY"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class BugType(str, Enum):
    BUG = "BUG"
    ENHANCEMENT = "ENHANCEMENT"
    TASK = "TASK"


class Status(str, Enum):
    ASSIGNED = "ASSIGNED"
    OPENED = "OPENED"
    CLOSED = "CLOSED"
    FIXED = "FIXED"
    NEW = "NEW"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class ContributorOption(BaseModel):
    """Dropdown projection of a directory entry."""

    value: int
    label: str
    email: str = ""
    department: Optional[str] = None
    active: bool = True

    model_config = {"frozen": True}


class Contributor(BaseModel):
    """
    A registered person in the contributor directory.

    Owned by the backend; the client only ever holds read-only copies.
    Deactivation is a soft delete (``active=False``).
    """

    id: int = Field(..., description="Stable directory identity")
    name: str = Field(..., description="Display name")
    email: str = Field(default="", description="Contact email")
    employee_id: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    active: bool = True
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {**WIRE_CONFIG, "frozen": True}

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the backend's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_option(self) -> ContributorOption:
        """Project to a dropdown option."""
        return ContributorOption(
            value=self.id,
            label=self.name,
            email=self.email,
            department=self.department,
            active=self.active,
        )


class ContributorRequest(BaseModel):
    """Create/update body for directory management."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    employee_id: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    active: bool = True
    notes: Optional[str] = None

    model_config = WIRE_CONFIG

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Minimal email shape check."""
        v = v.strip()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email format")
        return v

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Ticket(BaseModel):
    """
    A ticket record as exchanged with the backend.

    Deliberately lenient: tickets predate the current contributor model and
    may carry any combination of the legacy singular fields
    (``contributor``/``contributorId``/``contributorName``) and the modern
    plural ones (``contributors``/``contributorIds``/``contributorNames``).
    Unknown fields are kept so they survive an edit round-trip.
    """

    id: Optional[int] = None
    ticket_summary: Optional[str] = None
    project: Optional[str] = None
    issue_description: Optional[str] = None
    received_date: Optional[str] = None
    priority: Optional[str] = None
    ticket_owner: Optional[str] = None
    bug_type: Optional[str] = None
    status: Optional[str] = None
    review: Optional[str] = None
    impact: Optional[str] = None
    contact: Optional[str] = None
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    message_id: Optional[str] = None

    # Legacy singular contributor fields
    contributor: Optional[Any] = None
    contributor_id: Optional[int] = None
    contributor_name: Optional[str] = None

    # Modern plural contributor fields
    contributors: Optional[list[Any]] = None
    contributor_ids: Optional[list[int]] = None
    contributor_names: Optional[str] = None
    contributor_count: Optional[int] = None

    model_config = {**WIRE_CONFIG, "extra": "allow"}

    @field_validator("contributor_id", "contributor_count", mode="before")
    @classmethod
    def parse_optional_int(cls, v: Any) -> Optional[int]:
        """Keep int-convertible values; blanks and junk from older records become None."""
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v.strip())
        return None

    @field_validator("contributors", mode="before")
    @classmethod
    def parse_contributors(cls, v: Any) -> Optional[list[Any]]:
        """Wrap a bare string or object into a one-entry list."""
        if v is None or isinstance(v, list):
            return v
        if isinstance(v, (str, dict)):
            return [v]
        return None

    @field_validator("contributor_ids", mode="before")
    @classmethod
    def parse_contributor_ids(cls, v: Any) -> Any:
        """Accept the comma-joined string the update endpoint echoes back."""
        if isinstance(v, str):
            return [int(part) for part in v.split(",") if part.strip().isdigit()]
        if isinstance(v, list):
            return [item for item in v if isinstance(item, int) and not isinstance(item, bool)]
        if isinstance(v, int) and not isinstance(v, bool):
            return [v]
        return None

    @field_validator("contributor_names", mode="before")
    @classmethod
    def parse_contributor_names(cls, v: Any) -> Any:
        """Join array-shaped names into the canonical comma-joined string."""
        if isinstance(v, list):
            return ", ".join(str(name) for name in v if name)
        return v if isinstance(v, str) else None

    @field_validator("contributor_name", mode="before")
    @classmethod
    def parse_contributor_name(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the backend's camelCase shape, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ConsolidateRow(BaseModel):
    """Per-project bug summary returned by the consolidation endpoint."""

    s_no: int = 0
    project: str = ""
    closed_count: int = 0
    open_count: int = 0
    total_bugs: int = 0

    model_config = {**WIRE_CONFIG, "frozen": True}


class DepartmentStats(BaseModel):
    """Contributor counts for one department."""

    department: str
    count: int = 0
    active_count: int = 0

    model_config = {"frozen": True}
