"""
Ticket and directory list operations.

Search, filter and sort for the ticket list, the contributor directory list
and the consolidation summary. Anything that looks at a ticket's
contributors uses ``display_value``, so search, sort and rendering can never
disagree about what a ticket's contributors are.
"""

from datetime import date
from typing import Any, Iterable, Optional, Sequence

from .display import display_value
from .models import ConsolidateRow, Contributor, Ticket


# Used when the backend has no projects endpoint or it fails
FALLBACK_PROJECT_NAMES = (
    "Material reciept",
    "My buddy",
    "CK_Alumni",
    "HEPL_Alumni",
    "MMW Module(Ticket tool)",
    "CK Trends",
    "Livewire",
    "Meeting agenda",
    "Pro Hire",
    "E-Capex",
    "SOP",
    "Assert Management",
    "Mould Mamp",
)

# Sortable wire field -> Ticket attribute ("contributor" is computed)
TICKET_SORT_FIELDS = {
    "id": "id",
    "ticketSummary": "ticket_summary",
    "project": "project",
    "receivedDate": "received_date",
    "priority": "priority",
    "status": "status",
    "ticketOwner": "ticket_owner",
    "contributor": None,
}

CONTRIBUTOR_SORT_FIELDS = {
    "name": "name",
    "email": "email",
    "department": "department",
    "createdAt": "created_at",
}

SORT_DIRECTIONS = ("asc", "desc")


def _contains(value: Optional[str], needle: str) -> bool:
    return needle in (value or "").lower()


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return date.min


def _sort_key(value: Any) -> tuple:
    """Missing values first, strings compared case-insensitively."""
    if value is None or value == "":
        return (0, "")
    if isinstance(value, str):
        return (1, value.lower())
    return (1, value)


def _check_direction(direction: str) -> bool:
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction '{direction}', expected 'asc' or 'desc'")
    return direction == "desc"


def filter_tickets(
    tickets: Iterable[Ticket],
    search: str = "",
    status: Optional[str] = None,
    priority: Optional[str] = None,
    project: Optional[str] = None,
) -> list[Ticket]:
    """
    Filter tickets for the list view.

    Args:
        tickets: Tickets to filter.
        search: Case-insensitive substring matched against summary,
            description, project, owner, employee name, message id and
            the contributor display value.
        status: Exact status to keep.
        priority: Exact priority to keep.
        project: Case-insensitive project substring.

    Returns:
        Matching tickets in their original order.
    """
    needle = search.strip().lower()
    result = []

    for ticket in tickets:
        if needle and not (
            _contains(ticket.ticket_summary, needle)
            or _contains(ticket.issue_description, needle)
            or _contains(ticket.project, needle)
            or _contains(ticket.ticket_owner, needle)
            or _contains(ticket.employee_name, needle)
            or _contains(ticket.message_id, needle)
            or _contains(display_value(ticket), needle)
        ):
            continue
        if status and ticket.status != status:
            continue
        if priority and ticket.priority != priority:
            continue
        if project and not _contains(ticket.project, project.lower()):
            continue
        result.append(ticket)

    return result


def sort_tickets(
    tickets: Iterable[Ticket],
    field: str = "receivedDate",
    direction: str = "desc",
) -> list[Ticket]:
    """
    Sort tickets for the list view.

    Args:
        tickets: Tickets to sort.
        field: One of ``TICKET_SORT_FIELDS``.
        direction: "asc" or "desc".

    Returns:
        New sorted list.

    Raises:
        ValueError: If field or direction is unknown.
    """
    if field not in TICKET_SORT_FIELDS:
        raise ValueError(f"Unknown sort field '{field}'")
    reverse = _check_direction(direction)
    attr = TICKET_SORT_FIELDS[field]

    def key(ticket: Ticket) -> tuple:
        if attr is None:
            return _sort_key(display_value(ticket))
        value = getattr(ticket, attr)
        if attr == "received_date" and value:
            return (1, _parse_date(value))
        return _sort_key(value)

    return sorted(tickets, key=key, reverse=reverse)


def unique_projects(
    tickets: Iterable[Ticket],
    known_projects: Sequence[str] = (),
) -> list[str]:
    """Sorted union of known project names and non-blank ticket projects."""
    projects = set(known_projects)
    projects.update(
        ticket.project for ticket in tickets
        if ticket.project and ticket.project.strip()
    )
    return sorted(projects)


def filter_contributors(
    entries: Iterable[Contributor],
    search: str = "",
    department: Optional[str] = None,
    active: Optional[bool] = None,
) -> list[Contributor]:
    """
    Filter the contributor directory list.

    Args:
        entries: Directory entries.
        search: Case-insensitive substring of name, email, employee id or
            department.
        department: Exact department to keep.
        active: Keep only active (True) or inactive (False) entries.

    Returns:
        Matching entries in their original order.
    """
    needle = search.strip().lower()
    result = []

    for entry in entries:
        if needle and not (
            _contains(entry.name, needle)
            or _contains(entry.email, needle)
            or _contains(entry.employee_id, needle)
            or _contains(entry.department, needle)
        ):
            continue
        if department and entry.department != department:
            continue
        if active is not None and entry.active != active:
            continue
        result.append(entry)

    return result


def sort_contributors(
    entries: Iterable[Contributor],
    by: str = "name",
    direction: str = "asc",
) -> list[Contributor]:
    """Sort directory entries by name, email, department or createdAt."""
    if by not in CONTRIBUTOR_SORT_FIELDS:
        raise ValueError(f"Unknown contributor sort field '{by}'")
    reverse = _check_direction(direction)
    attr = CONTRIBUTOR_SORT_FIELDS[by]
    return sorted(entries, key=lambda entry: (getattr(entry, attr) or "").lower(), reverse=reverse)


def consolidate_totals(rows: Iterable[ConsolidateRow]) -> dict[str, int]:
    """
    Totals across the consolidation summary.

    Returns:
        Dict with total_projects, total_closed, total_open and total_bugs.
    """
    totals = {"total_projects": 0, "total_closed": 0, "total_open": 0, "total_bugs": 0}
    for row in rows:
        totals["total_projects"] += 1
        totals["total_closed"] += row.closed_count
        totals["total_open"] += row.open_count
        totals["total_bugs"] += row.total_bugs
    return totals
