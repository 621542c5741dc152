"""Tests for ticket and directory list operations."""

import pytest

from ticket_tracker.models import ConsolidateRow, Contributor, Ticket
from ticket_tracker.table import (
    consolidate_totals,
    filter_contributors,
    filter_tickets,
    sort_contributors,
    sort_tickets,
    unique_projects,
)


@pytest.fixture
def tickets():
    """Tickets mixing legacy and modern contributor fields."""
    return [
        Ticket(
            id=1,
            ticket_summary="Login page broken",
            project="SOP",
            received_date="2024-03-01",
            status="OPENED",
            priority="HIGH",
            contributor_names="Jane Smith, Ravi",
        ),
        Ticket(
            id=2,
            ticket_summary="Export slow",
            project="E-Capex",
            received_date="2024-01-15",
            status="CLOSED",
            priority="LOW",
            contributors=[{"id": 3, "name": "bob"}],
        ),
        Ticket(
            id=3,
            ticket_summary="Add filter",
            project="Livewire",
            received_date=None,
            status="OPENED",
            priority="MODERATE",
            contributor="Alice",
        ),
    ]


class TestFilterTickets:
    """Tests for filter_tickets."""

    def test_search_matches_summary(self, tickets):
        assert [t.id for t in filter_tickets(tickets, search="LOGIN")] == [1]

    def test_search_uses_display_value(self, tickets):
        """Test contributor search sees every field shape."""
        assert [t.id for t in filter_tickets(tickets, search="ravi")] == [1]
        assert [t.id for t in filter_tickets(tickets, search="bob")] == [2]
        assert [t.id for t in filter_tickets(tickets, search="alice")] == [3]

    def test_status_and_priority(self, tickets):
        assert [t.id for t in filter_tickets(tickets, status="OPENED", priority="HIGH")] == [1]

    def test_project_substring(self, tickets):
        assert [t.id for t in filter_tickets(tickets, project="capex")] == [2]

    def test_no_filters(self, tickets):
        assert len(filter_tickets(tickets)) == 3


class TestSortTickets:
    """Tests for sort_tickets."""

    def test_received_date_desc_default(self, tickets):
        """Test newest first with missing dates last."""
        assert [t.id for t in sort_tickets(tickets)] == [1, 2, 3]

    def test_received_date_asc(self, tickets):
        assert [t.id for t in sort_tickets(tickets, "receivedDate", "asc")] == [3, 2, 1]

    def test_contributor_uses_display_value(self, tickets):
        """Test sorting by contributor is case-insensitive on the display value."""
        assert [t.id for t in sort_tickets(tickets, "contributor", "asc")] == [3, 2, 1]

    def test_unknown_field(self, tickets):
        with pytest.raises(ValueError, match="sort field"):
            sort_tickets(tickets, "nope")

    def test_unknown_direction(self, tickets):
        with pytest.raises(ValueError, match="direction"):
            sort_tickets(tickets, "id", "sideways")


class TestUniqueProjects:
    """Tests for unique_projects."""

    def test_union_sorted(self, tickets):
        result = unique_projects(tickets + [Ticket(project="  ")], known_projects=["SOP", "CK Trends"])
        assert result == ["CK Trends", "E-Capex", "Livewire", "SOP"]


class TestContributorList:
    """Tests for directory list filtering and sorting."""

    @pytest.fixture
    def entries(self):
        return [
            Contributor(id=1, name="zoe", email="zoe@corp.io", department="QA"),
            Contributor(id=2, name="Adam", email="adam@corp.io", department="DevOps", active=False),
            Contributor(id=3, name="Mia", email="mia@corp.io", employee_id="EMP-9"),
        ]

    def test_search(self, entries):
        assert [e.id for e in filter_contributors(entries, search="emp-9")] == [3]

    def test_department_and_active(self, entries):
        assert [e.id for e in filter_contributors(entries, department="QA")] == [1]
        assert [e.id for e in filter_contributors(entries, active=False)] == [2]

    def test_sort_by_name(self, entries):
        assert [e.name for e in sort_contributors(entries)] == ["Adam", "Mia", "zoe"]
        assert [e.name for e in sort_contributors(entries, direction="desc")] == ["zoe", "Mia", "Adam"]

    def test_sort_unknown_field(self, entries):
        with pytest.raises(ValueError):
            sort_contributors(entries, by="phone")


class TestConsolidateTotals:
    """Tests for consolidate_totals."""

    def test_totals(self):
        rows = [
            ConsolidateRow.model_validate({"sNo": 1, "project": "SOP", "closedCount": 2, "openCount": 3, "totalBugs": 5}),
            ConsolidateRow(s_no=2, project="CK Trends", closed_count=1, open_count=0, total_bugs=1),
        ]
        assert consolidate_totals(rows) == {
            "total_projects": 2,
            "total_closed": 3,
            "total_open": 3,
            "total_bugs": 6,
        }

    def test_empty(self):
        assert consolidate_totals([])["total_projects"] == 0
