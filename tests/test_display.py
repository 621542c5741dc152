"""Tests for contributor display rules."""

import pytest

from ticket_tracker.display import contributor_name, display_value, legacy_contributor, ticket_field
from ticket_tracker.models import Contributor, Ticket
from ticket_tracker.references import CustomContributor, LinkedContributor


class TestDisplayValue:
    """Tests for display_value precedence."""

    def test_summary_wins_over_everything(self):
        """Test contributorNames shadows the array and the legacy field."""
        ticket = {
            "contributorNames": "A, B",
            "contributors": [{"name": "C"}],
            "contributor": "D",
        }
        assert display_value(ticket) == "A, B"
        assert display_value(Ticket.model_validate(ticket)) == "A, B"

    def test_array_wins_over_legacy(self):
        """Test the contributors array shadows the singular field."""
        ticket = Ticket(contributors=["Ann", {"id": 1, "name": "Bo"}], contributor="Old")
        assert display_value(ticket) == "Ann, Bo"

    def test_empty_summary_falls_through(self):
        """Test an empty summary string does not win."""
        ticket = {"contributorNames": "", "contributors": ["X"]}
        assert display_value(ticket) == "X"

    def test_legacy_object(self):
        """Test a ticket with only the legacy object shows its name."""
        ticket = {"contributor": {"id": 3, "name": "Bob"}}
        assert display_value(ticket) == "Bob"
        assert display_value(Ticket.model_validate(ticket)) == "Bob"

    def test_legacy_string(self):
        assert display_value({"contributor": "Free Text"}) == "Free Text"

    def test_nothing_set(self):
        """Test tickets without contributors display an empty string."""
        assert display_value(Ticket()) == ""
        assert display_value({}) == ""

    def test_empty_names_skipped_in_join(self):
        """Test unnamed entries do not leave gaps in the joined string."""
        ticket = {"contributors": ["A", {"id": 2}, "", "B"]}
        assert display_value(ticket) == "A, B"

    def test_email_used_for_nameless_object(self):
        assert display_value({"contributors": [{"email": "x@corp.io"}]}) == "x@corp.io"

    def test_names_array_joined(self):
        """Test an array-shaped summary is joined on read."""
        assert display_value({"contributorNames": ["A", "B"]}) == "A, B"
        assert Ticket.model_validate({"contributorNames": ["A", "B"]}).contributor_names == "A, B"

    @pytest.mark.parametrize("ticket", [None, 42, "text", []])
    def test_never_raises(self, ticket):
        """Test odd inputs degrade to an empty string."""
        assert display_value(ticket) == ""


class TestContributorName:
    """Tests for contributor_name."""

    def test_variants(self):
        entry = Contributor(id=1, name="Ann")
        assert contributor_name("Ann") == "Ann"
        assert contributor_name(entry) == "Ann"
        assert contributor_name(LinkedContributor(entry=entry)) == "Ann"
        assert contributor_name(CustomContributor(name="Bo")) == "Bo"
        assert contributor_name({"name": "Cy"}) == "Cy"
        assert contributor_name(None) == ""


class TestLegacyContributor:
    """Tests for legacy_contributor."""

    def test_first_array_entry(self):
        ticket = {"contributors": [{"id": 4, "name": "Dee"}, "Eve"], "contributor": "Old"}
        assert legacy_contributor(ticket).contributor_id == 4

    def test_skips_unusable_entries(self):
        assert legacy_contributor({"contributors": [{}, "Eve"]}) == CustomContributor(name="Eve")

    def test_falls_back_to_singular(self):
        assert legacy_contributor({"contributor": "Old"}) == CustomContributor(name="Old")

    def test_none(self):
        assert legacy_contributor(Ticket()) is None


class TestTicketField:
    """Tests for ticket_field."""

    def test_mapping_camel_then_snake(self):
        assert ticket_field({"contributorNames": "A"}, "contributor_names") == "A"
        assert ticket_field({"contributor_names": "B"}, "contributor_names") == "B"

    def test_model_attribute(self):
        assert ticket_field(Ticket(project="P"), "project") == "P"

    def test_missing(self):
        assert ticket_field({}, "project") is None
        assert ticket_field(None, "project") is None
