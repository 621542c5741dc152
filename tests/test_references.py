"""Tests for contributor references."""

import pytest
from pydantic import TypeAdapter

from ticket_tracker.models import Contributor
from ticket_tracker.references import (
    ContributorReference,
    CustomContributor,
    LinkedContributor,
    best_string_form,
    parse_reference,
)


class TestParseReference:
    """Tests for parse_reference."""

    def test_string_becomes_custom(self):
        """Test free text becomes a trimmed custom reference."""
        ref = parse_reference("  Jane Doe ")
        assert isinstance(ref, CustomContributor)
        assert ref.name == "Jane Doe"

    @pytest.mark.parametrize("raw", ["", "   ", None, 42, [], 3.5])
    def test_unusable_values_return_none(self, raw):
        """Test values with no string form yield None."""
        assert parse_reference(raw) is None

    def test_object_with_id_and_name_becomes_linked(self):
        """Test a well-formed entry is trusted as a linked reference."""
        ref = parse_reference({"id": 7, "name": "Asha", "email": "asha@corp.io", "department": "QA"})
        assert isinstance(ref, LinkedContributor)
        assert ref.contributor_id == 7
        assert ref.display_name == "Asha"
        assert ref.entry.department == "QA"

    def test_object_without_id_degrades_to_name(self):
        """Test an object missing its id becomes a custom reference."""
        ref = parse_reference({"name": "Ravi"})
        assert ref == CustomContributor(name="Ravi")

    def test_object_with_string_id_degrades(self):
        """Test a non-numeric id does not create a link."""
        ref = parse_reference({"id": "7", "name": "Ravi"})
        assert isinstance(ref, CustomContributor)

    def test_object_with_boolean_id_degrades(self):
        """Test booleans are not accepted as identities."""
        assert isinstance(parse_reference({"id": True, "name": "Ravi"}), CustomContributor)

    def test_object_falls_back_to_email(self):
        """Test email is used when the name is blank."""
        ref = parse_reference({"id": 3, "name": "  ", "email": "x@corp.io"})
        assert ref == CustomContributor(name="x@corp.io")

    def test_object_without_text_returns_none(self):
        """Test an object with neither name nor email is dropped."""
        assert parse_reference({"id": 3}) is None
        assert parse_reference({}) is None

    def test_malformed_entry_fields_degrade(self):
        """Test an object whose entry fields fail validation keeps its name."""
        ref = parse_reference({"id": 4, "name": "Kim", "active": "not-a-bool"})
        assert ref == CustomContributor(name="Kim")

    def test_null_optional_fields_accepted(self):
        """Test explicit nulls from the wire do not break linking."""
        ref = parse_reference({"id": 5, "name": "Lee", "email": None, "department": None})
        assert isinstance(ref, LinkedContributor)
        assert ref.entry.email == ""

    def test_contributor_model_becomes_linked(self):
        """Test a directory entry is wrapped as linked."""
        entry = Contributor(id=1, name="Ann")
        assert parse_reference(entry) == LinkedContributor(entry=entry)

    def test_reference_passes_through(self):
        """Test an existing reference is returned unchanged."""
        ref = CustomContributor(name="Ann")
        assert parse_reference(ref) is ref


class TestBestStringForm:
    """Tests for best_string_form."""

    def test_prefers_name(self):
        assert best_string_form({"name": " Ann ", "email": "a@b.io"}) == "Ann"

    def test_uses_email(self):
        assert best_string_form({"name": None, "email": "a@b.io"}) == "a@b.io"

    def test_empty(self):
        assert best_string_form({"name": 5}) == ""


class TestReferenceWire:
    """Tests for reference serialization."""

    def test_custom_wire_is_string(self):
        """Test custom references serialize to their name."""
        assert CustomContributor(name="Ann").to_wire() == "Ann"

    def test_linked_wire_is_camel_case_object(self):
        """Test linked references serialize the entry with wire names."""
        entry = Contributor(id=2, name="Bo", email="bo@corp.io", employee_id="E2")
        assert LinkedContributor(entry=entry).to_wire() == {
            "id": 2,
            "name": "Bo",
            "email": "bo@corp.io",
            "employeeId": "E2",
            "active": True,
        }

    def test_discriminated_union(self):
        """Test the tagged union validates on kind."""
        adapter = TypeAdapter(ContributorReference)
        ref = adapter.validate_python({"kind": "linked", "entry": {"id": 1, "name": "A"}})
        assert isinstance(ref, LinkedContributor)
        assert isinstance(adapter.validate_python({"kind": "custom", "name": "B"}), CustomContributor)


class TestLinkedNames:
    """Tests for names on linked references."""

    def test_linked_name_trimmed(self):
        """Test linked names are trimmed like free text."""
        ref = parse_reference({"id": 1, "name": " Jane "})
        assert isinstance(ref, LinkedContributor)
        assert ref.display_name == "Jane"
        assert ref.to_wire()["name"] == "Jane"
