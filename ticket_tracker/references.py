"""
Contributor references.

A ticket refers to its contributors either by free text or by a snapshot of
a directory entry. On the wire both arrive as an untyped ``str | dict``;
inside this package they are always one of two tagged variants, and
``parse_reference`` is the only place that converts between the two.
"""

from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .models import Contributor


class CustomContributor(BaseModel):
    """A free-text contributor with no directory entry."""

    kind: Literal["custom"] = "custom"
    name: str

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def contributor_id(self) -> Optional[int]:
        return None

    def to_wire(self) -> str:
        return self.name


class LinkedContributor(BaseModel):
    """A contributor linked to a directory entry."""

    kind: Literal["linked"] = "linked"
    entry: Contributor

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        return self.entry.name

    @property
    def contributor_id(self) -> Optional[int]:
        return self.entry.id

    def to_wire(self) -> dict[str, Any]:
        return self.entry.to_wire()


ContributorReference = Annotated[
    Union[CustomContributor, LinkedContributor],
    Field(discriminator="kind"),
]


def _is_identity(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def best_string_form(raw: Mapping[str, Any]) -> str:
    """
    Best available display text for an object-shaped reference.

    Args:
        raw: Wire object for a contributor.

    Returns:
        The stripped ``name``, else the stripped ``email``, else "".
    """
    for key in ("name", "email"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def parse_reference(raw: Any) -> Optional[Union[CustomContributor, LinkedContributor]]:
    """
    Convert a wire value into a tagged reference.

    Never raises. Objects that cannot be linked degrade to custom
    references built from their best string form.

    Args:
        raw: A string, a contributor object, or an existing reference.

    Returns:
        The tagged reference, or None when no usable string form exists.
    """
    if isinstance(raw, (CustomContributor, LinkedContributor)):
        return raw

    if isinstance(raw, Contributor):
        return LinkedContributor(entry=raw)

    if isinstance(raw, str):
        name = raw.strip()
        return CustomContributor(name=name) if name else None

    if isinstance(raw, Mapping):
        text = best_string_form(raw)
        if _is_identity(raw.get("id")) and isinstance(raw.get("name"), str) and raw["name"].strip():
            try:
                fields = {key: value for key, value in raw.items() if value is not None}
                fields["name"] = raw["name"].strip()
                return LinkedContributor(entry=Contributor.model_validate(fields))
            except ValidationError:
                # Entry fields present but malformed; keep the name as text
                pass
        return CustomContributor(name=text) if text else None

    return None
