"""
Contributor display rules shared by every view of a ticket.

A ticket may carry a backend-computed ``contributorNames`` summary, a
``contributors`` array and the oldest singular ``contributor`` field all at
once. ``display_value`` picks exactly one of them in a fixed order so that
newer data always shadows older data without the older fields having to be
deleted. Search, sort, detail and list rendering all go through it.
"""

from typing import Any, Mapping, Optional, Union

from pydantic.alias_generators import to_camel

from .models import Contributor
from .references import (
    CustomContributor,
    LinkedContributor,
    parse_reference,
)


def ticket_field(ticket: Any, name: str) -> Any:
    """
    Read a field from a Ticket model or a raw wire mapping.

    Args:
        ticket: ``Ticket`` instance or camelCase/snake_case mapping.
        name: snake_case attribute name.

    Returns:
        The field value, or None when absent.
    """
    if isinstance(ticket, Mapping):
        value = ticket.get(to_camel(name))
        return ticket.get(name) if value is None else value
    return getattr(ticket, name, None)


def contributor_name(value: Any) -> str:
    """
    Display name of a single contributor value.

    Strings are returned verbatim; objects use ``name``, then ``email``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (CustomContributor, LinkedContributor)):
        return value.display_name
    if isinstance(value, Contributor):
        return value.name
    if isinstance(value, Mapping):
        for key in ("name", "email"):
            text = value.get(key)
            if isinstance(text, str) and text:
                return text
    return ""


def display_value(ticket: Any) -> str:
    """
    Single display string for a ticket's contributors.

    First matching rule wins:
        1. ``contributorNames`` if it is a non-empty string.
        2. ``contributors`` if it is a non-empty list, names joined by ", ".
        3. ``contributor`` if set.
        4. Empty string.

    Args:
        ticket: ``Ticket`` instance or raw wire mapping.

    Returns:
        The display string. Never raises.
    """
    names = ticket_field(ticket, "contributor_names")
    if isinstance(names, str) and names:
        return names
    if isinstance(names, list) and names:
        # Some endpoints send the summary as an array
        joined = ", ".join(str(name) for name in names if name)
        if joined:
            return joined

    contributors = ticket_field(ticket, "contributors")
    if isinstance(contributors, list) and contributors:
        return ", ".join(
            name for name in (contributor_name(c) for c in contributors) if name
        )

    contributor = ticket_field(ticket, "contributor")
    if contributor:
        return contributor_name(contributor)

    return ""


def legacy_contributor(ticket: Any) -> Optional[Union[CustomContributor, LinkedContributor]]:
    """
    The single contributor older consumers should see.

    Returns:
        First entry of ``contributors`` if any, else ``contributor``,
        as a tagged reference. None when neither yields one.
    """
    contributors = ticket_field(ticket, "contributors")
    if isinstance(contributors, list):
        for entry in contributors:
            ref = parse_reference(entry)
            if ref is not None:
                return ref

    return parse_reference(ticket_field(ticket, "contributor"))
