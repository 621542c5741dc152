"""
Multi-contributor reconciliation.

Folds a list of mixed free-text and object contributor entries into one
canonical, ordered, de-duplicated list of tagged references, along with the
parallel lists of directory ids and display names the backend expects.

Rules applied to each entry, in input order:
    - Free text is resolved against the directory by name; a match
      promotes it to a linked reference.
    - Objects carrying a numeric ``id`` and a ``name`` are trusted as-is.
    - Malformed objects degrade to free text, or are dropped when they
      have no usable text at all.
    - Duplicates of an already accepted entry are skipped.
    - Entries beyond the contributor limit are skipped.

Nothing here raises on bad data.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from .config import CONTRIBUTOR_LIMIT
from .directory import Directory, as_cache, resolve_by_name
from .display import ticket_field
from .references import (
    ContributorReference,
    CustomContributor,
    LinkedContributor,
    parse_reference,
)


logger = logging.getLogger(__name__)


MAX_CONTRIBUTORS = CONTRIBUTOR_LIMIT

Reference = Union[CustomContributor, LinkedContributor]


class MergeResult(BaseModel):
    """
    Canonical contributor state for one ticket.

    Attributes:
        objects: Accepted references in input order.
        ids: Directory ids of the linked references, in the same order.
        names: Display names of every accepted reference, in the same order.
    """

    objects: list[ContributorReference] = Field(default_factory=list)
    ids: list[int] = Field(default_factory=list)
    names: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def count(self) -> int:
        return len(self.objects)

    @property
    def joined_names(self) -> str:
        return ", ".join(self.names)

    def to_wire(self) -> list[Union[str, dict[str, Any]]]:
        """Untyped ``str | dict`` list for the backend."""
        return [ref.to_wire() for ref in self.objects]


def is_same_contributor(a: Reference, b: Reference) -> bool:
    """
    Check whether two references denote the same contributor.

    Equal directory ids match first; otherwise display names are compared
    case-insensitively.
    """
    if a.contributor_id is not None and b.contributor_id is not None:
        if a.contributor_id == b.contributor_id:
            return True
    return a.display_name.casefold() == b.display_name.casefold()


def resolve_entry(raw: Any, directory: Optional[Directory] = None) -> Optional[Reference]:
    """
    Turn one raw entry into a reference, resolving free text by name.

    Args:
        raw: String, contributor object or reference.
        directory: Cache used to promote free text to linked references.

    Returns:
        The reference, or None if the entry has no usable form.
    """
    if isinstance(raw, (str, CustomContributor)):
        text = raw if isinstance(raw, str) else raw.name
        found = resolve_by_name(text, directory)
        if found is not None:
            return LinkedContributor(entry=found)
        return parse_reference(text)

    return parse_reference(raw)


def _as_entries(raw: Any) -> Iterable[Any]:
    if raw is None:
        return ()
    if isinstance(raw, (str, Mapping, CustomContributor, LinkedContributor)):
        return (raw,)
    try:
        return list(raw)
    except TypeError:
        return ()


def merge(
    raw: Any,
    directory: Optional[Directory] = None,
    limit: int = MAX_CONTRIBUTORS,
) -> MergeResult:
    """
    Reconcile a list of mixed contributor entries.

    Args:
        raw: Entries in display order (strings, objects or references).
        directory: Directory cache or plain list of entries.
        limit: Maximum number of accepted entries.

    Returns:
        MergeResult with parallel objects, ids and names.
    """
    cache = as_cache(directory)
    limit = min(limit, MAX_CONTRIBUTORS)

    objects: list[Reference] = []
    ids: list[int] = []
    names: list[str] = []

    for entry in _as_entries(raw):
        ref = resolve_entry(entry, cache)
        if ref is None:
            logger.debug(f"Dropping contributor entry with no usable name: {entry!r}")
            continue

        if len(objects) >= limit:
            logger.debug(f"Contributor limit ({limit}) reached, skipping '{ref.display_name}'")
            continue

        if any(is_same_contributor(ref, accepted) for accepted in objects):
            logger.debug(f"Skipping duplicate contributor '{ref.display_name}'")
            continue

        objects.append(ref)
        if ref.contributor_id is not None:
            ids.append(ref.contributor_id)
        names.append(ref.display_name)

    return MergeResult(objects=objects, ids=ids, names=names)


def add_contributor(
    current: Sequence[Reference],
    candidate: Any,
    directory: Optional[Directory] = None,
    limit: int = MAX_CONTRIBUTORS,
) -> list[Reference]:
    """
    Append one contributor to an edit form's list.

    The candidate is resolved like a merge entry. When the list is full, the
    candidate is blank or it duplicates an existing entry, the list is
    returned unchanged.

    Returns:
        A new list; ``current`` is never mutated.
    """
    updated = list(current)
    if len(updated) >= min(limit, MAX_CONTRIBUTORS):
        return updated

    ref = resolve_entry(candidate, directory)
    if ref is None or any(is_same_contributor(ref, existing) for existing in updated):
        return updated

    updated.append(ref)
    return updated


def remove_contributor(current: Sequence[Reference], index: int) -> list[Reference]:
    """Return a new list without the entry at ``index``."""
    if not 0 <= index < len(current):
        return list(current)
    return [ref for i, ref in enumerate(current) if i != index]


def contributors_from_ticket(ticket: Any) -> list[Any]:
    """
    Raw contributor entries to seed an edit form with.

    Uses the modern ``contributors`` array when it is non-empty, otherwise
    the legacy ``contributor`` field when set.
    """
    contributors = ticket_field(ticket, "contributors")
    if isinstance(contributors, list) and contributors:
        return list(contributors)

    contributor = ticket_field(ticket, "contributor")
    if contributor:
        return [contributor]
    return []


def reconcile_ticket(
    ticket: Any,
    directory: Optional[Directory] = None,
    limit: int = MAX_CONTRIBUTORS,
) -> MergeResult:
    """Merge a ticket's current contributor entries against the directory."""
    return merge(contributors_from_ticket(ticket), directory, limit)
