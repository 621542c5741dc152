"""
Outbound contributor payloads.

Maps reconciled contributor state onto the wire fields the backend accepts.
The create endpoint and the update (edit-json) endpoint expect different
shapes for the contributor ids:

    create: contributors, contributorIds (int list), contributorNames
    update: contributorIdsList (int list), contributorIds ("7,9" string),
            contributorNames, no contributors/contributor keys at all

Both mirror the first contributor into the legacy singular fields.
``contributorId`` is only ever emitted for a directory-linked contributor;
its absence tells the backend the name is unlinked.
"""

import logging
from typing import Any, Mapping

from .display import legacy_contributor as first_contributor, ticket_field
from .models import Ticket
from .reconcile import MergeResult
from .references import LinkedContributor


logger = logging.getLogger(__name__)


# Every wire field that carries contributor state, in any historical shape
CONTRIBUTOR_WIRE_FIELDS = (
    "contributor",
    "contributorId",
    "contributorName",
    "contributors",
    "contributorIds",
    "contributorIdsList",
    "contributorNames",
    "contributorCount",
)


def _legacy_fields(merged: MergeResult, legacy_contributor: Any = None) -> dict[str, Any]:
    """Legacy singular fields mirrored from the first contributor."""
    if not merged.objects and isinstance(legacy_contributor, str) and legacy_contributor.strip():
        # Free text kept verbatim and never linked
        return {"contributor": legacy_contributor, "contributorName": legacy_contributor}

    first = first_contributor({"contributors": merged.objects, "contributor": legacy_contributor})

    if first is None:
        return {"contributor": None, "contributorName": ""}

    fields: dict[str, Any] = {
        "contributor": first.to_wire(),
        "contributorName": first.display_name,
    }
    if isinstance(first, LinkedContributor):
        fields["contributorId"] = first.contributor_id
    return fields


def shape_create_fields(merged: MergeResult, legacy_contributor: Any = None) -> dict[str, Any]:
    """
    Contributor fields for the create endpoint.

    Args:
        merged: Reconciled contributor state.
        legacy_contributor: Legacy ``contributor`` value, used only when
            ``merged`` is empty.

    Returns:
        Dict of camelCase wire fields.
    """
    fields: dict[str, Any] = {
        "contributors": merged.to_wire(),
        "contributorIds": list(merged.ids),
        "contributorNames": merged.joined_names,
    }
    fields.update(_legacy_fields(merged, legacy_contributor))
    return fields


def shape_update_fields(merged: MergeResult, legacy_contributor: Any = None) -> dict[str, Any]:
    """
    Contributor fields for the update (edit-json) endpoint.

    Args:
        merged: Reconciled contributor state.
        legacy_contributor: Legacy ``contributor`` value, used only when
            ``merged`` is empty.

    Returns:
        Dict of camelCase wire fields, without ``contributors`` or
        ``contributor``.
    """
    legacy = _legacy_fields(merged, legacy_contributor)

    fields: dict[str, Any] = {
        "contributorIdsList": list(merged.ids),
        "contributorIds": ",".join(str(contributor_id) for contributor_id in merged.ids),
        "contributorNames": merged.joined_names,
        "contributorName": legacy["contributorName"],
    }
    if "contributorId" in legacy:
        fields["contributorId"] = legacy["contributorId"]
    return fields


def _base_payload(ticket: Any) -> dict[str, Any]:
    if isinstance(ticket, Ticket):
        payload = ticket.to_wire()
    elif isinstance(ticket, Mapping):
        payload = dict(ticket)
    else:
        payload = {}

    for key in CONTRIBUTOR_WIRE_FIELDS:
        payload.pop(key, None)
    return payload


def build_create_payload(ticket: Any, merged: MergeResult) -> dict[str, Any]:
    """
    Full body for creating a ticket.

    Any contributor fields already on the ticket are replaced wholesale by
    the reconciled state.
    """
    payload = _base_payload(ticket)
    legacy = ticket_field(ticket, "contributor")
    payload.update(shape_create_fields(merged, legacy))
    logger.debug(
        f"Create payload: {len(merged.objects)} contributor(s), ids={merged.ids}"
    )
    return payload


def build_update_payload(ticket_id: int, ticket: Any, merged: MergeResult) -> dict[str, Any]:
    """
    Full body for the edit-json update endpoint.

    Args:
        ticket_id: Id of the ticket being updated; always set in the body.
        ticket: Edited ticket.
        merged: Reconciled contributor state.

    Returns:
        The update body.
    """
    payload = _base_payload(ticket)
    legacy = ticket_field(ticket, "contributor")
    payload.update(shape_update_fields(merged, legacy))
    payload["id"] = ticket_id
    logger.debug(
        f"Update payload for ticket {ticket_id}: "
        f"contributorIds='{payload['contributorIds']}'"
    )
    return payload
