"""
Offline contributor directory snapshots.

Loads a directory exported from the backend (YAML or JSON; JSON is read
through the YAML loader) so names can be reconciled without a live server.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .directory import DirectoryCache
from .models import Contributor


logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """Error reading a directory snapshot."""
    pass


def _parse_entries(items: Any, source: str) -> list[Contributor]:
    """Parse a list of entries, skipping malformed ones with a warning."""
    if not isinstance(items, list):
        return []

    entries = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object {source} entry at index {idx}")
            continue
        try:
            entries.append(Contributor.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {source} entry at index {idx}: {e.error_count()} error(s)")
    return entries


def parse_snapshot(content: str, now: Optional[datetime] = None) -> DirectoryCache:
    """
    Parse snapshot text into a DirectoryCache.

    Accepted layouts:
        - a list of entries (treated as the full set; active subset derived)
        - ``{"contributors": [...]}`` (same as a list)
        - ``{"active": [...], "full": [...]}``

    Args:
        content: YAML or JSON text.
        now: Refresh time to stamp on the cache.

    Returns:
        The populated cache.

    Raises:
        SnapshotError: If the text is not valid YAML/JSON.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e

    now = now or datetime.now(timezone.utc)

    if isinstance(data, dict) and ("active" in data or "full" in data):
        full = _parse_entries(data.get("full"), "full")
        active = _parse_entries(data.get("active"), "active")
        if not full:
            full = list(active)
    else:
        items = data.get("contributors") if isinstance(data, dict) else data
        full = _parse_entries(items, "contributor")
        active = [entry for entry in full if entry.active]

    if not full:
        logger.warning("Directory snapshot contains no usable entries")

    logger.info(f"Loaded directory snapshot: {len(active)} active, {len(full)} total")
    return DirectoryCache().with_active(active, now=now).with_full(full, now=now)


def load_snapshot(path: Path) -> DirectoryCache:
    """
    Read a directory snapshot file.

    Raises:
        SnapshotError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e
    return parse_snapshot(content)
