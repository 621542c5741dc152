"""
Contributor directory cache and identity resolution.

The directory is fetched by two independent requests (active entries only,
and every entry). ``DirectoryCache`` holds both subsets together with the
time each was last refreshed, so staleness is an explicit input to
resolution rather than hidden state. Resolution is a pure lookup; a cache
that is stale or only partially loaded simply resolves fewer names.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence, Union

from pydantic import BaseModel

from .models import Contributor, ContributorOption


logger = logging.getLogger(__name__)


class DirectoryCache(BaseModel):
    """
    In-memory copy of the contributor directory.

    Attributes:
        active: Entries returned by the active-only fetch.
        full: Entries returned by the full fetch (active and inactive).
        active_refreshed_at: When ``active`` was last replaced.
        full_refreshed_at: When ``full`` was last replaced.
    """

    active: tuple[Contributor, ...] = ()
    full: tuple[Contributor, ...] = ()
    active_refreshed_at: Optional[datetime] = None
    full_refreshed_at: Optional[datetime] = None

    model_config = {"frozen": True}

    def with_active(
        self,
        entries: Iterable[Contributor],
        now: Optional[datetime] = None,
    ) -> "DirectoryCache":
        """Return a copy with the active subset replaced."""
        return self.model_copy(update={
            "active": tuple(entries),
            "active_refreshed_at": now or datetime.now(timezone.utc),
        })

    def with_full(
        self,
        entries: Iterable[Contributor],
        now: Optional[datetime] = None,
    ) -> "DirectoryCache":
        """Return a copy with the full set replaced."""
        return self.model_copy(update={
            "full": tuple(entries),
            "full_refreshed_at": now or datetime.now(timezone.utc),
        })

    @property
    def refreshed_at(self) -> Optional[datetime]:
        """Oldest refresh time of the two subsets, None if either never loaded."""
        if self.active_refreshed_at is None or self.full_refreshed_at is None:
            return None
        return min(self.active_refreshed_at, self.full_refreshed_at)

    def is_stale(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """
        Check whether the cache should be refreshed.

        Args:
            max_age: Maximum acceptable age of either subset.
            now: Reference time (defaults to the current UTC time).

        Returns:
            True if either subset was never loaded or is older than max_age.
        """
        refreshed_at = self.refreshed_at
        if refreshed_at is None:
            return True
        return (now or datetime.now(timezone.utc)) - refreshed_at > max_age

    def options(self) -> list[ContributorOption]:
        """Dropdown options for the active subset."""
        return [entry.to_option() for entry in self.active]


Directory = Union[DirectoryCache, Sequence[Contributor]]


def as_cache(directory: Optional[Directory]) -> DirectoryCache:
    """Treat a plain entry list as the full set of an otherwise empty cache."""
    if directory is None:
        return DirectoryCache()
    if isinstance(directory, DirectoryCache):
        return directory
    return DirectoryCache(full=tuple(directory))


def _find_by_name(entries: Iterable[Contributor], key: str) -> Optional[Contributor]:
    for entry in entries:
        if entry.name.casefold() == key:
            return entry
    return None


def resolve_by_name(name: str, directory: Optional[Directory]) -> Optional[Contributor]:
    """
    Find the directory entry whose name matches, ignoring case.

    Matches on ``name`` only, never on email. The active subset is searched
    first and the full set second.

    Args:
        name: Free-text contributor name.
        directory: Cache or plain list of entries.

    Returns:
        The matching entry, or None if absent from both subsets.
    """
    if not isinstance(name, str) or not name.strip():
        return None

    cache = as_cache(directory)
    key = name.strip().casefold()

    found = _find_by_name(cache.active, key)
    if found is None:
        found = _find_by_name(cache.full, key)

    if found is None:
        logger.debug(f"No directory entry named '{name}'")
    return found


def resolve_by_id(contributor_id: int, directory: Optional[Directory]) -> Optional[Contributor]:
    """
    Find the directory entry with the given identity in the full set.

    Args:
        contributor_id: Numeric directory identity.
        directory: Cache or plain list of entries.

    Returns:
        The matching entry, or None.
    """
    if not isinstance(contributor_id, int) or isinstance(contributor_id, bool):
        return None

    for entry in as_cache(directory).full:
        if entry.id == contributor_id:
            return entry
    return None
