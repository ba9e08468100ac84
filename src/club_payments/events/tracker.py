"""Per-category refresh version counters."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from club_payments.events.types import RefreshCategory, category_key

logger = logging.getLogger(__name__)

# Version every category has before its first bump.
INITIAL_VERSION = 0


class RefreshInvalidationTracker:
    """Monotonic version counter per data category.

    Consumers compare the version they last acted on with the current one to
    decide whether their data is stale. Only ``bump`` writes; any number of
    readers may poll ``version``.

    Usage:
        tracker = RefreshInvalidationTracker()
        seen = tracker.version("payments")
        tracker.bump("payments")
        assert tracker.version("payments") > seen
    """

    def __init__(
        self,
        categories: Iterable[RefreshCategory | str] = tuple(RefreshCategory),
    ) -> None:
        self._versions: dict[str, int] = {
            category_key(c): INITIAL_VERSION for c in categories
        }

    def version(self, category: RefreshCategory | str) -> int:
        """Current version; categories never bumped are at INITIAL_VERSION."""
        return self._versions.get(category_key(category), INITIAL_VERSION)

    def bump(self, category: RefreshCategory | str) -> int:
        """Advance the category to a strictly greater version and return it."""
        key = category_key(category)
        previous = self._versions.get(key, INITIAL_VERSION)
        current = previous + 1
        self._versions[key] = current
        logger.debug("Bumped %s refresh version %d -> %d", key, previous, current)
        return current

    def snapshot(self) -> dict[str, int]:
        """Copy of all known category versions."""
        return dict(self._versions)

    @property
    def categories(self) -> list[str]:
        return list(self._versions)
