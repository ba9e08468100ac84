"""Debounced refresh subscriber.

A display surface owns one subscriber per data category it shows. The
subscriber watches the invalidation tracker and calls the owner's refresh
callback, at most one refresh at a time.

States:
- idle → pending (a newer version is seen and the minimum interval has passed)
- pending → refreshing (the debounce timer elapses; it is armed once and is
  not reset by further bumps)
- refreshing → idle (the refresh callback settles, successfully or not)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable

from club_payments.config import RefreshConfig
from club_payments.events.bus import ChangeNotificationBus
from club_payments.events.tracker import RefreshInvalidationTracker
from club_payments.events.types import EventName, RefreshCategory, category_key

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[Any] | Any]


class SubscriberState(str, Enum):
    """Refresh subscriber states."""

    IDLE = "idle"
    PENDING = "pending"
    REFRESHING = "refreshing"


class InvalidSubscriberTransition(RuntimeError):
    """Raised when the subscriber state machine is driven out of order."""

    def __init__(self, from_state: SubscriberState, to_state: SubscriberState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid subscriber transition from '{from_state.value}' to '{to_state.value}'"
        )


class DebouncedRefreshSubscriber:
    """Polls a tracker category and runs a debounced, non-overlapping refresh.

    The version recorded as seen is the one read when the debounce timer
    fires, so all bumps inside the window collapse into that refresh. Bumps
    that land while the refresh runs leave the tracker ahead of the seen
    version and are picked up by a later check.

    Usage:
        subscriber = DebouncedRefreshSubscriber(tracker, "payments", reload)
        async with subscriber:
            ...  # reload() runs after payment changes
    """

    VALID_TRANSITIONS: dict[SubscriberState, tuple[SubscriberState, ...]] = {
        SubscriberState.IDLE: (SubscriberState.PENDING,),
        SubscriberState.PENDING: (SubscriberState.REFRESHING, SubscriberState.IDLE),
        SubscriberState.REFRESHING: (SubscriberState.IDLE,),
    }

    def __init__(
        self,
        tracker: RefreshInvalidationTracker,
        category: RefreshCategory | str,
        refresh: RefreshCallback,
        config: RefreshConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str | None = None,
    ) -> None:
        self._tracker = tracker
        self._category = category_key(category)
        self._refresh = refresh
        self._config = config or RefreshConfig()
        self._clock = clock
        self.name = name or f"{self._category}-subscriber"

        self._state = SubscriberState.IDLE
        self._last_seen_version = tracker.version(self._category)
        self._last_refresh_time: float | None = None
        self._skip_next_poll = True
        self._poll_task: asyncio.Task[None] | None = None
        self._debounce_task: asyncio.Task[None] | None = None
        self.refresh_count = 0

    @property
    def state(self) -> SubscriberState:
        return self._state

    @property
    def category(self) -> str:
        return self._category

    @property
    def last_seen_version(self) -> int:
        return self._last_seen_version

    @property
    def last_refresh_time(self) -> float | None:
        return self._last_refresh_time

    @property
    def mounted(self) -> bool:
        return self._poll_task is not None

    def _transition(self, to_state: SubscriberState) -> None:
        if to_state not in self.VALID_TRANSITIONS[self._state]:
            raise InvalidSubscriberTransition(self._state, to_state)
        self._state = to_state

    def start(self) -> None:
        """Mount: take the current version as seen and begin polling.

        The owner is assumed to have just loaded its data, so the first poll
        after mounting is skipped.
        """
        if self._poll_task is not None:
            return
        self._last_seen_version = self._tracker.version(self._category)
        self._skip_next_poll = True
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll_loop(), name=f"{self.name}-poll"
        )
        logger.debug(
            "Mounted %s at version %d", self.name, self._last_seen_version
        )

    async def stop(self) -> None:
        """Unmount: stop polling, drop a pending refresh, let a running one settle."""
        poll_task, self._poll_task = self._poll_task, None
        if poll_task is not None:
            poll_task.cancel()
            await asyncio.gather(poll_task, return_exceptions=True)

        debounce_task = self._debounce_task
        if debounce_task is None:
            return
        if self._state is SubscriberState.PENDING:
            debounce_task.cancel()
        await asyncio.gather(debounce_task, return_exceptions=True)
        if self._state is SubscriberState.PENDING:
            # Cancelled before the timer coroutine got to run.
            self._transition(SubscriberState.IDLE)
            self._debounce_task = None

    async def __aenter__(self) -> DebouncedRefreshSubscriber:
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    def check(self) -> bool:
        """Look for a newer version and arm the debounce timer if one is due.

        Returns True when a refresh was scheduled by this call.
        """
        if self._state is not SubscriberState.IDLE:
            return False

        current = self._tracker.version(self._category)
        if current <= self._last_seen_version:
            return False

        if self._last_refresh_time is not None:
            elapsed = self._clock() - self._last_refresh_time
            if elapsed < self._config.min_refresh_interval:
                logger.debug(
                    "%s saw version %d but last refresh was %.3fs ago",
                    self.name,
                    current,
                    elapsed,
                )
                return False

        self._transition(SubscriberState.PENDING)
        self._debounce_task = asyncio.get_running_loop().create_task(
            self._refresh_after_debounce(), name=f"{self.name}-refresh"
        )
        logger.debug(
            "%s scheduled refresh: version %d > seen %d",
            self.name,
            current,
            self._last_seen_version,
        )
        return True

    def retarget(self, category: RefreshCategory | str) -> bool:
        """Watch a different category and check it right away."""
        self._category = category_key(category)
        return self.check()

    def attach(self, bus: ChangeNotificationBus, event: EventName | str) -> Callable[[], None]:
        """Also check whenever the event is published. Returns the unsubscribe callable."""

        def on_event(*_: Any) -> None:
            self.check()

        return bus.subscribe(event, on_event)

    async def wait_idle(self) -> None:
        """Wait for a scheduled or running refresh to settle."""
        task = self._debounce_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.poll_interval)
            if self._skip_next_poll:
                self._skip_next_poll = False
                continue
            self.check()

    async def _refresh_after_debounce(self) -> None:
        try:
            await asyncio.sleep(self._config.debounce)
        except asyncio.CancelledError:
            self._transition(SubscriberState.IDLE)
            self._debounce_task = None
            raise

        version = self._tracker.version(self._category)
        self._transition(SubscriberState.REFRESHING)
        try:
            result = self._refresh()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Refresh of %s failed", self.name)
        finally:
            self._last_seen_version = version
            self._last_refresh_time = self._clock()
            self.refresh_count += 1
            self._debounce_task = None
            self._transition(SubscriberState.IDLE)
            logger.debug("%s refreshed at version %d", self.name, version)
