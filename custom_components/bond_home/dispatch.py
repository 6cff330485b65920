"""Reliable command dispatch for one-way (RF/IR) Bond devices.

A Bond hub cannot confirm that a one-way device received a command, so such
commands are sent several times with a pause in between. A newer command for
the same device supersedes the sequence still in flight: the tracker is
rewritten and the old loop notices on its next wake-up and stops.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass
from datetime import datetime as dt
from enum import Enum
from typing import Protocol

from .const import (
    DEFAULT_FAN_REPEAT_DELAY_MS,
    DEFAULT_REPEAT_COUNT,
    MAX_REPEAT_COUNT,
    MAX_REPEAT_DELAY_MS,
    MIN_REPEAT_COUNT,
    MIN_REPEAT_DELAY_MS,
    MODE_ONE_WAY,
    MODE_TWO_WAY,
    NON_REPEATABLE_COMMANDS,
)

_LOGGER = logging.getLogger(__name__)

Action = Callable[[], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


class CommunicationMode(str, Enum):
    TWO_WAY = MODE_TWO_WAY
    ONE_WAY = MODE_ONE_WAY


@dataclass(frozen=True)
class RepeatPolicy:
    count: int = DEFAULT_REPEAT_COUNT
    delay_ms: int = DEFAULT_FAN_REPEAT_DELAY_MS

    def __post_init__(self) -> None:
        if not MIN_REPEAT_COUNT <= self.count <= MAX_REPEAT_COUNT:
            raise ValueError(f"repeat count out of range: {self.count}")
        if not MIN_REPEAT_DELAY_MS <= self.delay_ms <= MAX_REPEAT_DELAY_MS:
            raise ValueError(f"repeat delay out of range: {self.delay_ms}")

    @classmethod
    def clamped(cls, count: int, delay_ms: int) -> RepeatPolicy:
        return cls(
            count=max(MIN_REPEAT_COUNT, min(MAX_REPEAT_COUNT, int(count))),
            delay_ms=max(MIN_REPEAT_DELAY_MS, min(MAX_REPEAT_DELAY_MS, int(delay_ms))),
        )

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


class DispatchSettings(Protocol):
    communication_mode: CommunicationMode
    repeat_policy: RepeatPolicy


def should_repeat(
    command: str,
    mode: CommunicationMode,
    non_repeatable: Collection[str] = NON_REPEATABLE_COMMANDS,
) -> bool:
    """Return True if the command must be sent repeatedly."""
    if mode == CommunicationMode.TWO_WAY:
        return False
    return command.lower() not in non_repeatable


@dataclass(frozen=True)
class ActiveCommand:
    name: str
    started_at: dt
    generation: int


class ActiveCommandTracker:
    """The repeatable command currently in flight for one device.

    Every begin() gets a fresh generation, so re-issuing the command that is
    already running restarts it: the older loop sees its generation is gone
    and stops, and the newer one runs its full count.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._generations = itertools.count(1)
        self._active: ActiveCommand | None = None

    @property
    def active(self) -> ActiveCommand | None:
        return self._active

    def begin(self, command: str) -> ActiveCommand:
        self.preempt(command)
        self._active = ActiveCommand(command, dt.now(), next(self._generations))
        return self._active

    def is_active(self, command: str, generation: int | None = None) -> bool:
        if self._active is None or self._active.name != command:
            return False
        return generation is None or self._active.generation == generation

    def clear(self, command: str, generation: int | None = None) -> None:
        if self.is_active(command, generation):
            self._active = None

    def preempt(self, command: str) -> ActiveCommand | None:
        """Drop the active command if it is not `command`, returning it."""
        current = self._active
        if current is None or current.name == command:
            return None
        _LOGGER.debug("%s: %s preempted by %s", self._name, current.name, command)
        self._active = None
        return current

    def reset(self) -> None:
        self._active = None


class RepeatExecutor:
    """Runs device actions once or repeatedly, depending on the device settings."""

    def __init__(
        self,
        tracker: ActiveCommandTracker,
        settings: Callable[[], DispatchSettings],
        *,
        sleep: Sleep = asyncio.sleep,
        non_repeatable: Collection[str] = NON_REPEATABLE_COMMANDS,
        name: str = "",
    ) -> None:
        self._tracker = tracker
        self._settings = settings
        self._sleep = sleep
        self._non_repeatable = frozenset(c.lower() for c in non_repeatable)
        self._name = name

    @property
    def tracker(self) -> ActiveCommandTracker:
        return self._tracker

    async def execute_once(self, command: str, action: Action) -> None:
        """Preempt whatever is in flight, then run the action exactly once."""
        self._tracker.preempt(command.lower())
        await action()

    async def execute(self, command: str, action: Action) -> None:
        command = command.lower()
        self._tracker.preempt(command)

        settings = self._settings()
        if not should_repeat(command, settings.communication_mode, self._non_repeatable):
            await action()
            return

        policy = settings.repeat_policy
        entry = self._tracker.begin(command)
        first_error: Exception | None = None
        try:
            for attempt in range(policy.count):
                if not self._tracker.is_active(command, entry.generation):
                    break
                if attempt:
                    await self._sleep(policy.delay_seconds)
                    if not self._tracker.is_active(command, entry.generation):
                        _LOGGER.debug(
                            "%s: %s superseded after %s/%s attempts",
                            self._name,
                            command,
                            attempt,
                            policy.count,
                        )
                        break
                _LOGGER.debug(
                    "%s: %s attempt %s/%s", self._name, command, attempt + 1, policy.count
                )
                try:
                    await action()
                except Exception as err:
                    # later attempts still go out; the first failure is re-raised
                    _LOGGER.warning(
                        "%s: %s attempt %s/%s failed: %s",
                        self._name,
                        command,
                        attempt + 1,
                        policy.count,
                        err,
                    )
                    if first_error is None:
                        first_error = err
        finally:
            self._tracker.clear(command, entry.generation)

        if first_error is not None:
            raise first_error
