"""Backlash compensation.

When the encoder reverses, the first ticks in the new direction may be
mechanical slack rather than intent. Ticks are held as a running net sum
until one of two runs resolves the episode:

* ``confirm_threshold`` consecutive ticks in the new direction: the reversal
  is real (confirmed).
* ``cancel_threshold`` consecutive ticks in the original direction: the
  reversal was a wobble (cancelled).

Both exits hand the full buffered sum to the accumulator; only the haptic
feedback differs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from diald._constants import CANCEL_THRESHOLD, CONFIRM_THRESHOLD
from diald.engine.events import Direction, RawEvent


class Resolution(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class BacklashContext:
    """State of one open backlash episode."""

    pre_backlash_direction: Direction
    buffered_sum: int = 0
    consecutive_new_direction: int = 0
    consecutive_original_direction: int = 0

    @property
    def new_direction(self) -> Direction:
        return self.pre_backlash_direction.opposite


class BacklashFilter:
    def __init__(
        self,
        *,
        confirm_threshold: int = CONFIRM_THRESHOLD,
        cancel_threshold: int = CANCEL_THRESHOLD,
    ) -> None:
        if confirm_threshold <= 0 or cancel_threshold <= 0:
            raise ValueError("thresholds must be positive")
        self._confirm_threshold = confirm_threshold
        self._cancel_threshold = cancel_threshold

    @property
    def confirm_threshold(self) -> int:
        return self._confirm_threshold

    @property
    def cancel_threshold(self) -> int:
        return self._cancel_threshold

    @staticmethod
    def is_reversal(previous: Direction | None, event: RawEvent) -> bool:
        """Whether *event* turns against the previous rotation direction."""
        direction = event.direction
        return previous is not None and direction is not None and direction is not previous

    def open(self, pre_backlash_direction: Direction, trigger: RawEvent) -> BacklashContext:
        """Start an episode held open by the reversing *trigger* tick.

        The trigger is buffered so it is accounted for, but it does not count
        towards either run.
        """
        return BacklashContext(pre_backlash_direction=pre_backlash_direction, buffered_sum=trigger.delta)

    def feed(self, context: BacklashContext, event: RawEvent) -> Resolution:
        """Buffer *event* and report whether the episode resolved."""
        direction = event.direction
        if direction is None:
            return Resolution.PENDING

        context.buffered_sum += event.delta
        if direction is context.new_direction:
            context.consecutive_new_direction += 1
            context.consecutive_original_direction = 0
        else:
            context.consecutive_original_direction += 1
            context.consecutive_new_direction = 0

        if context.consecutive_new_direction >= self._confirm_threshold:
            return Resolution.CONFIRMED
        if context.consecutive_original_direction >= self._cancel_threshold:
            return Resolution.CANCELLED
        return Resolution.PENDING
