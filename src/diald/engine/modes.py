"""Idle / Active / Backlash mode machine.

The mode is a tagged union: only the :class:`Backlash` variant carries a
:class:`~diald.engine.backlash.BacklashContext`, so a context can never
outlive its mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from diald.engine.backlash import BacklashContext, BacklashFilter, Resolution
from diald.engine.events import ButtonEvent, Direction, RawEvent, RemoteSetEvent
from diald.engine.volume import CommitResult, VolumeAccumulator

_logger = logging.getLogger(__name__)


class ModeName(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"
    BACKLASH = "backlash"


@dataclass(frozen=True, slots=True)
class Idle:
    @property
    def name(self) -> ModeName:
        return ModeName.IDLE


@dataclass(frozen=True, slots=True)
class Active:
    # Direction of the last rotation tick; None until the first one.
    direction: Direction | None = None

    @property
    def name(self) -> ModeName:
        return ModeName.ACTIVE


@dataclass(frozen=True, slots=True)
class Backlash:
    context: BacklashContext

    @property
    def name(self) -> ModeName:
        return ModeName.BACKLASH


Mode = Idle | Active | Backlash


class Transition(StrEnum):
    WAKE = "wake"
    BACKLASH_ENTERED = "backlash_entered"
    REVERSAL_CONFIRMED = "reversal_confirmed"
    REVERSAL_CANCELLED = "reversal_cancelled"
    IDLE_TIMEOUT = "idle_timeout"
    REMOTE_APPLIED = "remote_applied"
    REMOTE_IGNORED = "remote_ignored"


@dataclass(frozen=True, slots=True)
class Step:
    """Everything one input did to the machine."""

    transitions: tuple[Transition, ...] = ()
    commit: CommitResult | None = None


class ModeStateMachine:
    """Owns the mode, the activity timer and the hardware/remote gate."""

    def __init__(
        self,
        accumulator: VolumeAccumulator,
        backlash: BacklashFilter,
        *,
        idle_timeout: float,
    ) -> None:
        self._accumulator = accumulator
        self._backlash = backlash
        self._idle_timeout = idle_timeout
        self._mode: Mode = Idle()
        self._last_activity: float | None = None

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def last_activity(self) -> float | None:
        return self._last_activity

    @property
    def accumulator(self) -> VolumeAccumulator:
        return self._accumulator

    def _touch(self, at: float) -> tuple[Transition, ...]:
        self._last_activity = at
        if isinstance(self._mode, Idle):
            self._mode = Active()
            _logger.debug("Mode idle -> active")
            return (Transition.WAKE,)
        return ()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def on_pulse(self, at: float) -> Step:
        """Activity without a rotation (degenerate tick)."""
        return Step(transitions=self._touch(at))

    def on_button(self, event: ButtonEvent) -> Step:
        return Step(transitions=self._touch(event.at))

    def on_rotation(self, event: RawEvent) -> Step:
        transitions = self._touch(event.at)
        direction = event.direction
        if direction is None:
            return Step(transitions=transitions)

        mode = self._mode
        if isinstance(mode, Backlash):
            return self._feed_backlash(mode.context, event, transitions)

        assert isinstance(mode, Active)  # noqa: S101
        if self._backlash.is_reversal(mode.direction, event):
            assert mode.direction is not None  # noqa: S101
            dropped = self._accumulator.discard_remainder()
            context = self._backlash.open(mode.direction, event)
            self._mode = Backlash(context=context)
            _logger.debug(
                "Reversal %s -> %s; backlash opened (dropped remainder=%d)",
                mode.direction,
                direction,
                dropped,
            )
            return Step(transitions=(*transitions, Transition.BACKLASH_ENTERED))

        commit = self._accumulator.commit(event.delta)
        self._mode = Active(direction=direction)
        return Step(transitions=transitions, commit=commit)

    def _feed_backlash(
        self,
        context: BacklashContext,
        event: RawEvent,
        transitions: tuple[Transition, ...],
    ) -> Step:
        resolution = self._backlash.feed(context, event)
        if resolution is Resolution.PENDING:
            return Step(transitions=transitions)

        commit = self._accumulator.commit(context.buffered_sum)
        if resolution is Resolution.CONFIRMED:
            transition = Transition.REVERSAL_CONFIRMED
            direction = context.new_direction
        else:
            transition = Transition.REVERSAL_CANCELLED
            direction = context.pre_backlash_direction
        self._mode = Active(direction=direction)
        _logger.debug(
            "Backlash %s; committed buffered_sum=%d volume=%d",
            resolution,
            context.buffered_sum,
            commit.volume,
        )
        return Step(transitions=(*transitions, transition), commit=commit)

    def on_remote_set(self, event: RemoteSetEvent) -> Step:
        if not isinstance(self._mode, Idle):
            _logger.debug("Remote set %d ignored in mode %s", event.value, self._mode.name)
            return Step(transitions=(Transition.REMOTE_IGNORED,))
        commit = self._accumulator.set_absolute(event.value)
        return Step(transitions=(Transition.REMOTE_APPLIED,), commit=commit)

    def on_tick(self, now: float) -> Step:
        """Evaluate the inactivity timeout.

        The timeout never fires while a backlash episode is open; it is
        re-evaluated on the first tick after the episode resolves.
        """
        if not isinstance(self._mode, Active) or self._last_activity is None:
            return Step()
        if now - self._last_activity < self._idle_timeout:
            return Step()
        self._mode = Idle()
        _logger.debug("Mode active -> idle after %.1fs without activity", now - self._last_activity)
        return Step(transitions=(Transition.IDLE_TIMEOUT,))
