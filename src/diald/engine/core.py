"""Single mutation entry point of the dial engine.

:class:`DialEngine` is designed to be deterministic: given the same sequence
of inputs (including their timestamps) it produces the same outcomes. It
performs no I/O; effects are returned to the caller, which delivers them to
the publisher and haptic sinks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from diald.config import EngineTuning
from diald.engine.backlash import BacklashContext, BacklashFilter
from diald.engine.clicks import ClickCounter
from diald.engine.events import (
    Buzz,
    ButtonEvent,
    ClickCounted,
    Effect,
    EngineInput,
    RawEvent,
    RemoteSetEvent,
    TickEvent,
    VolumeChanged,
)
from diald.engine.modes import Backlash, Mode, ModeName, ModeStateMachine, Step, Transition
from diald.engine.policy import buzz_reason
from diald.engine.volume import VolumeAccumulator

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RawLedger:
    """Raw-unit bookkeeping.

    ``delivered`` counts every accepted tick, ``committed`` every unit handed
    to the accumulator, ``discarded`` every degenerate tick that was turned
    into a bare activity pulse.
    """

    delivered: int = 0
    committed: int = 0
    discarded: int = 0


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of processing one input; effects are ordered for delivery."""

    effects: tuple[Effect, ...]
    mode: ModeName
    volume: int
    transitions: tuple[Transition, ...] = ()


@dataclass(frozen=True, slots=True)
class EngineSnapshot:
    mode: ModeName
    volume: int
    raw_remainder: int
    clicks: int
    delivered_raw: int
    committed_raw: int
    held_raw: int


class DialEngine:
    """Event-processing engine.

    Usage::

        engine = DialEngine()
        outcome = engine.process(RawEvent(delta=5, at=0.0))
        for effect in outcome.effects:
            ...
    """

    def __init__(self, tuning: EngineTuning | None = None) -> None:
        self._tuning = tuning or EngineTuning()
        self._machine = ModeStateMachine(
            VolumeAccumulator(volume=self._tuning.initial_volume, unit_size=self._tuning.unit_size),
            BacklashFilter(
                confirm_threshold=self._tuning.confirm_threshold,
                cancel_threshold=self._tuning.cancel_threshold,
            ),
            idle_timeout=self._tuning.idle_timeout,
        )
        self._clicks = ClickCounter()
        self._ledger = RawLedger()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def tuning(self) -> EngineTuning:
        return self._tuning

    @property
    def mode(self) -> Mode:
        return self._machine.mode

    @property
    def volume(self) -> int:
        return self._machine.accumulator.volume

    @property
    def clicks(self) -> int:
        return self._clicks.count

    @property
    def backlash_context(self) -> BacklashContext | None:
        mode = self._machine.mode
        return mode.context if isinstance(mode, Backlash) else None

    @property
    def ledger(self) -> RawLedger:
        return RawLedger(
            delivered=self._ledger.delivered,
            committed=self._ledger.committed,
            discarded=self._ledger.discarded,
        )

    @property
    def held_raw(self) -> int:
        context = self.backlash_context
        return context.buffered_sum if context is not None else 0

    def snapshot(self) -> EngineSnapshot:
        accumulator = self._machine.accumulator
        return EngineSnapshot(
            mode=self._machine.mode.name,
            volume=accumulator.volume,
            raw_remainder=accumulator.raw_remainder,
            clicks=self._clicks.count,
            delivered_raw=self._ledger.delivered,
            committed_raw=self._ledger.committed,
            held_raw=self.held_raw,
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def process(self, event: EngineInput) -> Outcome:
        """Apply one input and return its effects."""
        effects: list[Effect] = []

        if isinstance(event, RawEvent):
            step = self._process_rotation(event)
        elif isinstance(event, ButtonEvent):
            step = self._machine.on_button(event)
            effects.append(ClickCounted(count=self._clicks.press()))
        elif isinstance(event, RemoteSetEvent):
            step = self._machine.on_remote_set(event)
        elif isinstance(event, TickEvent):
            step = self._machine.on_tick(event.at)
        else:
            raise TypeError(f"unsupported engine input: {type(event).__name__}")

        commit = step.commit
        if commit is not None:
            self._ledger.committed += commit.delta
            if commit.changed or Transition.REMOTE_APPLIED in step.transitions:
                effects.insert(0, VolumeChanged(volume=commit.volume))

        reason = buzz_reason(step)
        if reason is not None:
            effects.append(Buzz(reason=reason))

        outcome = Outcome(
            effects=tuple(effects),
            mode=self._machine.mode.name,
            volume=self.volume,
            transitions=step.transitions,
        )
        if step.transitions or effects:
            _logger.debug(
                "Processed %s transitions=%s effects=%s",
                type(event).__name__,
                [t.value for t in step.transitions],
                outcome.effects,
            )
        return outcome

    def _is_degenerate(self, event: RawEvent) -> bool:
        if event.delta == 0:
            return True
        limit = self._tuning.max_raw_magnitude
        return limit > 0 and event.magnitude > limit

    def _process_rotation(self, event: RawEvent) -> Step:
        if self._is_degenerate(event):
            if event.delta != 0:
                _logger.debug("Tick magnitude %d above limit; treated as activity", event.delta)
                self._ledger.discarded += event.delta
            return self._machine.on_pulse(event.at)
        self._ledger.delivered += event.delta
        return self._machine.on_rotation(event)
