"""Haptic decision policy.

This module is pure: it maps what a single input did to the engine onto
whether the dial should pulse. It holds no state and performs no I/O.
"""

from __future__ import annotations

from diald.engine.modes import Step, Transition

BOUNDARY = "boundary"


def buzz_reason(step: Step) -> str | None:
    """Return why *step* warrants a haptic pulse, or ``None``.

    Policy:
    - waking from Idle pulses;
    - a confirmed reversal pulses, a cancelled one does not (even when its
      commit lands on 0 or 100);
    - any other hardware commit that newly reaches 0 or 100 pulses.

    Decade crossings and remote writes never pulse.
    """
    if Transition.WAKE in step.transitions:
        return Transition.WAKE.value
    if Transition.REVERSAL_CONFIRMED in step.transitions:
        return Transition.REVERSAL_CONFIRMED.value
    if Transition.REMOTE_APPLIED in step.transitions or Transition.REVERSAL_CANCELLED in step.transitions:
        return None
    if step.commit is not None and step.commit.boundary_crossed:
        return BOUNDARY
    return None
