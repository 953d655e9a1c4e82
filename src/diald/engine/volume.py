"""Volume accumulator with deterministic sub-unit rounding."""

from __future__ import annotations

from dataclasses import dataclass

from diald._constants import UNIT_SIZE, VOLUME_MAX, VOLUME_MIN, clamp_volume
from diald.engine.events import Direction


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of one :meth:`VolumeAccumulator.commit`.

    ``boundary_crossed`` is true only when the volume *newly* reached 0 or
    100. ``decade_crossed`` reports whether a multiple of ten was reached or
    passed; it is informational and does not drive haptics.
    """

    previous: int
    volume: int
    delta: int
    boundary_crossed: bool
    decade_crossed: bool

    @property
    def changed(self) -> bool:
        return self.volume != self.previous


@dataclass(slots=True)
class VolumeState:
    """Volume plus the partial progress towards the next point.

    ``raw_remainder`` is a magnitude in ``[0, unit_size)``;
    ``remainder_direction`` says which way it points (``None`` when zero).
    """

    volume: int = VOLUME_MIN
    raw_remainder: int = 0
    remainder_direction: Direction | None = None

    @property
    def signed_remainder(self) -> int:
        if self.remainder_direction is Direction.NEGATIVE:
            return -self.raw_remainder
        return self.raw_remainder


def _decade_crossed(previous: int, volume: int) -> bool:
    # A multiple of ten in (previous, volume] when rising, [volume, previous) when falling.
    if volume > previous:
        return volume // 10 > previous // 10
    if volume < previous:
        return -(-volume // 10) * 10 < previous
    return False


class VolumeAccumulator:
    """Convert a running signed raw-unit total into a clamped volume.

    Whole units are converted with truncation toward zero, so a point only
    moves once ``unit_size`` raw units have accumulated in one direction. The
    leftover keeps its direction and is reported as a magnitude. When the
    result saturates at 0 or 100 the excess magnitude is discarded rather
    than stored, so a pinned dial responds to the first notch of a reversal.
    """

    def __init__(self, *, volume: int = VOLUME_MIN, unit_size: int = UNIT_SIZE) -> None:
        if unit_size <= 0:
            raise ValueError(f"unit_size must be positive, got {unit_size}")
        self._unit_size = unit_size
        self._state = VolumeState(volume=clamp_volume(volume))

    @property
    def unit_size(self) -> int:
        return self._unit_size

    @property
    def volume(self) -> int:
        return self._state.volume

    @property
    def raw_remainder(self) -> int:
        return self._state.raw_remainder

    @property
    def remainder_direction(self) -> Direction | None:
        return self._state.remainder_direction

    def state(self) -> VolumeState:
        """Return a copy of the current state."""
        return VolumeState(
            volume=self._state.volume,
            raw_remainder=self._state.raw_remainder,
            remainder_direction=self._state.remainder_direction,
        )

    def _store_remainder(self, signed: int) -> None:
        self._state.raw_remainder = abs(signed)
        if signed > 0:
            self._state.remainder_direction = Direction.POSITIVE
        elif signed < 0:
            self._state.remainder_direction = Direction.NEGATIVE
        else:
            self._state.remainder_direction = None

    def commit(self, delta: int) -> CommitResult:
        """Add *delta* raw units and convert whole units into volume points."""
        previous = self._state.volume
        total = self._state.signed_remainder + delta
        points = abs(total) // self._unit_size
        if total < 0:
            points = -points
        remainder = total - points * self._unit_size
        target = previous + points

        if target < VOLUME_MIN or target > VOLUME_MAX:
            target = clamp_volume(target)
            remainder = 0

        self._state.volume = target
        self._store_remainder(remainder)

        return CommitResult(
            previous=previous,
            volume=target,
            delta=delta,
            boundary_crossed=target != previous and target in (VOLUME_MIN, VOLUME_MAX),
            decade_crossed=_decade_crossed(previous, target),
        )

    def set_absolute(self, value: int) -> CommitResult:
        """Overwrite the volume (remote writes only) and zero the remainder."""
        previous = self._state.volume
        target = clamp_volume(value)
        self._state.volume = target
        self._store_remainder(0)
        return CommitResult(
            previous=previous,
            volume=target,
            delta=0,
            boundary_crossed=target != previous and target in (VOLUME_MIN, VOLUME_MAX),
            decade_crossed=_decade_crossed(previous, target),
        )

    def discard_remainder(self) -> int:
        """Drop the uncommitted sub-unit leftover and return it (signed)."""
        dropped = self._state.signed_remainder
        self._store_remainder(0)
        return dropped
