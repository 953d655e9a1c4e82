"""Button click counter."""

from __future__ import annotations


class ClickCounter:
    """Strictly increasing press counter.

    No upper bound is enforced here; wrapping is applied by the publisher.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start must not be negative, got {start}")
        self._count = start

    @property
    def count(self) -> int:
        return self._count

    def press(self) -> int:
        self._count += 1
        return self._count
