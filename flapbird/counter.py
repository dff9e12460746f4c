"""Detect three events within a short window on a wrapping 16-bit clock."""

from __future__ import annotations

_MASK = 0xFFFF
_SLOTS = 3


class TimeBasedCounter:
    """Keeps the last three event times and reports when all are recent."""

    within_time = 5000

    def __init__(self) -> None:
        self._times = [0] * _SLOTS

    def _age(self, current_time: int, stamp: int) -> int:
        return (current_time - stamp) & _MASK

    def add_time_and_check(self, current_time: int) -> bool:
        """Record ``current_time``; return True once three events fall in the window."""
        current_time &= _MASK
        for slot, stamp in enumerate(self._times):
            if self._age(current_time, stamp) > self.within_time:
                self._times[slot] = current_time
                return False
        self.reset()
        return True

    def reset(self) -> None:
        self._times = [0] * _SLOTS

    def current_shake_count(self, current_time: int) -> int:
        current_time &= _MASK
        return sum(
            1 for stamp in self._times if self._age(current_time, stamp) <= self.within_time
        )

    def latest_time(self) -> int:
        return max(self._times)