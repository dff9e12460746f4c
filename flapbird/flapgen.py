"""Random, speech-like flapping patterns for an animated bird."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Protocol

TOTAL_DURATION_MS = 7000
MAX_FLAPS = 70

FLAP_MIN = 50
FLAP_MAX = 170
BREAK_MIN = 80
BREAK_MAX = 200

PAUSE_BREAK_MIN = 400
PAUSE_BREAK_MAX = 650

BURST_MIN_FLAPS = 2
BURST_MAX_FLAPS = 5


class _RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...

    def randrange(self, start: int, stop: int) -> int: ...


@dataclass(frozen=True)
class FlapPattern:
    """Paired flap and break durations in milliseconds."""

    flaps: tuple[int, ...] = ()
    breaks: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if len(self.flaps) != len(self.breaks):
            raise ValueError("flaps and breaks must have the same length")

    def __len__(self) -> int:
        return len(self.flaps)


@dataclass(frozen=True)
class SoundParams:
    """What to play and how the bird should move while it plays."""

    folder_id: int = 0
    trigger_bird: bool = False
    flap_pattern: tuple[int, ...] = field(default=())
    flap_break_pattern: tuple[int, ...] = field(default=())

    def with_pattern(self, pattern: FlapPattern) -> SoundParams:
        """Return a copy carrying the flaps and breaks of ``pattern``."""
        return replace(
            self,
            flap_pattern=tuple(pattern.flaps),
            flap_break_pattern=tuple(pattern.breaks),
        )


def generate_speech_like_flapping_pattern(
    rng: _RandomSource | None = None,
) -> FlapPattern:
    """Build bursts of short flaps separated by longer, speech-like pauses."""
    rng = rng if rng is not None else random.Random()
    flaps: list[int] = []
    breaks: list[int] = []
    elapsed = 0

    while elapsed < TOTAL_DURATION_MS and len(flaps) + 6 < MAX_FLAPS:
        burst = rng.randrange(BURST_MIN_FLAPS, BURST_MAX_FLAPS)
        for _ in range(burst):
            if elapsed >= TOTAL_DURATION_MS:
                break
            flap = rng.randint(FLAP_MIN, FLAP_MAX)
            pause = rng.randint(BREAK_MIN, BREAK_MAX)
            flaps.append(flap)
            breaks.append(pause)
            elapsed += flap + pause

        if elapsed + PAUSE_BREAK_MIN < TOTAL_DURATION_MS and len(flaps) < MAX_FLAPS:
            flaps.append(rng.randint(FLAP_MIN, FLAP_MAX))
            long_pause = rng.randint(PAUSE_BREAK_MIN, PAUSE_BREAK_MAX)
            breaks.append(long_pause)
            elapsed += long_pause

    return FlapPattern(tuple(flaps), tuple(breaks))