import random

import pytest

from flapbird.flapgen import (
    BREAK_MAX,
    BREAK_MIN,
    FLAP_MAX,
    FLAP_MIN,
    MAX_FLAPS,
    PAUSE_BREAK_MAX,
    PAUSE_BREAK_MIN,
    TOTAL_DURATION_MS,
    FlapPattern,
    SoundParams,
    generate_speech_like_flapping_pattern,
)


class _LowRandom:
    def randint(self, a, b):
        return a

    def randrange(self, start, stop):
        return start


def _elapsed(pattern):
    total = 0
    for flap, pause in zip(pattern.flaps, pattern.breaks):
        total += pause if pause >= PAUSE_BREAK_MIN else flap + pause
    return total


@pytest.mark.parametrize("seed", range(20))
def test_lengths_match_and_bounded(seed):
    pattern = generate_speech_like_flapping_pattern(random.Random(seed))
    assert len(pattern.flaps) == len(pattern.breaks)
    assert 0 < len(pattern) <= MAX_FLAPS


@pytest.mark.parametrize("seed", range(20))
def test_values_within_ranges(seed):
    pattern = generate_speech_like_flapping_pattern(random.Random(seed))
    assert all(FLAP_MIN <= f <= FLAP_MAX for f in pattern.flaps)
    assert all(
        BREAK_MIN <= b <= BREAK_MAX or PAUSE_BREAK_MIN <= b <= PAUSE_BREAK_MAX
        for b in pattern.breaks
    )


@pytest.mark.parametrize("seed", range(20))
def test_generation_stops_at_duration_or_capacity(seed):
    pattern = generate_speech_like_flapping_pattern(random.Random(seed))
    assert _elapsed(pattern) >= TOTAL_DURATION_MS or len(pattern) + 6 >= MAX_FLAPS


def test_same_seed_same_pattern():
    first = generate_speech_like_flapping_pattern(random.Random(42))
    second = generate_speech_like_flapping_pattern(random.Random(42))
    assert first == second


def test_minimal_random_source():
    pattern = generate_speech_like_flapping_pattern(_LowRandom())
    assert len(pattern) == 34
    assert set(pattern.flaps) == {FLAP_MIN}
    assert set(pattern.breaks) == {BREAK_MIN, PAUSE_BREAK_MIN}


def test_pattern_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        FlapPattern((100, 120), (90,))


def test_with_pattern_copies_pattern():
    pattern = FlapPattern((100, 120), (90, 450))
    params = SoundParams(folder_id=3, trigger_bird=True)
    updated = params.with_pattern(pattern)
    assert updated.flap_pattern == (100, 120)
    assert updated.flap_break_pattern == (90, 450)
    assert updated.folder_id == 3
    assert updated.trigger_bird is True
    assert params.flap_pattern == ()