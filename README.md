# flapbird

Building blocks for a talking animatronic bird: random speech-like flap
patterns, timed jobs with back-off periods, a shake counter, and a driver
for the DFPlayer Mini MP3 module's serial protocol.

The package has no dependencies outside the standard library.

## Installation

```
pip install flapbird
```

For running the tests:

```
pip install "flapbird[test]"
pytest
```

## Modules

### `flapbird.flapgen`

`generate_speech_like_flapping_pattern(rng=None)` returns a `FlapPattern`:
two equally long tuples, `flaps` and `breaks`, of durations in milliseconds.
Flaps come in bursts of two to four, each flap 50–170 ms followed by a
80–200 ms break, and bursts are separated by a longer 400–650 ms pause,
until about seven seconds are filled or the pattern nears 70 entries. Pass
a `random.Random` (or anything with `randint` and `randrange`) as `rng` for
repeatable patterns.

`SoundParams` describes a sound to play (`folder_id`, `trigger_bird`,
`flap_pattern`, `flap_break_pattern`); `SoundParams.with_pattern(pattern)`
returns a copy carrying a `FlapPattern`'s flaps and breaks.

### `flapbird.counter`

`TimeBasedCounter` keeps the times of the last three events on a wrapping
16-bit millisecond clock. `add_time_and_check(current_time)` records a time
and returns `True` (and clears itself) once three events fall within
`within_time` (5000 ms). `current_shake_count(current_time)` counts the
recent ones, `latest_time()` returns the largest stored time, and `reset()`
clears them.

### `flapbird.jobs`

`SoftTimer(timeout_ms, clock=None)` is a polled timer with `reset()`,
`has_timed_out()` and `remaining_time()`.

`JobManager(job_duration, enable, disable=None, backoff_duration=0,
run_once=False, start_in_backoff=False, clock=None)` calls `enable` on
`start_job()` and `disable` when the job ends, either through `end_job()`
or when `handle_job()` finds the job's time has run out. After a job ends, a
non-zero back-off period blocks new starts until `handle_job()` sees it
expire; `renew_backoff()` extends it. In run-once mode a job starts only
once until `reset_job()`. Durations are in milliseconds; `clock` is any
callable returning the current time in milliseconds (monotonic time by
default).

### `flapbird.protocol`

The module's ten-byte frame format: `checksum(data)`,
`build_frame(command, argument=0, ack=False)`, and `decode_frame(frame)`,
which validates a frame and returns an `Event` (`type`, `parameter`,
`command`) or raises `FrameError`. `FrameParser.feed(data)` assembles
frames from a byte stream and returns the events they complete; a damaged
frame yields an `EventType.WRONG_STACK` event. The enums `EventType`,
`ErrorCode`, `Device` and `Equalizer` name the protocol's values.

### `flapbird.player`

`DFPlayer(timeout_ms=500, clock=None, sleep=None)` drives the module over
any stream with `in_waiting`, `read(size)` and `write(data)` (a serial port
object at 9600 baud, for example). `begin(stream, ack=True, reset=True)`
attaches to the stream and returns whether the player reported itself
online. Playback commands include `play`, `play_folder`,
`play_large_folder`, `play_mp3_folder`, `advertise`, `volume`, `eq`,
`pause`, `start`, `stop`, `next`, `previous` and others. Events are polled
with `available()` or `wait_available(duration)` and read with
`read_type()`, `read()` and `read_command()`.

Queries (`read_state`, `read_volume`, `read_eq`, `read_file_counts`,
`read_current_file_number`, `read_file_counts_in_folder`,
`read_folder_counts`) return the player's answer, raise `PlayerTimeout`
when none arrives in time, and raise `UnexpectedResponse` when the answer is
not feedback. An unsupported device raises `ValueError`.

## Example

```python
import random

from flapbird.flapgen import generate_speech_like_flapping_pattern
from flapbird.protocol import EventType, build_frame, decode_frame

pattern = generate_speech_like_flapping_pattern(random.Random(1))

frame = build_frame(0x06, 20)            # "set volume to 20"
reply = decode_frame(build_frame(0x43, 20))  # a volume query answer
assert reply.type is EventType.FEEDBACK and reply.parameter == 20
```

Playing a track through a serial connection (`stream` is an open serial
port object):

```python
from flapbird.player import DFPlayer

player = DFPlayer()
player.begin(stream, ack=True, reset=True)
player.volume(20)
player.play_folder(1, 3)
```

## What it does not do

The package provides no command-line program and does not open serial
ports itself; you supply the stream. It does not decode or play audio —
the MP3 module does that — and it does not drive motors or other hardware:
flap patterns are only lists of durations for your own code to act on.