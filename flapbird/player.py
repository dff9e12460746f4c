"""Driver for the serial MP3 player module: commands, queries and event polling."""

from __future__ import annotations

import time
from typing import Callable, Protocol

from flapbird.protocol import Device, Event, EventType, FrameParser, build_frame

_POLL_INTERVAL_MS = 1
_RESET_WAIT_MS = 2000
_RESET_SETTLE_MS = 200
_DEVICE_SWITCH_MS = 200
_NO_ACK_GAP_MS = 10

_FILE_COUNT_COMMANDS = {Device.U_DISK: 0x47, Device.SD: 0x48, Device.FLASH: 0x49}
_CURRENT_FILE_COMMANDS = {Device.U_DISK: 0x4B, Device.SD: 0x4C, Device.FLASH: 0x4D}


class SerialStream(Protocol):
    """The part of a serial port the player needs."""

    @property
    def in_waiting(self) -> int: ...

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> int | None: ...


class PlayerTimeout(TimeoutError):
    """The player sent no answer in time."""


class UnexpectedResponse(RuntimeError):
    """The player answered a query with something other than feedback."""

    def __init__(self, event_type: EventType, parameter: int) -> None:
        super().__init__(f"expected feedback, got {event_type.name} ({parameter})")
        self.event_type = event_type
        self.parameter = parameter


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000.0)


def _byte(name: str, value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} out of range: {value}")
    return value


class DFPlayer:
    """Talks to the player over a serial stream opened at 9600 baud."""

    def __init__(
        self,
        timeout_ms: int = 500,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        self._clock = clock or _monotonic_ms
        self._sleep = sleep or _sleep_ms
        self._stream: SerialStream | None = None
        self._parser = FrameParser()
        self._ack = False
        self._available = False
        self._sending = False
        self._type = EventType.TIMEOUT
        self._command = 0
        self._parameter = 0

    # --- connection and events -------------------------------------------

    def begin(self, stream: SerialStream, ack: bool = True, reset: bool = True) -> bool:
        """Attach to ``stream``; return True if the player came online (or ACK is off)."""
        self._stream = stream
        self._parser.reset()
        self._available = False
        self._sending = False
        self._ack = ack
        if reset:
            self.reset()
            self.wait_available(_RESET_WAIT_MS)
            self._sleep(_RESET_SETTLE_MS)
        else:
            self._type = EventType.CARD_ONLINE
            self._available = False
        kind = self.read_type()
        return kind in (EventType.CARD_ONLINE, EventType.USB_ONLINE) or not ack

    def _require_stream(self) -> SerialStream:
        if self._stream is None:
            raise RuntimeError("player not started; call begin() first")
        return self._stream

    def _handle_message(self, kind: EventType, parameter: int = 0) -> None:
        self._type = kind
        self._parameter = parameter
        self._available = True
        self._sending = False
        self._parser.reset()

    def _handle_error(self, kind: EventType, parameter: int = 0) -> None:
        self._handle_message(kind, parameter)
        self._sending = False

    def _apply(self, event: Event) -> bool | None:
        """Record ``event``: True if one is ready, False on error, None to keep reading."""
        if event.type is EventType.WRONG_STACK:
            if event.command is not None:
                self._command = event.command
            self._handle_error(EventType.WRONG_STACK)
            return False
        if event.is_ack:
            self._sending = False
            return None
        if event.command is not None:
            self._command = event.command
        self._parameter = event.parameter
        if event.type is None:
            return None
        self._handle_message(event.type, event.parameter)
        return True

    def available(self) -> bool:
        """Read waiting bytes; return True once an event is ready to read."""
        stream = self._require_stream()
        while stream.in_waiting:
            chunk = stream.read(1)
            if not chunk:
                break
            for event in self._parser.feed(chunk):
                outcome = self._apply(event)
                if outcome is not None:
                    return outcome
        return self._available

    def wait_available(self, duration: float = 0) -> bool:
        """Poll until an event is ready or ``duration`` ms pass (0 means the default)."""
        if duration == 0:
            duration = self.timeout_ms
        started = self._clock()
        while not self.available():
            if self._clock() - started >= duration:
                self._handle_error(EventType.TIMEOUT)
                return False
            self._sleep(_POLL_INTERVAL_MS)
        return True

    def read_type(self) -> EventType:
        """Kind of the last event; marks it as read."""
        self._available = False
        return EventType(self._type)

    def read(self) -> int:
        """Parameter of the last event; marks it as read."""
        self._available = False
        return self._parameter

    def read_command(self) -> int:
        """Command byte of the last frame received."""
        return self._command

    # --- sending ---------------------------------------------------------

    def _send(self, command: int, argument: int = 0) -> None:
        stream = self._require_stream()
        frame = build_frame(command, argument, self._ack)
        if self._ack:
            while self._sending:
                self.wait_available()
        stream.write(frame)
        self._sending = self._ack
        if not self._sending:
            self._sleep(_NO_ACK_GAP_MS)

    def _send_pair(self, command: int, high: int, low: int) -> None:
        self._send(command, (_byte("high byte", high) << 8) | _byte("low byte", low))

    # --- playback control ------------------------------------------------

    def next(self) -> None:
        self._send(0x01)

    def previous(self) -> None:
        self._send(0x02)

    def play(self, file_number: int) -> None:
        self._send(0x03, file_number)

    def volume_up(self) -> None:
        self._send(0x04)

    def volume_down(self) -> None:
        self._send(0x05)

    def volume(self, level: int) -> None:
        self._send(0x06, _byte("volume", level))

    def eq(self, eq: int) -> None:
        self._send(0x07, _byte("equalizer", eq))

    def loop(self, file_number: int) -> None:
        self._send(0x08, file_number)

    def output_device(self, device: int) -> None:
        """Switch device; the player reinitialises, so give it a moment."""
        self._send(0x09, _byte("device", device))
        self._sleep(_DEVICE_SWITCH_MS)

    def sleep(self) -> None:
        self._send(0x0A)

    def reset(self) -> None:
        self._send(0x0C)

    def start(self) -> None:
        self._send(0x0D)

    def pause(self) -> None:
        self._send(0x0E)

    def play_folder(self, folder_number: int, file_number: int) -> None:
        self._send_pair(0x0F, folder_number, file_number)

    def output_setting(self, enable: bool, gain: int) -> None:
        self._send_pair(0x10, int(bool(enable)), gain)

    def enable_loop_all(self) -> None:
        self._send(0x11, 0x01)

    def disable_loop_all(self) -> None:
        self._send(0x11, 0x00)

    def play_mp3_folder(self, file_number: int) -> None:
        self._send(0x12, file_number)

    def advertise(self, file_number: int) -> None:
        self._send(0x13, file_number)

    def play_large_folder(self, folder_number: int, file_number: int) -> None:
        """Folder (0-15) in the high four bits, file in the low twelve."""
        if not 0 <= folder_number <= 0x0F:
            raise ValueError(f"folder out of range: {folder_number}")
        self._send(0x14, (folder_number << 12) | (file_number & 0x0FFF))

    def stop_advertise(self) -> None:
        self._send(0x15)

    def stop(self) -> None:
        self._send(0x16)

    def loop_folder(self, folder_number: int) -> None:
        self._send(0x17, folder_number)

    def random_all(self) -> None:
        self._send(0x18)

    def enable_loop(self) -> None:
        self._send(0x19, 0x00)

    def disable_loop(self) -> None:
        self._send(0x19, 0x01)

    def enable_dac(self) -> None:
        self._send(0x1A, 0x00)

    def disable_dac(self) -> None:
        self._send(0x1A, 0x01)

    # --- queries ---------------------------------------------------------

    def _query(self, command: int, argument: int = 0) -> int:
        self._send(command, argument)
        if not self.wait_available():
            raise PlayerTimeout(f"no answer to command 0x{command:02X}")
        kind = self.read_type()
        if kind is not EventType.FEEDBACK:
            raise UnexpectedResponse(kind, self.read())
        return self.read()

    def read_state(self) -> int:
        return self._query(0x42)

    def read_volume(self) -> int:
        return self._query(0x43)

    def read_eq(self) -> int:
        return self._query(0x44)

    def read_file_counts(self, device: int = Device.SD) -> int:
        try:
            command = _FILE_COUNT_COMMANDS[Device(device)]
        except (ValueError, KeyError):
            raise ValueError(f"cannot count files on device {device}") from None
        return self._query(command)

    def read_current_file_number(self, device: int = Device.SD) -> int:
        try:
            command = _CURRENT_FILE_COMMANDS[Device(device)]
        except (ValueError, KeyError):
            raise ValueError(f"no current file on device {device}") from None
        return self._query(command)

    def read_file_counts_in_folder(self, folder_number: int) -> int:
        return self._query(0x4E, folder_number)

    def read_folder_counts(self) -> int:
        return self._query(0x4F)