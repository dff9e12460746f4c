"""Wire format of the serial MP3 player module: frames, checksums and events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable

FRAME_LENGTH = 10
START_BYTE = 0x7E
VERSION = 0xFF
LENGTH = 0x06
END_BYTE = 0xEF
ACK_COMMAND = 0x41

_CMD_INDEX = 3
_ACK_INDEX = 4
_PARAM_INDEX = 5
_CHECKSUM_INDEX = 7

_PLAY_FINISHED_COMMANDS = frozenset({0x3C, 0x3D, 0x3E})
_INSERTED_COMMAND = 0x3A
_REMOVED_COMMAND = 0x3B
_ONLINE_COMMAND = 0x3F
_ERROR_COMMAND = 0x40
_FEEDBACK_COMMANDS = frozenset(
    {0x42, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48, 0x49, 0x4B, 0x4C, 0x4D, 0x4E, 0x4F}
)

_USB_BIT = 0x01
_CARD_BIT = 0x02


class EventType(IntEnum):
    """Kinds of message the player reports."""

    TIMEOUT = 0
    WRONG_STACK = 1
    CARD_INSERTED = 2
    CARD_REMOVED = 3
    CARD_ONLINE = 4
    PLAY_FINISHED = 5
    ERROR = 6
    USB_INSERTED = 7
    USB_REMOVED = 8
    USB_ONLINE = 9
    CARD_USB_ONLINE = 10
    FEEDBACK = 11


class ErrorCode(IntEnum):
    """Parameter carried by an ``EventType.ERROR`` event."""

    BUSY = 1
    SLEEPING = 2
    SERIAL_WRONG_STACK = 3
    CHECKSUM_NOT_MATCH = 4
    FILE_INDEX_OUT = 5
    FILE_MISMATCH = 6
    ADVERTISE = 7


class Device(IntEnum):
    """Playback devices."""

    U_DISK = 1
    SD = 2
    AUX = 3
    SLEEP = 4
    FLASH = 5


class Equalizer(IntEnum):
    """Equalizer presets."""

    NORMAL = 0
    POP = 1
    ROCK = 2
    JAZZ = 3
    CLASSIC = 4
    BASS = 5


class FrameError(ValueError):
    """A received frame is malformed or carries an unknown command."""

    def __init__(self, message: str, command: int | None = None) -> None:
        super().__init__(message)
        self.command = command


@dataclass(frozen=True)
class Event:
    """One decoded message.

    ``type`` is None when the frame reports nothing to the user: an
    acknowledgement, or a device notification with no recognised device bit.
    ``command`` is None when the frame was too damaged to read one.
    """

    type: EventType | None
    parameter: int = 0
    command: int | None = None

    @property
    def is_ack(self) -> bool:
        return self.command == ACK_COMMAND and self.type is None

    @property
    def error_code(self) -> ErrorCode | None:
        """The error reported by an ``ERROR`` event, if it is a known one."""
        if self.type is not EventType.ERROR:
            return None
        try:
            return ErrorCode(self.parameter)
        except ValueError:
            return None


def checksum(data: Iterable[int]) -> int:
    """Two's complement of the sum of the version-to-parameter bytes, as 16 bits."""
    return -sum(data) & 0xFFFF


def build_frame(command: int, argument: int = 0, ack: bool = False) -> bytes:
    """Build the ten-byte frame sending ``command`` with a 16-bit ``argument``."""
    if not 0 <= command <= 0xFF:
        raise ValueError(f"command out of range: {command}")
    if not 0 <= argument <= 0xFFFF:
        raise ValueError(f"argument out of range: {argument}")
    body = bytes(
        (VERSION, LENGTH, command, 0x01 if ack else 0x00, argument >> 8, argument & 0xFF)
    )
    return bytes((START_BYTE,)) + body + checksum(body).to_bytes(2, "big") + bytes((END_BYTE,))


def _device_event(parameter: int, usb: EventType, card: EventType) -> EventType | None:
    if parameter & _USB_BIT:
        return usb
    if parameter & _CARD_BIT:
        return card
    return None


def _online_event(parameter: int) -> EventType | None:
    if parameter & _USB_BIT and parameter & _CARD_BIT:
        return EventType.CARD_USB_ONLINE
    return _device_event(parameter, EventType.USB_ONLINE, EventType.CARD_ONLINE)


def decode_frame(frame: bytes) -> Event:
    """Validate a complete frame and interpret it; raise FrameError if it is bad."""
    frame = bytes(frame)
    if len(frame) != FRAME_LENGTH:
        raise FrameError(f"frame must be {FRAME_LENGTH} bytes, got {len(frame)}")
    if frame[0] != START_BYTE or frame[-1] != END_BYTE:
        raise FrameError("bad start or end byte")
    if frame[1] != VERSION:
        raise FrameError("bad version byte")
    if frame[2] != LENGTH:
        raise FrameError("bad length byte")
    expected = checksum(frame[1:_CHECKSUM_INDEX])
    received = int.from_bytes(frame[_CHECKSUM_INDEX:_CHECKSUM_INDEX + 2], "big")
    if expected != received:
        raise FrameError("checksum mismatch")

    command = frame[_CMD_INDEX]
    parameter = int.from_bytes(frame[_PARAM_INDEX:_PARAM_INDEX + 2], "big")

    if command == ACK_COMMAND:
        return Event(None, parameter, command)
    if command in _PLAY_FINISHED_COMMANDS:
        kind: EventType | None = EventType.PLAY_FINISHED
    elif command == _INSERTED_COMMAND:
        kind = _device_event(parameter, EventType.USB_INSERTED, EventType.CARD_INSERTED)
    elif command == _REMOVED_COMMAND:
        kind = _device_event(parameter, EventType.USB_REMOVED, EventType.CARD_REMOVED)
    elif command == _ONLINE_COMMAND:
        kind = _online_event(parameter)
    elif command == _ERROR_COMMAND:
        kind = EventType.ERROR
    elif command in _FEEDBACK_COMMANDS:
        kind = EventType.FEEDBACK
    else:
        raise FrameError(f"unknown command 0x{command:02X}", command)
    return Event(kind, parameter, command)


class FrameParser:
    """Assembles frames from a byte stream and turns them into events.

    Bytes before a start byte are skipped. A bad frame yields a
    ``WRONG_STACK`` event with parameter 0 and assembly starts over.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def reset(self) -> None:
        """Drop any partly assembled frame."""
        self._buffer.clear()

    def _wrong_stack(self, command: int | None = None) -> Event:
        self._buffer.clear()
        return Event(EventType.WRONG_STACK, 0, command)

    def feed(self, data: bytes) -> list[Event]:
        """Consume ``data`` and return the events completed by it, in order."""
        events: list[Event] = []
        for byte in bytes(data):
            if not self._buffer:
                if byte == START_BYTE:
                    self._buffer.append(byte)
                continue
            self._buffer.append(byte)
            size = len(self._buffer)
            if size == 2 and byte != VERSION:
                events.append(self._wrong_stack())
                continue
            if size == 3 and byte != LENGTH:
                events.append(self._wrong_stack())
                continue
            if size >= FRAME_LENGTH:
                frame = bytes(self._buffer)
                self._buffer.clear()
                try:
                    events.append(decode_frame(frame))
                except FrameError as exc:
                    events.append(self._wrong_stack(exc.command))
        return events