import pytest

from flapbird.protocol import (
    ACK_COMMAND,
    FRAME_LENGTH,
    Device,
    Equalizer,
    ErrorCode,
    Event,
    EventType,
    FrameError,
    FrameParser,
    build_frame,
    checksum,
    decode_frame,
)


def _frame(command, parameter=0):
    return build_frame(command, parameter)


def test_reset_frame_wire_bytes():
    assert build_frame(0x0C) == bytes.fromhex("7EFF060C000000FEEFEF")


def test_play_first_track_wire_bytes():
    assert build_frame(0x03, 1) == bytes.fromhex("7EFF0603000001FEF7EF")


def test_ack_flag_sets_byte_four():
    frame = build_frame(0x0C, ack=True)
    assert frame[4] == 1
    assert build_frame(0x0C)[4] == 0
    assert frame[0] == 0x7E and frame[-1] == 0xEF


@pytest.mark.parametrize("command,argument", [(0x06, 30), (0x0F, 0x0203), (0x14, 0xFFFF)])
def test_frame_checksum_cancels_sum(command, argument):
    frame = build_frame(command, argument)
    assert len(frame) == FRAME_LENGTH
    total = sum(frame[1:7]) + int.from_bytes(frame[7:9], "big")
    assert total & 0xFFFF == 0
    assert int.from_bytes(frame[5:7], "big") == argument


def test_checksum_of_zero_sum_is_zero():
    assert checksum([0, 0, 0, 0, 0, 0]) == 0


@pytest.mark.parametrize("command,argument", [(-1, 0), (0x100, 0), (0x03, -1), (0x03, 0x10000)])
def test_build_frame_rejects_out_of_range(command, argument):
    with pytest.raises(ValueError):
        build_frame(command, argument)


@pytest.mark.parametrize("command", [0x3C, 0x3D, 0x3E])
def test_decode_play_finished(command):
    event = decode_frame(_frame(command, 7))
    assert event == Event(EventType.PLAY_FINISHED, 7, command)


@pytest.mark.parametrize(
    "command,parameter,expected",
    [
        (0x3A, 0x01, EventType.USB_INSERTED),
        (0x3A, 0x02, EventType.CARD_INSERTED),
        (0x3A, 0x03, EventType.USB_INSERTED),
        (0x3B, 0x01, EventType.USB_REMOVED),
        (0x3B, 0x02, EventType.CARD_REMOVED),
        (0x3F, 0x01, EventType.USB_ONLINE),
        (0x3F, 0x02, EventType.CARD_ONLINE),
        (0x3F, 0x03, EventType.CARD_USB_ONLINE),
    ],
)
def test_decode_device_notifications(command, parameter, expected):
    event = decode_frame(_frame(command, parameter))
    assert event.type is expected
    assert event.parameter == parameter


@pytest.mark.parametrize("command", [0x3A, 0x3B, 0x3F])
def test_device_notification_without_known_bit_reports_nothing(command):
    event = decode_frame(_frame(command, 0x04))
    assert event.type is None
    assert event.is_ack is False


def test_decode_error_event():
    event = decode_frame(_frame(0x40, ErrorCode.FILE_INDEX_OUT))
    assert event.type is EventType.ERROR
    assert event.error_code is ErrorCode.FILE_INDEX_OUT


@pytest.mark.parametrize("command", [0x42, 0x43, 0x44, 0x48, 0x4E, 0x4F])
def test_decode_feedback(command):
    event = decode_frame(_frame(command, 25))
    assert event.type is EventType.FEEDBACK
    assert event.parameter == 25
    assert event.error_code is None


def test_decode_ack():
    event = decode_frame(_frame(ACK_COMMAND))
    assert event.is_ack is True
    assert event.type is None


def test_decode_unknown_command_raises_with_command():
    with pytest.raises(FrameError) as info:
        decode_frame(_frame(0x01))
    assert info.value.command == 0x01


def test_decode_bad_checksum():
    frame = bytearray(_frame(0x3D, 1))
    frame[8] ^= 0x01
    with pytest.raises(FrameError):
        decode_frame(bytes(frame))


@pytest.mark.parametrize("index", [0, 1, 2, 9])
def test_decode_bad_marker_bytes(index):
    frame = bytearray(_frame(0x3D, 1))
    frame[index] ^= 0x10
    with pytest.raises(FrameError):
        decode_frame(bytes(frame))


def test_decode_wrong_length():
    with pytest.raises(FrameError):
        decode_frame(_frame(0x3D, 1)[:9])


def test_parser_skips_noise_and_decodes():
    parser = FrameParser()
    events = parser.feed(b"\x00\x12" + _frame(0x3D, 3))
    assert events == [Event(EventType.PLAY_FINISHED, 3, 0x3D)]


def test_parser_handles_split_input():
    parser = FrameParser()
    frame = _frame(0x43, 20)
    assert parser.feed(frame[:4]) == []
    assert parser.feed(frame[4:]) == [Event(EventType.FEEDBACK, 20, 0x43)]


def test_parser_returns_several_events_in_order():
    parser = FrameParser()
    data = _frame(ACK_COMMAND) + _frame(0x3D, 1) + _frame(0x3F, 2)
    events = parser.feed(data)
    assert [e.is_ack for e in events] == [True, False, False]
    assert [e.type for e in events[1:]] == [EventType.PLAY_FINISHED, EventType.CARD_ONLINE]


def test_parser_bad_version_yields_wrong_stack_and_recovers():
    parser = FrameParser()
    events = parser.feed(b"\x7e\x00" + _frame(0x3D, 9))
    assert events[0] == Event(EventType.WRONG_STACK, 0, None)
    assert events[1] == Event(EventType.PLAY_FINISHED, 9, 0x3D)


def test_parser_bad_length_yields_wrong_stack():
    parser = FrameParser()
    events = parser.feed(b"\x7e\xff\x05")
    assert events == [Event(EventType.WRONG_STACK, 0, None)]


def test_parser_bad_checksum_yields_wrong_stack():
    frame = bytearray(_frame(0x3D, 1))
    frame[7] ^= 0x01
    events = FrameParser().feed(bytes(frame))
    assert [e.type for e in events] == [EventType.WRONG_STACK]


def test_parser_unknown_command_keeps_command():
    events = FrameParser().feed(_frame(0x02, 5))
    assert events == [Event(EventType.WRONG_STACK, 0, 0x02)]


def test_parser_reset_drops_partial_frame():
    parser = FrameParser()
    frame = _frame(0x3D, 4)
    parser.feed(frame[:5])
    parser.reset()
    assert parser.feed(frame[5:]) == []
    assert parser.feed(frame) == [Event(EventType.PLAY_FINISHED, 4, 0x3D)]


def test_enum_values_travel_on_the_wire():
    assert decode_frame(_frame(0x43, 1)).type == 11
    assert build_frame(0x09, Device.FLASH)[6] == 5
    assert build_frame(0x07, Equalizer.BASS)[6] == 5
    assert decode_frame(_frame(0x40, 7)).error_code is ErrorCode.ADVERTISE