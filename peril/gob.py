"""Binary encoding of game logs in the gob wire format."""

from datetime import datetime, timedelta, timezone

from peril.routing import GameLog

_STRING_ID = 6
_GAME_LOG_ID = 65
_TIME_ID = 66
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_UNIX_TO_INTERNAL = 62135596800


class GobError(ValueError):
    """The data is not a valid gob stream of a game log."""


def _uint(value: int) -> bytes:
    if value < 128:
        return bytes([value])
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return bytes([256 - len(raw)]) + raw


def _int(value: int) -> bytes:
    return _uint((~value << 1) | 1 if value < 0 else value << 1)


def _string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _uint(len(raw)) + raw


def _message(type_id: int, body: bytes) -> bytes:
    payload = _int(type_id) + body
    return _uint(len(payload)) + payload


def _named(name: str, type_id: int) -> bytes:
    return b"\x01" + _string(name) + b"\x01" + _int(type_id) + b"\x00"


_GAME_LOG_TYPE = (
    b"\x03\x01" + _named("GameLog", _GAME_LOG_ID) + b"\x01" + _uint(3)
    + _named("CurrentTime", _TIME_ID)
    + _named("Message", _STRING_ID)
    + _named("Username", _STRING_ID)
    + b"\x00\x00"
)
_TIME_TYPE = b"\x05\x01" + _named("Time", _TIME_ID) + b"\x00\x00"


def _encode_time(moment: datetime) -> bytes:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    offset = int((moment.utcoffset() or timedelta(0)).total_seconds())
    seconds = (moment - _EPOCH) // timedelta(seconds=1) + _UNIX_TO_INTERNAL
    minutes, extra = divmod(offset, 60)
    data = (
        bytes([2 if extra else 1])
        + seconds.to_bytes(8, "big", signed=True)
        + (moment.microsecond * 1000).to_bytes(4, "big", signed=True)
        + (minutes if offset else -1).to_bytes(2, "big", signed=True)
    )
    return data + bytes([extra]) if extra else data


def _decode_time(data: bytes) -> datetime:
    if not data or data[0] not in (1, 2):
        raise GobError("time: unsupported version")
    if len(data) != 14 + data[0]:
        raise GobError("time: invalid length")
    seconds = int.from_bytes(data[1:9], "big", signed=True)
    nanos = int.from_bytes(data[9:13], "big", signed=True)
    minutes = int.from_bytes(data[13:15], "big", signed=True)
    extra = data[15] if data[0] == 2 else 0
    moment = _EPOCH + timedelta(seconds=seconds - _UNIX_TO_INTERNAL, microseconds=nanos // 1000)
    if minutes == -1:
        return moment
    return moment.astimezone(timezone(timedelta(minutes=minutes, seconds=extra)))


def encode_game_log(game_log: GameLog) -> bytes:
    """Encode a game log as a complete gob stream."""
    values = []
    moment = game_log.current_time
    if moment.tzinfo is None or moment != _ZERO_TIME:
        raw = _encode_time(moment)
        values.append((0, _uint(len(raw)) + raw))
    if game_log.message:
        values.append((1, _string(game_log.message)))
    if game_log.username:
        values.append((2, _string(game_log.username)))
    body, previous = b"", -1
    for index, encoded in values:
        body += _uint(index - previous) + encoded
        previous = index
    return (
        _message(-_GAME_LOG_ID, _GAME_LOG_TYPE)
        + _message(-_TIME_ID, _TIME_TYPE)
        + _message(_GAME_LOG_ID, body + b"\x00")
    )


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def take(self, count: int) -> bytes:
        if count < 0 or self.pos + count > len(self.data):
            raise GobError("unexpected end of data")
        self.pos += count
        return self.data[self.pos - count : self.pos]

    def uint(self) -> int:
        first = self.take(1)[0]
        if first < 128:
            return first
        if 256 - first > 8:
            raise GobError("invalid unsigned integer")
        return int.from_bytes(self.take(256 - first), "big")

    def int(self) -> int:
        value = self.uint()
        return ~(value >> 1) if value & 1 else value >> 1

    def string(self) -> str:
        try:
            return self.take(self.uint()).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise GobError("invalid string") from exc


def decode_game_log(data: bytes) -> GameLog:
    """Decode a gob stream holding one game log."""
    reader = _Reader(bytes(data))
    defined = set()
    while reader.pos < len(reader.data):
        message = _Reader(reader.take(reader.uint()))
        type_id = message.int()
        if type_id < 0:
            defined.add(-type_id)
            continue
        if type_id != _GAME_LOG_ID or type_id not in defined:
            raise GobError(f"unknown type id {type_id}")
        moment, text, username, field = _ZERO_TIME, "", "", -1
        while delta := message.uint():
            field += delta
            if field == 0:
                moment = _decode_time(message.take(message.uint()))
            elif field == 1:
                text = message.string()
            elif field == 2:
                username = message.string()
            else:
                raise GobError("field index out of range")
        return GameLog(current_time=moment, message=text, username=username)
    raise GobError("no value in data")