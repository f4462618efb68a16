"""
Forward-only cursor over a text-protocol result set

Rows reads one row packet at a time from its row source and decodes column
values lazily, in result-set order, through typed accessors. Accessors never
raise: the first error met while reading rows or converting values is
latched and must be checked with last_error() once the loop ends.

    rows = conn.query("SELECT id, name FROM people")
    for _ in rows:
        person_id = rows.int64()
        name, is_null = rows.nullable_string()
    if rows.last_error() is not None:
        raise rows.last_error()

All rows must be read (or close() called) before the connection runs
another command, because the rows share the connection's byte stream.
"""
import logging

from mysql.connector.constants import FieldFlag

from .exceptions import ConversionError, Error, ProtocolError
from .protocol import read_row_value
from .types import decode_string, parse_bool, parse_float, parse_int

logger = logging.getLogger(__name__)


class _Pending:
    """Created; advance() has not been called yet."""


class _Active:
    __slots__ = ("packet", "offset")

    def __init__(self, packet):
        self.packet = packet
        self.offset = 0


class _Ended:
    """The row source reported the end of the stream."""


class _Failed:
    __slots__ = ("error",)

    def __init__(self, error):
        self.error = error


_PENDING = _Pending()
_ENDED = _Ended()


class Rows:
    """
    Result set of a query.

    Attributes:
        columns: Column definitions from the result set header
    """

    def __init__(self, result_set, columns=(), encoding="utf-8", on_release=None, ended=False):
        """
        Args:
            result_set: Row source with a next_row() method
            columns: Column definitions of the result set
            encoding: Encoding used by the string accessors
            on_release: Called once when the stream ends or fails
            ended: The row source holds no rows; the stream starts ended
                and on_release is never called
        """
        self._result_set = result_set
        self.columns = list(columns)
        self.encoding = encoding
        self._on_release = on_release
        self._state = _ENDED if ended else _PENDING
        self._error = None

    @property
    def stream_ended(self):
        return isinstance(self._state, (_Ended, _Failed))

    @property
    def description(self):
        """
        Sequence of 7-item tuples describing each result column:
        (name, type_code, display_size, internal_size, precision, scale, null_ok)
        """
        if not self.columns:
            return None
        return [
            (c.name, c.type_code, None, c.column_length, None, c.decimals,
             not c.flags & FieldFlag.NOT_NULL)
            for c in self.columns
        ]

    def advance(self):
        """
        Move to the next unread row.

        Returns False once the stream has ended or an error has been latched
        (see last_error()). Must be called before reading the first row and
        until it returns False, so the stream is drained before the
        connection is used again.
        """
        if self.stream_ended:
            return False
        if self._error is not None:
            return False
        return self._fetch()

    def _fetch(self):
        try:
            packet = self._result_set.next_row()
        except Error as e:
            self._latch(e)
            self._state = _Failed(e)
            self._release()
            return False

        if packet is None:
            self._state = _ENDED
            self._release()
            return False

        self._state = _Active(packet)
        return True

    def _release(self):
        logger.debug("Result set stream %s", "failed" if isinstance(self._state, _Failed) else "ended")
        if self._on_release is not None:
            on_release, self._on_release = self._on_release, None
            on_release(self)

    def _latch(self, error):
        if self._error is None:
            logger.warning("Result set error latched: %s", error)
            self._error = error

    def last_error(self):
        """
        Return the first error met while reading the result set, or None.

        Always check it after the read loop: a loop that stops early because
        of an error looks the same as one that read every row.
        """
        return self._error

    def close(self):
        """Read and discard all remaining rows so the connection can be reused."""
        discarded = 0
        while not self.stream_ended:
            if self._fetch():
                discarded += 1
        if discarded:
            logger.debug("Discarded %d unread rows", discarded)

    def __iter__(self):
        while self.advance():
            yield self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Column accessors. Every call consumes the next column of the current row.

    def nullable_bytes(self):
        state = self._state
        if not isinstance(state, _Active):
            self._latch(ProtocolError("no current row to read a column from"))
            return b"", False
        try:
            value, state.offset, is_null = read_row_value(state.packet, state.offset)
        except ProtocolError as e:
            self._latch(e)
            return b"", False
        return value, is_null

    def _nullable_value(self, parse, zero, *args):
        data, is_null = self.nullable_bytes()
        if is_null:
            return zero, True
        try:
            return parse(data, *args), False
        except ConversionError as e:
            self._latch(e)
            return zero, False

    def bytes(self):
        value, _ = self.nullable_bytes()
        return value

    def nullable_string(self):
        data, is_null = self.nullable_bytes()
        return decode_string(data, self.encoding), is_null

    def string(self):
        value, _ = self.nullable_string()
        return value

    def nullable_int(self):
        return self._nullable_value(parse_int, 0, 64)

    def int(self):
        value, _ = self.nullable_int()
        return value

    def nullable_int8(self):
        return self._nullable_value(parse_int, 0, 8)

    def int8(self):
        value, _ = self.nullable_int8()
        return value

    def nullable_int16(self):
        return self._nullable_value(parse_int, 0, 16)

    def int16(self):
        value, _ = self.nullable_int16()
        return value

    def nullable_int32(self):
        return self._nullable_value(parse_int, 0, 32)

    def int32(self):
        value, _ = self.nullable_int32()
        return value

    def nullable_int64(self):
        return self._nullable_value(parse_int, 0, 64)

    def int64(self):
        value, _ = self.nullable_int64()
        return value

    def nullable_float32(self):
        return self._nullable_value(parse_float, 0.0, 32)

    def float32(self):
        value, _ = self.nullable_float32()
        return value

    def nullable_float64(self):
        return self._nullable_value(parse_float, 0.0, 64)

    def float64(self):
        value, _ = self.nullable_float64()
        return value

    def nullable_bool(self):
        return self._nullable_value(parse_bool, False)

    def bool(self):
        value, _ = self.nullable_bool()
        return value
