"""
Tests for the Rows cursor and its typed accessors.
"""

import pytest

from mysqldriver.exceptions import ConversionError, OperationalError, ProtocolError
from mysqldriver.rows import Rows

from .packets import ListRowSource, row


def make_rows(*rows, **kwargs):
    return Rows(ListRowSource(rows, **kwargs))


class TestAdvance:
    """Test the advance() state machine."""

    def test_true_once_per_row_then_false_forever(self):
        """Test that advance() reports each row once and then stays ended."""
        rows = make_rows(row("1"), row("2"), row("3"))
        seen = []
        while rows.advance():
            seen.append(rows.int())
        assert seen == [1, 2, 3]
        assert rows.stream_ended
        assert not rows.advance()
        assert not rows.advance()
        assert rows.last_error() is None

    def test_ended_stream_does_not_touch_row_source(self):
        """Test that the row source is not read again after the end."""
        source = ListRowSource([row("1")])
        rows = Rows(source)
        assert rows.advance()
        assert not rows.advance()
        calls = source.calls
        assert not rows.advance()
        assert source.calls == calls

    def test_zero_rows(self):
        """Test that an empty result set ends on the first advance."""
        rows = make_rows()
        assert not rows.advance()
        assert rows.last_error() is None
        assert rows.stream_ended

    def test_row_source_failure_on_second_row(self):
        """Test that a row source failure ends the stream and is latched."""
        rows = make_rows(row("1"), fail_at=1)
        assert rows.advance()
        assert not rows.advance()
        assert isinstance(rows.last_error(), OperationalError)
        assert rows.stream_ended
        assert not rows.advance()

    def test_not_ended_before_first_advance(self):
        """Test that a new cursor has not ended and holds no error."""
        rows = make_rows(row("1"))
        assert not rows.stream_ended
        assert rows.last_error() is None

    def test_iteration_yields_cursor_per_row(self):
        """Test that iterating advances once per row."""
        rows = make_rows(row("a"), row("b"))
        assert [r.string() for r in rows] == ["a", "b"]
        assert rows.stream_ended


class TestConversionErrors:
    """Test latching of conversion errors."""

    def test_valid_integer(self):
        rows = make_rows(row("123"))
        assert rows.advance()
        assert rows.int() == 123
        assert rows.last_error() is None

    def test_invalid_integer_latches_error(self):
        """Test that a bad integer returns zero and latches the error."""
        rows = make_rows(row("abc"))
        assert rows.advance()
        assert rows.int() == 0
        error = rows.last_error()
        assert isinstance(error, ConversionError)
        assert error.value == b"abc"

    def test_nullable_reports_not_null_on_failure(self):
        rows = make_rows(row("abc"))
        rows.advance()
        assert rows.nullable_int32() == (0, False)

    def test_conversion_error_stops_advance_without_ending_stream(self):
        """Test that a conversion error stops advance() but keeps the stream open."""
        rows = make_rows(row("x"), row("2"))
        assert rows.advance()
        rows.int()
        assert not rows.advance()
        assert not rows.stream_ended

    def test_first_error_wins(self):
        """Test that later errors do not replace the first one."""
        rows = make_rows(row("abc", "1.5.5"))
        rows.advance()
        rows.int()
        first = rows.last_error()
        rows.float64()
        assert rows.last_error() is first

    def test_remaining_columns_readable_after_error(self):
        """Test that the rest of the row stays readable after a bad column."""
        rows = make_rows(row("bad", "ok", "7"))
        rows.advance()
        assert rows.int8() == 0
        assert rows.string() == "ok"
        assert rows.int8() == 7

    def test_close_drains_after_conversion_error(self):
        """Test that close() drains the stream even with a latched error."""
        source = ListRowSource([row("x"), row("2"), row("3")])
        rows = Rows(source)
        rows.advance()
        rows.int()
        rows.close()
        assert rows.stream_ended
        assert source.calls == 4
        assert isinstance(rows.last_error(), ConversionError)


class TestAccessors:
    """Test the typed accessors."""

    def test_mixed_row(self):
        """Test reading an integer, a NULL string and a float from one row."""
        rows = make_rows(row("42", None, "3.14"))
        rows.advance()
        assert rows.int() == 42
        assert rows.nullable_string() == ("", True)
        assert rows.float64() == 3.14
        assert rows.last_error() is None

    @pytest.mark.parametrize("accessor, zero", [
        ("nullable_bytes", b""),
        ("nullable_string", ""),
        ("nullable_int", 0),
        ("nullable_int8", 0),
        ("nullable_int16", 0),
        ("nullable_int32", 0),
        ("nullable_int64", 0),
        ("nullable_float32", 0.0),
        ("nullable_float64", 0.0),
        ("nullable_bool", False),
    ])
    def test_null_gives_zero_value(self, accessor, zero):
        """Test that NULL columns give the zero value and no error."""
        rows = make_rows(row(None))
        rows.advance()
        value, is_null = getattr(rows, accessor)()
        assert is_null
        assert value == zero
        assert type(value) is type(zero)
        assert rows.last_error() is None

    @pytest.mark.parametrize("accessor, zero", [
        ("bytes", b""),
        ("string", ""),
        ("int", 0),
        ("int64", 0),
        ("float32", 0.0),
        ("bool", False),
    ])
    def test_plain_accessor_hides_null(self, accessor, zero):
        rows = make_rows(row(None))
        rows.advance()
        assert getattr(rows, accessor)() == zero

    def test_each_call_consumes_next_column(self):
        """Test that repeated accessor calls read consecutive columns."""
        rows = make_rows(row("1", "2", "3"))
        rows.advance()
        assert rows.nullable_int() == (1, False)
        assert rows.nullable_int() == (2, False)
        assert rows.nullable_int() == (3, False)

    def test_reading_past_last_column_latches_protocol_error(self):
        """Test that over-reading a row latches an error instead of raising."""
        rows = make_rows(row("1"))
        rows.advance()
        rows.int()
        assert rows.int() == 0
        assert isinstance(rows.last_error(), ProtocolError)

    def test_reading_before_advance_latches_protocol_error(self):
        rows = make_rows(row("1"))
        assert rows.nullable_bytes() == (b"", False)
        assert isinstance(rows.last_error(), ProtocolError)

    def test_offset_resets_on_advance(self):
        rows = make_rows(row("1", "x"), row("2", "y"))
        rows.advance()
        assert rows.int() == 1
        rows.advance()
        assert rows.int() == 2
        assert rows.string() == "y"

    def test_integer_widths(self):
        """Test that values outside the width's range are errors."""
        rows = make_rows(row("127", "128", "-32768", "2147483648", "-9223372036854775808"))
        rows.advance()
        assert rows.int8() == 127
        assert rows.int8() == 0
        assert isinstance(rows.last_error(), ConversionError)
        assert rows.int16() == -32768
        assert rows.int32() == 0
        assert rows.int64() == -9223372036854775808

    def test_float32_rounds_to_single_precision(self):
        rows = make_rows(row("0.1"))
        rows.advance()
        value = rows.float32()
        assert value != 0.1
        assert value == pytest.approx(0.1)

    def test_bool(self):
        rows = make_rows(row("1", "false", "T", "yes"))
        rows.advance()
        assert rows.bool() is True
        assert rows.bool() is False
        assert rows.bool() is True
        assert rows.bool() is False
        assert isinstance(rows.last_error(), ConversionError)

    def test_bytes_and_string(self):
        """Test that bytes and strings never latch an error."""
        rows = make_rows(row(b"\x00\xff", "héllo", b"\xff"))
        rows.advance()
        assert rows.bytes() == b"\x00\xff"
        assert rows.string() == "héllo"
        assert rows.string() == "\ufffd"
        assert rows.last_error() is None

    def test_empty_string_is_not_null(self):
        rows = make_rows(row(""))
        rows.advance()
        assert rows.nullable_string() == ("", False)


class TestLifecycle:
    """Test draining, release and context management."""

    def test_release_called_once_on_end(self):
        released = []
        rows = Rows(ListRowSource([row("1")]), on_release=released.append)
        for _ in rows:
            pass
        rows.advance()
        assert released == [rows]

    def test_release_called_on_failure(self):
        released = []
        rows = Rows(ListRowSource([], fail_at=0), on_release=released.append)
        assert not rows.advance()
        assert released == [rows]

    def test_rows_created_ended(self):
        """Test that rows over a finished source never read it."""
        released = []
        source = ListRowSource([row("1")])
        rows = Rows(source, on_release=released.append, ended=True)
        assert rows.stream_ended
        assert not rows.advance()
        rows.close()
        assert rows.last_error() is None
        assert source.calls == 0
        assert released == []

    def test_context_manager_drains(self):
        source = ListRowSource([row("1"), row("2")])
        with Rows(source) as rows:
            assert rows.advance()
        assert rows.stream_ended
        assert rows.last_error() is None

    def test_close_latches_transport_error(self):
        rows = make_rows(row("1"), fail_at=1)
        rows.close()
        assert rows.stream_ended
        assert isinstance(rows.last_error(), OperationalError)
