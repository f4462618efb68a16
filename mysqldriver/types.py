"""
Column value conversions and type objects

MySQL's text protocol sends every non-NULL column as text, whatever its
declared type. The functions here turn that text into Python values with
the parse rules of the requested width, raising ConversionError instead of
truncating or guessing.
"""
import math
import re
import struct

from mysql.connector.constants import FieldType

from .exceptions import ConversionError

_INTEGER = re.compile(rb"[+-]?[0-9]+")
_FLOAT = re.compile(
    rb"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
# Hexadecimal mantissa with a mandatory binary exponent, e.g. 0x1.8p1
_HEX_FLOAT = re.compile(rb"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+")

_TRUE = frozenset([b"1", b"t", b"T", b"TRUE", b"true", b"True"])
_FALSE = frozenset([b"0", b"f", b"F", b"FALSE", b"false", b"False"])


def parse_int(data, bits=64):
    """
    Parse the decimal text of a column as a signed integer of the given width.

    Args:
        data: Raw column bytes
        bits: Width of the target integer (8, 16, 32 or 64)

    Returns:
        int: The parsed value

    Raises:
        ConversionError: If the text is not a decimal integer or is out of range
    """
    type_name = f"int{bits}"
    if not _INTEGER.fullmatch(data):
        raise ConversionError(data, type_name, "invalid syntax")

    value = int(data.decode("ascii"))
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ConversionError(data, type_name, "value out of range")
    return value


def parse_float(data, bits=64):
    """
    Parse the text of a column as a floating point number.

    Decimal and hexadecimal (0x1.8p1) notation are accepted. float32 values
    are rounded to single precision; finite text that does not fit the
    requested width is an error.
    """
    type_name = f"float{bits}"
    if _HEX_FLOAT.fullmatch(data):
        try:
            value = float.fromhex(data.decode("ascii"))
        except OverflowError as e:
            raise ConversionError(data, type_name, "value out of range") from e
    elif _FLOAT.fullmatch(data):
        value = float(data.decode("ascii"))
        if math.isinf(value) and b"inf" not in data.lower():
            raise ConversionError(data, type_name, "value out of range")
    else:
        raise ConversionError(data, type_name, "invalid syntax")

    if bits == 32 and math.isfinite(value):
        try:
            value = struct.unpack("<f", struct.pack("<f", value))[0]
        except OverflowError as e:
            raise ConversionError(data, type_name, "value out of range") from e
    return value


def parse_bool(data):
    if data in _TRUE:
        return True
    if data in _FALSE:
        return False
    raise ConversionError(data, "bool", "invalid syntax")


def decode_string(data, encoding):
    """Decode column bytes; invalid sequences are replaced rather than raised."""
    return data.decode(encoding, errors="replace")


# Type Objects for comparison
class DBAPITypeObject:
    """
    Type object that compares equal to any of the MySQL field types it groups.
    """
    def __init__(self, *values):
        self.values = frozenset(values)

    def __eq__(self, other):
        return other in self.values

    def __ne__(self, other):
        return other not in self.values

    def __hash__(self):
        return hash(self.values)


# Type objects for describing result columns by their MySQL field type
STRING = DBAPITypeObject(FieldType.VARCHAR, FieldType.VAR_STRING, FieldType.STRING,
                         FieldType.ENUM, FieldType.SET, FieldType.JSON)
BINARY = DBAPITypeObject(FieldType.TINY_BLOB, FieldType.MEDIUM_BLOB,
                         FieldType.LONG_BLOB, FieldType.BLOB, FieldType.GEOMETRY,
                         FieldType.BIT)
NUMBER = DBAPITypeObject(FieldType.DECIMAL, FieldType.NEWDECIMAL, FieldType.TINY,
                         FieldType.SHORT, FieldType.LONG, FieldType.FLOAT,
                         FieldType.DOUBLE, FieldType.LONGLONG, FieldType.INT24,
                         FieldType.YEAR)
DATETIME = DBAPITypeObject(FieldType.DATETIME, FieldType.TIMESTAMP, FieldType.DATE,
                           FieldType.TIME, FieldType.NEWDATE)
ROWID = DBAPITypeObject()
