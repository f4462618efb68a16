"""
MySQL text protocol packets

Encoding of COM_QUERY requests and decoding of the response packets the
result-set layer needs: OK, ERR, EOF, column definitions and the
length-encoded column values of a text-protocol row.
"""
import struct
from dataclasses import dataclass

from mysql.connector.constants import ClientFlag, ServerCmd
from mysql.connector.utils import int1store, read_int, read_lc_int, read_lc_string

from .exceptions import ProtocolError, server_error

OK_PACKET = 0x00
NULL_COLUMN = 0xFB
LOCAL_INFILE_PACKET = 0xFB
EOF_PACKET = 0xFE
ERR_PACKET = 0xFF

# Not exposed by every mysql-connector release.
CLIENT_DEPRECATE_EOF = 1 << 24

DEFAULT_CAPABILITY_FLAGS = ClientFlag.PROTOCOL_41 | ClientFlag.TRANSACTIONS

_DECODE_ERRORS = (IndexError, ValueError, struct.error)


@dataclass
class OKPacket:
    affected_rows: int = 0
    last_insert_id: int = 0
    status_flags: int = 0
    warnings: int = 0
    info: str = ""


@dataclass
class EOFPacket:
    warnings: int = 0
    status_flags: int = 0


@dataclass
class ColumnDefinition:
    catalog: str
    schema: str
    table: str
    org_table: str
    name: str
    org_name: str
    charset: int
    column_length: int
    type_code: int
    flags: int
    decimals: int


def com_query_request(sql):
    """Encode a COM_QUERY command payload for the given SQL bytes."""
    return bytes(int1store(ServerCmd.QUERY)) + bytes(sql)


def read_row_value(packet, offset):
    """
    Read one length-encoded column value of a text-protocol row.

    Args:
        packet: Row packet payload
        offset: Offset of the column's length marker

    Returns:
        tuple: (value bytes, offset of the next column, is_null)

    Raises:
        ProtocolError: If the value does not fit in the packet
    """
    size = len(packet)
    if offset >= size:
        raise ProtocolError(f"row value offset {offset} is past the end of a {size} byte packet")

    try:
        rest, length = read_lc_int(bytes(packet[offset:offset + 9]))
    except _DECODE_ERRORS as e:
        raise ProtocolError(f"malformed length at row offset {offset}: {e}") from e

    start = offset + min(9, size - offset) - len(rest)
    if length is None:
        return b"", start, True

    end = start + length
    if end > size:
        raise ProtocolError(f"row value of {length} bytes at offset {start} overruns a {size} byte packet")
    return bytes(packet[start:end]), end, False


def _read_fixed(buf, size, field):
    # read_int pads a short buffer with zeros instead of failing
    if len(buf) < size:
        raise ValueError(f"truncated {field}: {len(buf)} of {size} bytes")
    return read_int(buf, size)


def is_eof_packet(payload):
    return len(payload) < 9 and payload[0] == EOF_PACKET


def is_terminating_ok_packet(payload):
    # With CLIENT_DEPRECATE_EOF the stream ends with an OK packet tagged 0xFE
    return payload[0] == EOF_PACKET and len(payload) < 0xFFFFFF


def parse_ok_packet(payload, capability_flags):
    """
    Decode an OK packet (tag 0x00, or 0xFE when it terminates a result set).

    Raises:
        ProtocolError: If the payload is not an OK packet
    """
    if not payload or payload[0] not in (OK_PACKET, EOF_PACKET):
        raise ProtocolError("expected an OK packet")

    try:
        buf, affected_rows = read_lc_int(bytes(payload[1:]))
        buf, last_insert_id = read_lc_int(buf)
        ok = OKPacket(affected_rows=affected_rows, last_insert_id=last_insert_id)
        if capability_flags & ClientFlag.PROTOCOL_41:
            buf, ok.status_flags = _read_fixed(buf, 2, "status flags")
            buf, ok.warnings = _read_fixed(buf, 2, "warnings")
        elif capability_flags & ClientFlag.TRANSACTIONS:
            buf, ok.status_flags = _read_fixed(buf, 2, "status flags")
    except _DECODE_ERRORS as e:
        raise ProtocolError(f"malformed OK packet: {e}") from e

    ok.info = bytes(buf).decode("utf-8", errors="replace")
    return ok


def parse_eof_packet(payload, capability_flags):
    if not is_eof_packet(payload):
        raise ProtocolError("expected an EOF packet")

    eof = EOFPacket()
    if capability_flags & ClientFlag.PROTOCOL_41 and len(payload) >= 5:
        buf, eof.warnings = read_int(bytes(payload[1:]), 2)
        _, eof.status_flags = read_int(buf, 2)
    return eof


def parse_err_packet(payload, capability_flags):
    """
    Decode an ERR packet into the matching driver exception.

    Returns:
        Error: The exception to raise; it is returned rather than raised so
        callers decide where the failure surfaces.

    Raises:
        ProtocolError: If the payload is not an ERR packet
    """
    if len(payload) < 3 or payload[0] != ERR_PACKET:
        raise ProtocolError("expected an ERR packet")

    buf, errno = read_int(bytes(payload[1:]), 2)
    sqlstate = None
    if capability_flags & ClientFlag.PROTOCOL_41 and buf[:1] == b"#":
        sqlstate = buf[1:6].decode("ascii", errors="replace")
        buf = buf[6:]
    return server_error(errno, sqlstate, buf.decode("utf-8", errors="replace"))


def parse_column_count(payload):
    try:
        _, count = read_lc_int(bytes(payload))
    except _DECODE_ERRORS as e:
        raise ProtocolError(f"malformed column count: {e}") from e
    if not count:
        raise ProtocolError("result set header declares no columns")
    return count


def parse_column_definition(payload, encoding="utf-8"):
    """Decode a protocol 4.1 column definition packet."""
    try:
        buf = bytes(payload)
        names = []
        for _ in range(6):
            buf, value = read_lc_string(buf)
            names.append(bytes(value or b"").decode(encoding, errors="replace"))
        # length of the fixed-size fields, always 0x0c
        buf, _ = read_lc_int(buf)
        buf, charset = _read_fixed(buf, 2, "charset")
        buf, column_length = _read_fixed(buf, 4, "column length")
        buf, type_code = _read_fixed(buf, 1, "type")
        buf, flags = _read_fixed(buf, 2, "flags")
        buf, decimals = _read_fixed(buf, 1, "decimals")
    except _DECODE_ERRORS as e:
        raise ProtocolError(f"malformed column definition: {e}") from e

    catalog, schema, table, org_table, name, org_name = names
    return ColumnDefinition(
        catalog=catalog,
        schema=schema,
        table=table,
        org_table=org_table,
        name=name,
        org_name=org_name,
        charset=charset,
        column_length=column_length,
        type_code=type_code,
        flags=flags,
        decimals=decimals,
    )
