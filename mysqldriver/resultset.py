"""
Query response reading

Reads the response to a COM_QUERY: either an OK packet for statements that
produce no rows, or a result set header (column count, column definitions,
EOF) followed by a stream of text-protocol row packets.
"""
import logging

from .exceptions import NotSupportedError, ProtocolError
from .protocol import (
    CLIENT_DEPRECATE_EOF, ERR_PACKET, LOCAL_INFILE_PACKET, OK_PACKET,
    is_eof_packet, is_terminating_ok_packet, parse_column_count,
    parse_column_definition, parse_eof_packet, parse_err_packet, parse_ok_packet,
)

logger = logging.getLogger(__name__)


class ResultSet:
    """
    Row source for one result set.

    next_row() returns the payload of the next row packet, None once the
    terminating packet has been read, or raises the error that ended the
    stream. After the end it keeps returning None without reading.
    """

    def __init__(self, transport, columns, capability_flags, finished=False):
        self.transport = transport
        self.columns = columns
        self.capability_flags = capability_flags
        self.finished = finished
        self.status = None

    def next_row(self):
        if self.finished:
            return None

        try:
            payload = self.transport.next_packet().payload
        except Exception:
            self.finished = True
            raise

        if payload[0] == ERR_PACKET:
            self.finished = True
            raise parse_err_packet(payload, self.capability_flags)

        if self.capability_flags & CLIENT_DEPRECATE_EOF:
            if is_terminating_ok_packet(payload):
                self.finished = True
                self.status = parse_ok_packet(payload, self.capability_flags)
                return None
        elif is_eof_packet(payload):
            self.finished = True
            self.status = parse_eof_packet(payload, self.capability_flags)
            return None

        return payload


def read_response(transport, capability_flags, encoding="utf-8", first_packet=None):
    """
    Read the response header of a COM_QUERY.

    Args:
        transport: PacketTransport the command was written to
        capability_flags: Capabilities negotiated with the server
        encoding: Encoding of column names
        first_packet: Payload of the first response packet if it was
            already read by the caller

    Returns:
        OKPacket | ResultSet: OK for statements without rows, otherwise the
        row source positioned at the first row

    Raises:
        Error: The server error for an ERR packet, or a transport error
        NotSupportedError: If the server requests a LOCAL INFILE upload;
            an empty upload is sent first so the connection stays usable
    """
    payload = first_packet if first_packet is not None else transport.next_packet().payload
    tag = payload[0]
    if tag == OK_PACKET:
        return parse_ok_packet(payload, capability_flags)
    if tag == ERR_PACKET:
        raise parse_err_packet(payload, capability_flags)
    if tag == LOCAL_INFILE_PACKET:
        _refuse_local_infile(transport, payload, capability_flags)

    count = parse_column_count(payload)
    columns = [
        parse_column_definition(transport.next_packet().payload, encoding)
        for _ in range(count)
    ]
    if not capability_flags & CLIENT_DEPRECATE_EOF:
        eof = transport.next_packet().payload
        if not is_eof_packet(eof):
            raise ProtocolError("expected EOF packet after column definitions")

    logger.debug("Result set with %d columns: %s", count, [c.name for c in columns])
    return ResultSet(transport, columns, capability_flags)


def _refuse_local_infile(transport, payload, capability_flags):
    # An empty packet ends the file upload; the server answers with OK or ERR
    filename = bytes(payload[1:]).decode("utf-8", errors="replace")
    logger.warning("Refusing LOCAL INFILE request for %s", filename)
    transport.write_packet(b"")
    reply = transport.next_packet().payload
    if reply[0] == ERR_PACKET:
        raise NotSupportedError("LOCAL INFILE is not supported") from parse_err_packet(reply, capability_flags)
    if reply[0] != OK_PACKET:
        raise ProtocolError("expected OK or ERR packet after LOCAL INFILE data")
    raise NotSupportedError("LOCAL INFILE is not supported")
