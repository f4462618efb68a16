"""
MySQL connection

This module defines the Connection class, which runs text-protocol
commands over an already authenticated packet transport.
"""
import logging

from .exceptions import InterfaceError, ProgrammingError, ProtocolError
from .protocol import (
    DEFAULT_CAPABILITY_FLAGS, ERR_PACKET, OK_PACKET, OKPacket, com_query_request,
    parse_err_packet, parse_ok_packet,
)
from .resultset import ResultSet, read_response
from .rows import Rows

logger = logging.getLogger(__name__)

# option name -> (default, accepted type)
DEFAULT_OPTIONS = {
    "encoding": ("utf-8", str),
    "capability_flags": (DEFAULT_CAPABILITY_FLAGS, int),
    "drain_on_reuse": (False, bool),
}


class Connection:
    """
    Connection objects run commands over one sequential packet stream.

    Only one result set can be read at a time: the rows of a query must be
    drained (advance() until False, or close()) before the next command.
    Issuing a command while rows are still unread raises ProgrammingError,
    or drains the old rows first when drain_on_reuse is enabled.
    """

    def __init__(self, transport, **kwargs):
        """
        Initialize a new connection object.

        Args:
            transport: PacketTransport over an authenticated session
            encoding: Encoding of SQL text and string columns
            capability_flags: Capabilities negotiated during the handshake
            drain_on_reuse: Discard unread rows instead of failing when a new
                command is issued

        Raises:
            InterfaceError: If an option is unknown or has the wrong type
        """
        options = {key: default for key, (default, _) in DEFAULT_OPTIONS.items()}
        for key, value in kwargs.items():
            if key not in DEFAULT_OPTIONS:
                raise InterfaceError(f"Unknown connection option: {key}")
            expected = DEFAULT_OPTIONS[key][1]
            # bool is an int subclass; only drain_on_reuse takes a bool
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise InterfaceError(f"Connection option {key} must be {expected.__name__}")
            options[key] = value

        self.transport = transport
        self.encoding = options["encoding"]
        self.capability_flags = options["capability_flags"]
        self.drain_on_reuse = options["drain_on_reuse"]
        self.options = options
        self._rows = None
        self._closed = False

    def query(self, sql):
        """
        Run a statement and return its rows.

        Args:
            sql (str): SQL statement

        Returns:
            Rows: Cursor over the result set; already ended for statements
            that return no rows

        Raises:
            InterfaceError: If the connection is closed
            ProgrammingError: If a previous result set is still unread
            Error: If sending the command or reading the header fails
        """
        self._ensure_ready()
        self._send_query(sql)

        response = read_response(self.transport, self.capability_flags, self.encoding)
        if isinstance(response, OKPacket):
            result_set = ResultSet(self.transport, [], self.capability_flags, finished=True)
            result_set.status = response
        else:
            result_set = response

        rows = Rows(result_set, result_set.columns, self.encoding,
                    on_release=self._release_rows, ended=result_set.finished)
        if not result_set.finished:
            self._rows = rows
        return rows

    def exec(self, sql):
        """
        Run a statement that returns no rows.

        Args:
            sql (str): SQL statement

        Returns:
            OKPacket: Affected rows, last insert id and status of the statement

        Raises:
            Error: The server error if the statement failed
            ProgrammingError: If the statement produced a result set; its
                rows are discarded
        """
        self._ensure_ready()
        self._send_query(sql)

        payload = self.transport.next_packet().payload
        if payload[0] == OK_PACKET:
            return parse_ok_packet(payload, self.capability_flags)
        if payload[0] == ERR_PACKET:
            raise parse_err_packet(payload, self.capability_flags)

        response = read_response(self.transport, self.capability_flags, self.encoding, first_packet=payload)
        if not isinstance(response, ResultSet):
            raise ProtocolError("unexpected response to exec")
        Rows(response).close()
        raise ProgrammingError("Statement returned a result set; use query() to read it")

    def _send_query(self, sql):
        logger.debug("Sending query: %s", sql)
        self.transport.write_command(com_query_request(sql.encode(self.encoding)))

    def _ensure_ready(self):
        if self._closed:
            raise InterfaceError("Connection is closed")

        rows = self._rows
        if rows is None or rows.stream_ended:
            return
        if not self.drain_on_reuse:
            raise ProgrammingError("Previous result set has unread rows; drain or close it first")
        logger.warning("Discarding unread rows of the previous result set")
        rows.close()

    def _release_rows(self, rows):
        if self._rows is rows:
            self._rows = None

    def close(self):
        """
        Close the connection now.
        """
        self._closed = True
        self._rows = None
        self.transport.close()

    # Context manager support
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def is_closed(self):
        """
        Check if the connection is closed.

        Returns:
            bool: True if connection is closed, False otherwise
        """
        return self._closed
