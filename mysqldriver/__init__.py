"""
MySQL text protocol result-set driver

This module provides a forward-only, lazily decoding cursor over MySQL
text-protocol result sets, with typed NULL-aware accessors and
first-error-wins error latching.
"""
import logging

from .connection import Connection
from .rows import Rows
from .protocol import OKPacket, ColumnDefinition
from .transport import PacketTransport
from .exceptions import (
    Warning, Error, InterfaceError, DatabaseError, DataError, OperationalError,
    IntegrityError, InternalError, ProgrammingError, NotSupportedError,
    ProtocolError, ConversionError
)
from .types import STRING, BINARY, NUMBER, DATETIME, ROWID

# Module Interface Constants
apilevel = "2.0"
threadsafety = 1  # Threads may share the module, but not connections
paramstyle = "format"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def connect(sock, **kwargs):
    """
    Create a connection over an authenticated socket.

    Args:
        sock: Connected socket that has completed the MySQL handshake
        encoding: Encoding of SQL text and string columns
        capability_flags: Capabilities negotiated during the handshake
        drain_on_reuse: Discard unread rows instead of failing on a new command

    Returns:
        Connection: A Connection object
    """
    return Connection(PacketTransport(sock), **kwargs)


# Export all public symbols
__all__ = [
    # Module constants
    'apilevel', 'threadsafety', 'paramstyle',

    # Connection function
    'connect',

    # Classes
    'Connection', 'Rows', 'PacketTransport', 'OKPacket', 'ColumnDefinition',

    # Exceptions
    'Warning', 'Error', 'InterfaceError', 'DatabaseError', 'DataError',
    'OperationalError', 'IntegrityError', 'InternalError', 'ProgrammingError',
    'NotSupportedError', 'ProtocolError', 'ConversionError',

    # Type objects
    'STRING', 'BINARY', 'NUMBER', 'DATETIME', 'ROWID'
]
