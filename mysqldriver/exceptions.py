"""
MySQL driver exception classes

This module defines the PEP 249 exception hierarchy together with the
driver-specific errors raised while framing packets, decoding row values
and converting column text to typed values.
"""


class Warning(Exception):
    """
    Exception raised for important warnings like data truncations while inserting, etc.
    """
    pass


class Error(Exception):
    """
    Exception that is the base class of all other error exceptions.

    Errors built from a server ERR packet carry the server error code in
    ``errno`` and the five character SQLSTATE in ``sqlstate``.
    """

    def __init__(self, msg=None, errno=None, sqlstate=None):
        self.msg = msg
        self.errno = errno
        self.sqlstate = sqlstate
        super().__init__(msg)

    def __str__(self):
        if self.errno is None:
            return str(self.msg)
        if self.sqlstate:
            return f"{self.errno} ({self.sqlstate}): {self.msg}"
        return f"{self.errno}: {self.msg}"


class InterfaceError(Error):
    """
    Exception raised for errors that are related to the database interface
    rather than the database itself.
    """
    pass


class DatabaseError(Error):
    """
    Exception raised for errors that are related to the database.
    """
    pass


class DataError(DatabaseError):
    """
    Exception raised for errors that are due to problems with the processed data
    like division by zero, numeric value out of range, etc.
    """
    pass


class OperationalError(DatabaseError):
    """
    Exception raised for errors that are related to the database's operation
    and not necessarily under the control of the programmer.
    """
    pass


class IntegrityError(DatabaseError):
    """
    Exception raised when the relational integrity of the database is affected,
    e.g. a foreign key check fails.
    """
    pass


class InternalError(DatabaseError):
    """
    Exception raised when the database encounters an internal error.
    """
    pass


class ProgrammingError(DatabaseError):
    """
    Exception raised for programming errors, e.g. table not found or already exists,
    syntax error in the SQL statement, wrong number of parameters specified, etc.
    """
    pass


class NotSupportedError(DatabaseError):
    """
    Exception raised in case a method or database API was used which is not
    supported by the database.
    """
    pass


class ProtocolError(InterfaceError):
    """
    Exception raised when a packet is malformed, arrives out of sequence, or a
    row value is read past the end of its packet.
    """
    pass


class ConversionError(DataError):
    """
    Exception raised when the text of a column cannot be parsed as the
    requested type.
    """

    def __init__(self, value, type_name, reason=None):
        self.value = value
        self.type_name = type_name
        msg = f"cannot convert {value!r} to {type_name}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


# SQLSTATE class -> exception class
_SQLSTATE_CLASSES = {
    "02": DataError,
    "07": DatabaseError,
    "08": OperationalError,
    "0A": NotSupportedError,
    "21": DataError,
    "22": DataError,
    "23": IntegrityError,
    "24": ProgrammingError,
    "25": ProgrammingError,
    "26": ProgrammingError,
    "27": ProgrammingError,
    "28": ProgrammingError,
    "2A": ProgrammingError,
    "2B": DatabaseError,
    "2C": ProgrammingError,
    "2D": DatabaseError,
    "2E": DatabaseError,
    "33": DatabaseError,
    "34": ProgrammingError,
    "35": ProgrammingError,
    "37": ProgrammingError,
    "3C": ProgrammingError,
    "3D": ProgrammingError,
    "3F": ProgrammingError,
    "40": InternalError,
    "42": ProgrammingError,
    "44": InternalError,
    "HZ": OperationalError,
    "XA": IntegrityError,
}


def server_error(errno, sqlstate, msg):
    """
    Build the exception for a server ERR packet.

    Args:
        errno: Server error code
        sqlstate: Five character SQLSTATE, or None for pre-4.1 servers
        msg: Human readable message sent by the server

    Returns:
        Error: Instance of the PEP 249 class matching the SQLSTATE class
    """
    exc_class = DatabaseError
    if sqlstate:
        exc_class = _SQLSTATE_CLASSES.get(sqlstate[:2], DatabaseError)
    return exc_class(msg, errno=errno, sqlstate=sqlstate)
