"""
Arrow export of result sets

Drains a Rows cursor into a pyarrow.Table, reading each column with the
accessor that matches the Arrow type of its schema field.
"""
import pyarrow

from .exceptions import NotSupportedError

_ACCESSORS = [
    (pyarrow.types.is_int8, "nullable_int8"),
    (pyarrow.types.is_int16, "nullable_int16"),
    (pyarrow.types.is_int32, "nullable_int32"),
    (pyarrow.types.is_int64, "nullable_int64"),
    (pyarrow.types.is_float32, "nullable_float32"),
    (pyarrow.types.is_float64, "nullable_float64"),
    (pyarrow.types.is_boolean, "nullable_bool"),
    (pyarrow.types.is_string, "nullable_string"),
    (pyarrow.types.is_large_string, "nullable_string"),
    (pyarrow.types.is_binary, "nullable_bytes"),
    (pyarrow.types.is_large_binary, "nullable_bytes"),
]


def _accessor_name(field):
    for predicate, name in _ACCESSORS:
        if predicate(field.type):
            return name
    raise NotSupportedError(f"Arrow type {field.type} of column {field.name} is not supported")


def read_arrow_table(rows, schema):
    """
    Read all remaining rows into a table.

    Args:
        rows (Rows): Cursor positioned before its next unread row
        schema (pyarrow.Schema): One field per result column, in order

    Returns:
        pyarrow.Table: The rows, with NULL columns as nulls

    Raises:
        NotSupportedError: If a field type has no matching accessor; no rows
            are read in that case
        Error: The error latched on the rows while draining them
    """
    accessors = [getattr(rows, _accessor_name(field)) for field in schema]
    columns = [[] for _ in accessors]

    while rows.advance():
        for accessor, values in zip(accessors, columns):
            value, is_null = accessor()
            values.append(None if is_null else value)

    error = rows.last_error()
    if error is not None:
        raise error

    arrays = [pyarrow.array(values, type=field.type) for values, field in zip(columns, schema)]
    return pyarrow.Table.from_arrays(arrays, schema=schema)
