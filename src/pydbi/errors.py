"""Exception hierarchy raised by the database facade.

Driver exceptions never leak to callers: each backend translates them into
one of these at its boundary and chains the original as ``__cause__``.
"""


class DBIError(Exception):
    """Base class for all pydbi errors."""


class ConnectionError(DBIError):  # noqa: A001
    """The backend could not be opened, or the handle is already closed."""


class StatementError(DBIError):
    """The backend rejected a statement (syntax, constraint, ...)."""


class BindError(DBIError):
    """Bind parameters do not match the statement's placeholders."""


class CursorError(DBIError):
    """A result set was read out of sequence."""
