# app/datatables/exceptions.py
"""Exceptions raised while planning and executing a datatable request."""

from typing import Optional


class DatatableError(Exception):
    """Base class for all datatable errors."""

    status_code: int = 500

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class UnknownAssociation(DatatableError):
    """A dotted path segment does not name an association of the current entity."""

    status_code = 404

    def __init__(self, path: str, association: str):
        super().__init__(f"Association '{association}' not found ({path})", path=path)
        self.association = association


class UnknownField(DatatableError):
    """The final segment of a column path does not name a field."""

    status_code = 404

    def __init__(self, path: str, association: str, field_name: str):
        super().__init__(
            f"Field '{field_name}' on association '{association}' not found ({path})",
            path=path,
        )
        self.association = association
        self.field_name = field_name


class UnknownEntity(DatatableError):
    """An entity name or class is not known to the metadata layer."""

    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"Entity '{entity}' is not registered")
        self.entity = entity


class UnsupportedProtocolVersion(DatatableError):
    """The request carries neither a `draw` nor an `sEcho` parameter."""

    status_code = 400

    def __init__(self):
        super().__init__("DataTables protocol version not implemented")


class InvalidRequest(DatatableError):
    """The request parameters could not be normalised."""

    status_code = 400


class EmptyProjection(DatatableError):
    """No column of the request resolved to a field."""

    def __init__(self, entity: str):
        super().__init__(f"No selectable columns were requested for '{entity}'")
        self.entity = entity


class ExecutionFailed(DatatableError):
    """The page query failed in the database engine."""


class CountQueryFailed(ExecutionFailed):
    """One of the count queries failed in the database engine."""


class CallbackAliasUnavailable(DatatableError):
    """A where callback applied to the unfiltered total reads a join alias."""

    def __init__(self, alias: str):
        super().__init__(
            f"Where callback references alias '{alias}', which the unfiltered total does not join; "
            "register it with apply_to_total=False"
        )
        self.alias = alias
