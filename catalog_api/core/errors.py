from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """
    Base for every error the API turns into a structured JSON body.

    kind is stable and machine readable; message is safe to show to callers.
    """

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str, *, kind: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        if status_code is not None:
            self.status_code = status_code


class TranslationError(CatalogError):
    INVALID_PAGINATION = "invalid_pagination"
    INVALID_OPERATOR = "invalid_operator"

    status_code = 400

    def __init__(self, kind: str, message: str):
        super().__init__(message, kind=kind)


class AuthError(CatalogError):
    NO_CREDENTIAL = "no_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    FORBIDDEN = "forbidden"

    def __init__(self, kind: str, message: str):
        status = 403 if kind == self.FORBIDDEN else 401
        super().__init__(message, kind=kind, status_code=status)


class QueryExecutionError(CatalogError):
    kind = "query_execution_error"

    def __init__(self, message: str, *, client_error: bool = False):
        super().__init__(message, status_code=400 if client_error else 500)
        self.client_error = client_error


class ConfigurationError(CatalogError):
    """Wiring or settings defect. Not recoverable per request."""

    kind = "configuration_error"
    status_code = 500


class NotFoundError(CatalogError):
    kind = "not_found"
    status_code = 404
