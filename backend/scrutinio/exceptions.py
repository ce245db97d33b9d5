"""Error taxonomy shared by the ledger, the bet engine and the HTTP surface."""


class ScrutinioError(Exception):
    """Base exception for operation failures."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(ScrutinioError):
    """Missing or invalid request fields."""

    status_code = 400


class AuthError(ScrutinioError):
    """Credentials rejected."""

    status_code = 401


class ForbiddenError(AuthError):
    """Authenticated but not allowed."""

    status_code = 403


class NotFoundError(ScrutinioError):
    """Row or table absent."""

    status_code = 404


class ConflictError(ScrutinioError):
    """Operation clashes with current table state."""

    status_code = 409


class StorageError(ScrutinioError):
    """Object storage or codec failure."""

    status_code = 500
