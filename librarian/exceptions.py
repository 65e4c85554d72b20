"""
Custom exception classes for the library lending and reporting engine.

These exceptions give callers precise error kinds to catch (the Flask
controllers turn them into JSON error responses) instead of generic
500 errors.
"""


class LibraryError(Exception):
    """Base class for every error raised by the library engine."""

    kind = "library_error"

    def __init__(self, message: str = "Error: library operation failed") -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(LibraryError, ValueError):
    """Raised when a required argument is missing or has an invalid value."""

    kind = "validation_error"

    def __init__(self, message: str = "Error: invalid input") -> None:
        super().__init__(message)


class ConfigurationError(LibraryError):
    """Raised when no fine policy exists for the given material type."""

    kind = "configuration_error"

    def __init__(self, message: str = "Error: unknown material type") -> None:
        super().__init__(message)


class ReportExportError(LibraryError):
    """Raised when the reports directory or the report file cannot be written."""

    kind = "report_export_error"

    def __init__(self, path, message: str = "Error: failed to export report") -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class NotFoundError(LibraryError):
    """Raised when a user, item or loan ID cannot be found in the store."""

    kind = "not_found"

    def __init__(self, message: str = "Error: record not found") -> None:
        super().__init__(message)


class LoanError(LibraryError):
    """Raised when a borrow or return request breaks a lending rule."""

    kind = "loan_error"

    def __init__(self, message: str = "Error: loan request rejected") -> None:
        super().__init__(message)
