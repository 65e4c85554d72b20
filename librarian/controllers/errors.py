from flask import current_app, jsonify

from ..exceptions import (
    ConfigurationError,
    LibraryError,
    LoanError,
    NotFoundError,
    ReportExportError,
    ValidationError,
)

STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    LoanError: 409,
    ConfigurationError: 500,
    ReportExportError: 500,
}


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def handle_library_error(err):
        status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(err, cls)), 500)
        if status >= 500:
            current_app.logger.error("%s: %s", err.kind, err.message, exc_info=err)
        return jsonify({"error": err.kind, "message": err.message}), status
