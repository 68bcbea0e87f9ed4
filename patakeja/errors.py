# patakeja/errors.py
from flask import current_app, jsonify, request

from .extensions import db


class APIError(Exception):
    """Raised from routes and services to return a JSON error body."""

    status_code = 400

    def __init__(self, message, error="bad_request", status_code=None):
        super().__init__(message)
        self.message = message
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.error, "message": self.message}


class NotFound(APIError):
    status_code = 404

    def __init__(self, message="Not Found"):
        super().__init__(message, error="not_found")


class Forbidden(APIError):
    status_code = 403

    def __init__(self, message="forbidden"):
        super().__init__(message, error="forbidden")


class ValidationError(APIError):
    def __init__(self, message):
        super().__init__(message, error="validation_error")


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def api_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        msg = getattr(e, "description", "Bad Request")
        return jsonify(error="bad_request", message=msg), 400

    @app.errorhandler(401)
    def unauthorized(e): return jsonify(error="unauthorized"), 401

    @app.errorhandler(403)
    def forbidden(e): return jsonify(error="forbidden"), 403

    @app.errorhandler(404)
    def not_found(e): return jsonify(error="not_found", path=request.path), 404

    @app.errorhandler(405)
    def method_not_allowed(e): return jsonify(error="method_not_allowed"), 405

    @app.errorhandler(413)
    def too_large(e): return jsonify(error="payload_too_large"), 413

    @app.errorhandler(422)
    def unprocessable(e): return jsonify(error="unprocessable"), 422

    @app.errorhandler(429)
    def too_many(e): return jsonify(error="rate_limit_exceeded"), 429

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        current_app.logger.exception("Unhandled exception: %s", e)
        return jsonify(error="server_error"), 500
