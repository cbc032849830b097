from core.imports import jsonify, SQLAlchemyError
from core.extensions import db, jwt


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status_code >= 500:
            app.logger.error("Unhandled API error: %s", err.message)
        return jsonify({"error": err.message, "statusCode": err.status_code}), err.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err):
        db.session.rollback()
        app.logger.exception("Database error: %s", err)
        return jsonify({"error": "An internal database error occurred", "statusCode": 500}), 500

    @app.errorhandler(404)
    def handle_not_found(err):
        return jsonify({"error": "Resource not found", "statusCode": 404}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(err):
        return jsonify({"error": "Method not allowed", "statusCode": 405}), 405

    @app.errorhandler(413)
    def handle_too_large(err):
        return jsonify({"error": "File too large", "statusCode": 413}), 413


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify({"error": "Token not found", "detail": reason, "statusCode": 401}), 401


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return jsonify({"error": "Invalid token", "detail": reason, "statusCode": 401}), 401


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Token has expired", "statusCode": 401}), 401
