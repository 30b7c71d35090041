from flask import jsonify
from werkzeug.exceptions import HTTPException
from tenant_cms.domain.invariants.exceptions import (
    InvariantViolation,
    ValidationError,
    BusinessRuleViolation,
    NotFoundError,
)
from tenant_cms.domain.lifecycle.page import IllegalTransition


def register_error_handlers(app):
    @app.errorhandler(InvariantViolation)
    def handle_invariant_violation(error):
        response = jsonify({
            "error": "InvariantViolation",
            "message": str(error)
        })
        response.status_code = 400
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        response = jsonify({
            "error": "ValidationError",
            "message": str(error),
            "errors": error.errors,
        })
        response.status_code = 422
        return response

    @app.errorhandler(BusinessRuleViolation)
    def handle_business_rule(error):
        response = jsonify({
            "error": "Conflict",
            "message": str(error)
        })
        response.status_code = 409
        return response

    @app.errorhandler(IllegalTransition)
    def handle_illegal_transition(error):
        response = jsonify({
            "error": "Conflict",
            "message": str(error)
        })
        response.status_code = 409
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        # abort() and werkzeug errors (bad cursor, bad body) answer in JSON too
        response = jsonify({
            "error": error.name,
            "message": error.description
        })
        response.status_code = error.code
        return response

    @app.errorhandler(NotFoundError)
    def handle_not_found(error):
        response = jsonify({
            "error": "NotFound",
            "message": str(error.args[0]) if error.args else "Not found"
        })
        response.status_code = 404
        return response
