from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from flask_wtf.csrf import CSRFError
from ...extensions import db
from ...services.errors import LifecycleError
from . import errors_bp


def _json_error(kind: str, message: str, code: int, **extra):
    body = {"error": kind, "message": message}
    body.update(extra)
    return jsonify(body), code


# Business-rule rejections from the service layer
@errors_bp.app_errorhandler(LifecycleError)
def err_lifecycle(e: LifecycleError):
    current_app.logger.info(f"{e.kind} on {request.method} {request.path}: {e.message}")
    return jsonify(e.to_dict()), e.status_code

# 401: Unauthorized
@errors_bp.app_errorhandler(401)
def err_401(e):
    return _json_error("unauthenticated", "Please sign in to continue.", 401)

# 403: Forbidden
@errors_bp.app_errorhandler(403)
def err_403(e):
    return _json_error("forbidden", "You don't have access to this resource.", 403)

# 404: Not Found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return _json_error("not_found", "Nothing here.", 404, path=request.path)

# 405: Method Not Allowed
@errors_bp.app_errorhandler(405)
def err_405(e):
    return _json_error("method_not_allowed", e.description, 405)

# 413: Payload Too Large (useful for uploads)
@errors_bp.app_errorhandler(413)
def err_413(e):
    return _json_error("payload_too_large", "Upload is too large.", 413)

# CSRF: typically treated as 400 Bad Request
@errors_bp.app_errorhandler(CSRFError)
def err_csrf(e):
    # e.description is human-readable
    return _json_error("csrf", e.description, 400)

# Fallback for uncaught HTTPException
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return _json_error(e.name.lower().replace(" ", "_"), e.description, e.code)

# Last-resort: any other Exception (storage faults included)
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    # if a DB action caused this, rollback so app is not stuck in bad transaction
    db.session.rollback()
    current_app.logger.exception(f"Unhandled error on {request.method} {request.path}")
    # generic 500, no internals
    return _json_error("server_error", "Something went wrong. Please try again.", 500)
