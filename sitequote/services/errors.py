# sitequote/services/errors.py
"""
Business-rule rejections raised by the service layer.

Each carries a readable ``message`` (and, for validation failures, the
``field`` that failed) so the HTTP layer can render an actionable response.
Storage faults are not wrapped here; they propagate unchanged.
"""


class LifecycleError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None, **detail):
        super().__init__(message)
        self.message = message
        self.field = field
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.field:
            body["field"] = self.field
        if self.detail:
            body.update(self.detail)
        return body


class Unauthorized(LifecycleError):
    """Caller lacks the role or ownership the operation needs."""
    kind = "unauthorized"
    status_code = 403


class NotFound(LifecycleError):
    kind = "not_found"
    status_code = 404


class InvalidState(LifecycleError):
    """Operation not permitted given the record's current status."""
    kind = "invalid_state"
    status_code = 409


class Duplicate(LifecycleError):
    kind = "duplicate"
    status_code = 409


class ValidationFailure(LifecycleError):
    kind = "validation_failure"
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message, field=field)
