# sitequote/security.py
from functools import wraps

from flask import abort, current_app
from flask_login import current_user

from .models.user import Role


def roles_required(*roles):
    allowed = {Role(r) for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return current_app.login_manager.unauthorized()
            if current_user.role not in allowed:
                abort(403)
            return view(*args, **kwargs)
        return wrapped
    return decorator
