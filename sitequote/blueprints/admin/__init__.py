from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

# Import route modules to register their endpoints
from . import dashboard   # noqa: E402,F401
from . import users       # noqa: E402,F401
