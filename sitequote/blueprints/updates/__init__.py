from flask import Blueprint

updates_bp = Blueprint('updates', __name__)

from . import routes  # noqa: E402,F401
