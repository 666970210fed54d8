from flask import Blueprint

homeowner_bp = Blueprint('homeowner', __name__)

from . import routes  # noqa: E402,F401
