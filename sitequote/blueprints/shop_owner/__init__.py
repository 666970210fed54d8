from flask import Blueprint

shop_owner_bp = Blueprint('shop_owner', __name__)

from . import routes  # noqa: E402,F401
