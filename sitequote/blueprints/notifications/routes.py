from flask import jsonify
from flask_login import login_required, current_user

from . import notifications_bp
from ..utils import request_data
from ...services import notification_service
from ...services.errors import ValidationFailure


@notifications_bp.get('')
@login_required
def notifications_list():
    rows = notification_service.latest_for_user(current_user)
    return jsonify({
        "notifications": [n.to_dict() for n in rows],
        "has_unread": notification_service.has_unread(current_user),
    })


@notifications_bp.post('/read')
@login_required
def notifications_mark_read():
    """Body ``{"ids": [...]}`` marks those; no ids marks every unread one."""
    ids = request_data().get("ids")
    if ids is not None:
        if not isinstance(ids, list):
            raise ValidationFailure("ids", "ids must be a list of notification ids.")
        try:
            ids = [int(i) for i in ids]
        except (TypeError, ValueError):
            raise ValidationFailure("ids", "ids must be a list of notification ids.")
    count = notification_service.mark_read(current_user, ids)
    return jsonify({"marked": count})
