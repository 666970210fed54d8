# sitequote/blueprints/updates/routes.py
from flask import jsonify
from flask_babel import gettext as _
from flask_login import login_required, current_user

from . import updates_bp
from ..utils import request_data, uploaded_files
from ...services import updates
from ...services.errors import LifecycleError
from ...services.storage_service import save_photo, delete_upload


def _upload_image():
    files = uploaded_files("image")
    if not files:
        return None
    return save_photo(files[0], subdir=f"updates/{current_user.id}")


@updates_bp.get('')
@login_required
def feed():
    return jsonify({"updates": [u.to_dict() for u in updates.list_updates()]})


@updates_bp.get('/<int:update_id>')
@login_required
def update_view(update_id):
    return jsonify(updates.get_update(update_id).to_dict())


@updates_bp.post('')
@login_required
def update_new():
    data = request_data()
    image_url = _upload_image()
    try:
        post = updates.create_update(current_user, data, image_url=image_url)
    except LifecycleError:
        if image_url:
            delete_upload(image_url)
        raise
    return jsonify({"message": _("Update posted."), "update": post.to_dict()}), 201


@updates_bp.put('/<int:update_id>')
@login_required
def update_edit(update_id):
    data = request_data()
    # check access before touching storage
    post = updates.get_update(update_id)
    updates.ensure_can_modify(current_user, post)
    image_url = _upload_image()
    try:
        post = updates.edit_update(current_user, update_id, data, image_url=image_url)
    except LifecycleError:
        if image_url:
            delete_upload(image_url)
        raise
    return jsonify({"message": _("Update saved."), "update": post.to_dict()})


@updates_bp.delete('/<int:update_id>')
@login_required
def update_delete(update_id):
    updates.delete_update(current_user, update_id)
    return jsonify({"message": _("Update deleted.")})
