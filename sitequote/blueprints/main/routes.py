from datetime import datetime
import json

from flask import current_app, jsonify, request, send_file, abort, session
from flask_login import current_user, login_required

from ...extensions import db
from ...models.user import Role, User
from ...services.reviews import reviews_for_shop, shop_rating
from ...services.storage_service import resolve_upload

from . import main_bp


# ---- Tiny JSON health route (DB ping + version) ----
@main_bp.route("/status")
def status():
    ok_db = True
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as e:
        current_app.logger.error(f"DB health failed: {e}")
        ok_db = False

    payload = {
        "service": "sitequote",
        "version": current_app.config.get("APP_VERSION"),
        "time_utc": datetime.utcnow().isoformat() + "Z",
        "checks": {"database": "ok" if ok_db else "fail"},
    }
    code = 200 if ok_db else 503

    # ?pretty=1 -> pretty JSON
    if request.args.get("pretty"):
        return current_app.response_class(
            json.dumps(payload, indent=2) + "\n",
            mimetype="application/json"
        ), code

    return jsonify(payload), code


# ---- Uploaded photos (blob store) ----
@main_bp.route("/uploads/<path:relpath>")
def uploaded_file(relpath):
    target = resolve_upload(relpath)
    if target is None or not target.is_file():
        abort(404)
    return send_file(target, max_age=3600)


# ---- Public shop profile ----
@main_bp.route("/shops/<int:user_id>")
@login_required
def shop_profile(user_id):
    u = User.query.get_or_404(user_id)
    if u.role != Role.SHOP_OWNER:
        abort(404)
    prof = u.shop_owner_profile
    body = {
        "id": u.id,
        "name": u.display_name,
        "shop_name": prof.shop_name if prof else None,
        "location": prof.location if prof else None,
        "shop_photos": list(prof.shop_photos or []) if prof else [],
        "reviews": [r.to_dict() for r in reviews_for_shop(u.id)],
    }
    body.update(shop_rating(u.id))
    return jsonify(body)


# ---- Language switch ----
@main_bp.post("/lang/<lang>")
def set_language(lang):
    if lang not in current_app.config.get("LANGUAGES", ["en"]):
        abort(400, description=f"Unsupported language: {lang}")
    session["lang"] = lang
    if current_user.is_authenticated:
        current_user.language = lang
        db.session.commit()
    current_app.logger.info(f"[i18n] lang set -> {lang}")
    return jsonify({"lang": lang})
