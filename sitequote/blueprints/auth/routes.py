# sitequote/blueprints/auth/routes.py
from flask import jsonify, current_app
from flask_babel import gettext as _
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from ...extensions import db
from ...models.user import User, Role, HomeownerProfile, ShopOwnerProfile
from . import auth_bp
from .forms import RegisterForm, LoginForm, SELF_SERVICE_ROLES, first_error


def _form_error(form):
    field, message = first_error(form)
    return jsonify({"error": "validation_failure", "field": field, "message": message}), 422


# -----------------
# CSRF token for JSON clients
# -----------------

@auth_bp.get('/csrf')
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})


# -----------------
# Register
# -----------------

@auth_bp.post('/register')
def register():
    form = RegisterForm()
    if not form.validate_on_submit():
        return _form_error(form)

    role = Role(form.role.data if form.role.data in SELF_SERVICE_ROLES else Role.HOMEOWNER.value)
    name = form.name.data.strip()
    user = User(
        name=name,
        email=form.email.data.strip().lower(),
        phone=(form.phone.data or '').strip() or None,
        role=role,
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.flush()  # get user.id

    # Create 1:1 profile
    if role == Role.SHOP_OWNER:
        prof = ShopOwnerProfile(
            user_id=user.id,
            name=name,
            shop_name=(form.shop_name.data or '').strip() or None,
            location=(form.location.data or '').strip() or None,
            address=(form.address.data or '').strip() or None,
            shop_photos=[],
        )
    else:
        prof = HomeownerProfile(user_id=user.id, name=name,
                                address=(form.address.data or '').strip() or None)
    db.session.add(prof)
    db.session.commit()

    current_app.logger.info(f"[auth] registered user {user.id} as {role.value}")
    return jsonify({"message": _("Account created. You can now log in."), "user": user.to_dict()}), 201


# -----------------
# Login / Logout
# -----------------

@auth_bp.post('/login')
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return _form_error(form)

    email = form.email.data.strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(form.password.data):
        return jsonify({"error": "invalid_credentials", "message": _("Invalid email or password.")}), 401

    if user.status == 'suspended':
        return jsonify({"error": "suspended", "message": _("Your account is suspended. Contact support.")}), 403

    if user.deleted_at is not None:
        return jsonify({"error": "deleted", "message": _("This account was deleted.")}), 403

    login_user(user, remember=bool(form.remember.data))
    user.mark_login()
    db.session.commit()
    return jsonify({"message": _("Signed in."), "user": user.to_dict()})


@auth_bp.post('/logout')
@login_required
def logout():
    logout_user()
    return jsonify({"message": _("You have been logged out.")})


@auth_bp.get('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())
