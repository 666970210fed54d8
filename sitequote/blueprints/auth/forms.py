# sitequote/blueprints/auth/forms.py
from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import (
    StringField,
    PasswordField,
    BooleanField,
    SelectField,
)
from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    EqualTo,
    Optional as Opt,
    Regexp,
    ValidationError,
)

from ...models.user import User, Role


# ---------------------
# Validators / Helpers
# ---------------------

PASSWORD_VALIDATORS = [
    DataRequired(),
    Length(min=8, message="Password must be at least 8 characters."),
    # at least one letter and number
    Regexp(r"^(?=.*[A-Za-z])(?=.*\d).+$", message="Use letters and numbers."),
]

SELF_SERVICE_ROLES = (Role.HOMEOWNER.value, Role.SHOP_OWNER.value)


def _email_exists(email: str) -> bool:
    return User.query.filter(User.email == email.lower().strip()).first() is not None


def first_error(form: FlaskForm) -> tuple[str, str]:
    """(field, message) of the first failing field, for JSON error bodies."""
    for name, errors in form.errors.items():
        if errors:
            return name, errors[0]
    return "form", "Invalid input."


# -------------
# Auth Forms
# -------------

class RegisterForm(FlaskForm):
    name = StringField("Full name", validators=[DataRequired(), Length(max=120)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    phone = StringField("Phone", validators=[Opt(), Length(max=50)])
    role = SelectField(
        "Account type",
        choices=[(Role.HOMEOWNER.value, "Homeowner"), (Role.SHOP_OWNER.value, "Shop owner")],
        validators=[DataRequired()],
        default=Role.HOMEOWNER.value,
    )
    shop_name = StringField("Shop name", validators=[Opt(), Length(max=160)])
    location = StringField("Location", validators=[Opt(), Length(max=120)])
    address = StringField("Address", validators=[Opt(), Length(max=255)])
    password = PasswordField("Password", validators=PASSWORD_VALIDATORS)
    password2 = PasswordField("Confirm password", validators=[DataRequired(), EqualTo("password", message="Passwords must match.")])

    def validate_email(self, field):  # type: ignore[override]
        if _email_exists(field.data):
            raise ValidationError("This email is already registered.")


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired()])
    remember = BooleanField("Keep me signed in")
