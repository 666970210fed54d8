from datetime import date, timedelta

import pytest

from sitequote import create_app
from sitequote.config import TestConfig
from sitequote.extensions import db
from sitequote.models.user import User, Role, HomeownerProfile, ShopOwnerProfile

PASSWORD = "secret123"


def next_week() -> str:
    return (date.today() + timedelta(days=7)).isoformat()


def create_user(role, name, email, phone=None, *, shop_name=None, address=None, location=None):
    """Needs an app context."""
    user = User(name=name, email=email, phone=phone, role=role)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.flush()
    if role == Role.HOMEOWNER:
        db.session.add(HomeownerProfile(user_id=user.id, name=name, address=address))
    elif role == Role.SHOP_OWNER:
        db.session.add(ShopOwnerProfile(
            user_id=user.id,
            name=name,
            shop_name=shop_name or f"{name} Traders",
            address=address,
            location=location,
            shop_photos=[],
        ))
    db.session.commit()
    return user


@pytest.fixture
def app(tmp_path):
    cfg = type("Cfg", (TestConfig,), {
        "LOG_DIR": str(tmp_path / "logs"),
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    app = create_app(cfg)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for tests that call the service layer directly."""
    with app.app_context():
        yield app


@pytest.fixture
def people(ctx):
    """Model instances: one homeowner, three shop owners, one admin."""
    return {
        "home": create_user(Role.HOMEOWNER, "Asha", "asha@buildmail.in", "9000000001",
                            address="12 Lake Road, Pune"),
        "s1": create_user(Role.SHOP_OWNER, "Ravi", "ravi@buildmail.in", "9000000002",
                          shop_name="Ravi Cement House", location="Pune"),
        "s2": create_user(Role.SHOP_OWNER, "Meena", "meena@buildmail.in", "9000000003",
                          shop_name="Meena Building Supplies", location="Pune"),
        "s3": create_user(Role.SHOP_OWNER, "Joseph", "joseph@buildmail.in", "9000000004",
                          shop_name="Joseph Hardware", location="Mumbai"),
        "admin": create_user(Role.ADMIN, "Admin", "admin@buildmail.in"),
    }


@pytest.fixture
def accounts(app):
    """Same cast as ``people`` but returned as plain ids/emails for HTTP tests."""
    with app.app_context():
        created = {
            "home": create_user(Role.HOMEOWNER, "Asha", "asha@buildmail.in", "9000000001",
                                address="12 Lake Road, Pune"),
            "home2": create_user(Role.HOMEOWNER, "Vikram", "vikram@buildmail.in", "9000000009"),
            "s1": create_user(Role.SHOP_OWNER, "Ravi", "ravi@buildmail.in", "9000000002",
                              shop_name="Ravi Cement House", location="Pune"),
            "s2": create_user(Role.SHOP_OWNER, "Meena", "meena@buildmail.in", "9000000003",
                              shop_name="Meena Building Supplies", location="Pune"),
            "s3": create_user(Role.SHOP_OWNER, "Joseph", "joseph@buildmail.in", "9000000004",
                              shop_name="Joseph Hardware", location="Mumbai"),
            "admin": create_user(Role.ADMIN, "Admin", "admin@buildmail.in"),
        }
        return {key: {"id": u.id, "email": u.email} for key, u in created.items()}


@pytest.fixture
def login(app):
    def _login(email, password=PASSWORD):
        client = app.test_client()
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return client
    return _login


@pytest.fixture
def requirement_fields():
    return {
        "title": "Need 50 bags of cement",
        "category": "Cement",
        "location": "Kothrud, Pune",
        "description": "OPC 53 grade, delivery to site.",
        "photos": [],
    }
