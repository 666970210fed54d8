import io
from pathlib import Path

import pytest
from sqlalchemy.exc import SQLAlchemyError

from sitequote.extensions import db
from sitequote.services import updates
from sitequote.services.errors import NotFound, Unauthorized, ValidationFailure


def test_create_and_list(people):
    first = updates.create_update(people["s1"], {"title": "New stock", "content": "TMT bars arrived"})
    second = updates.create_update(people["home"], {"title": "Done", "content": "Roof finished"})

    assert first.author_name == "Ravi"
    assert first.to_dict()["author_role"] == "shop-owner"
    assert [u.id for u in updates.list_updates()] == [second.id, first.id]


def test_create_requires_title_and_content(people):
    with pytest.raises(ValidationFailure) as exc:
        updates.create_update(people["s1"], {"title": " ", "content": "x"})
    assert exc.value.field == "title"


def test_only_author_or_admin_can_change(people):
    post = updates.create_update(people["s1"], {"title": "Offer", "content": "10% off cement"})

    with pytest.raises(Unauthorized):
        updates.edit_update(people["s2"], post.id, {"title": "Hijacked"})
    with pytest.raises(Unauthorized):
        updates.delete_update(people["home"], post.id)

    edited = updates.edit_update(people["admin"], post.id, {"content": "12% off cement"})
    assert edited.content == "12% off cement"
    assert edited.title == "Offer"

    updates.delete_update(people["s1"], post.id)
    with pytest.raises(NotFound):
        updates.get_update(post.id)


def test_updates_over_http_with_image(login, accounts, app):
    s1 = login(accounts["s1"]["email"])
    resp = s1.post("/updates", data={
        "title": "Showroom",
        "content": "Visit our new showroom",
        "image": (io.BytesIO(b"png-bytes"), "showroom.png"),
    }, content_type="multipart/form-data")
    assert resp.status_code == 201, resp.get_json()
    post = resp.get_json()["update"]
    old_image = post["image_url"]
    assert old_image.startswith("/uploads/updates/")

    upload_root = Path(app.config["UPLOAD_FOLDER"])
    assert (upload_root / old_image[len("/uploads/"):]).is_file()

    # other users can read but not change it
    home = login(accounts["home"]["email"])
    assert home.get(f"/updates/{post['id']}").status_code == 200
    assert home.put(f"/updates/{post['id']}", json={"title": "x"}).status_code == 403

    resp = s1.put(f"/updates/{post['id']}", data={"remove_image": "true"}, content_type="multipart/form-data")
    assert resp.status_code == 200
    assert resp.get_json()["update"]["image_url"] is None
    assert not (upload_root / old_image[len("/uploads/"):]).exists()

    admin = login(accounts["admin"]["email"])
    assert admin.delete(f"/updates/{post['id']}").status_code == 200
    assert s1.get("/updates").get_json()["updates"] == []
    assert s1.get(f"/updates/{post['id']}").status_code == 404


def test_failed_edit_keeps_the_old_image(people, ctx, monkeypatch):
    upload_root = Path(ctx.config["UPLOAD_FOLDER"])
    (upload_root / "updates").mkdir(parents=True, exist_ok=True)
    (upload_root / "updates" / "old.png").write_bytes(b"png")
    post = updates.create_update(people["s1"], {"title": "Offer", "content": "Sale"},
                                 image_url="/uploads/updates/old.png")

    def broken_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db.session, "commit", broken_commit)
    with pytest.raises(SQLAlchemyError):
        updates.edit_update(people["s1"], post.id, {"remove_image": "1"})
    assert (upload_root / "updates" / "old.png").is_file()

    monkeypatch.undo()
    db.session.rollback()
    updates.edit_update(people["s1"], post.id, {"remove_image": "1"})
    assert not (upload_root / "updates" / "old.png").exists()


def test_edit_validates_before_changing(people):
    post = updates.create_update(people["s1"], {"title": "Offer", "content": "Sale"})
    with pytest.raises(ValidationFailure):
        updates.edit_update(people["s1"], post.id, {"title": "New title", "content": ""})
    assert post.title == "Offer"
