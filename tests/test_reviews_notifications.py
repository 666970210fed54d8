import pytest

from sitequote.models import Notification
from sitequote.services import lifecycle, notification_service, reviews
from sitequote.services.errors import Duplicate, InvalidState, Unauthorized, ValidationFailure

from conftest import next_week


@pytest.fixture
def bought(people, requirement_fields):
    """Requirement purchased from s1 after s1 and s2 quoted."""
    req = lifecycle.create_requirement(people["home"], requirement_fields)
    q1 = lifecycle.submit_quotation(people["s1"], req.id, {"amount": 900, "terms": "Cash", "delivery_date": next_week()})
    lifecycle.submit_quotation(people["s2"], req.id, {"amount": 950, "terms": "UPI", "delivery_date": next_week()})
    return lifecycle.accept_quotation(people["home"], req.id, q1.id)


# -----------------
# Reviews
# -----------------

def test_review_after_purchase_updates_shop_rating(people, bought):
    r = reviews.add_review(people["home"], bought.id, 4, "  Delivered on time. ")
    assert r.shop_owner_id == people["s1"].id
    assert r.comment == "Delivered on time."
    assert reviews.shop_rating(people["s1"].id) == {"average_rating": 4.0, "review_count": 1}
    assert reviews.shop_rating(people["s2"].id) == {"average_rating": 0.0, "review_count": 0}

    reviews.update_review(people["home"], r.id, rating="5")
    assert reviews.shop_rating(people["s1"].id)["average_rating"] == 5.0


def test_review_needs_purchase(people, requirement_fields):
    req = lifecycle.create_requirement(people["home"], requirement_fields)
    with pytest.raises(InvalidState):
        reviews.add_review(people["home"], req.id, 5)


def test_one_review_per_purchase(people, bought):
    reviews.add_review(people["home"], bought.id, 3)
    with pytest.raises(Duplicate):
        reviews.add_review(people["home"], bought.id, 5)


@pytest.mark.parametrize("rating", [0, 6, "x", None, True, 4.9, "4.5", float("inf"), float("nan"), 10**400])
def test_review_rating_range(people, bought, rating):
    with pytest.raises(ValidationFailure) as exc:
        reviews.add_review(people["home"], bought.id, rating)
    assert exc.value.field == "rating"


def test_review_accepts_whole_star_spellings(people, bought):
    r = reviews.add_review(people["home"], bought.id, " 4 ")
    assert r.rating == 4
    assert reviews.update_review(people["home"], r.id, rating=5.0).rating == 5


def test_only_buyer_reviews(people, bought):
    with pytest.raises(Unauthorized):
        reviews.add_review(people["s1"], bought.id, 5)
    r = reviews.add_review(people["home"], bought.id, 2)
    with pytest.raises(Unauthorized):
        reviews.update_review(people["admin"], r.id, rating=5)


def test_review_over_http(login, accounts, app, requirement_fields):
    home = login(accounts["home"]["email"])
    s1 = login(accounts["s1"]["email"])
    req_id = home.post("/homeowner/requirements", json=requirement_fields).get_json()["requirement"]["id"]
    q = s1.post(f"/shop-owner/requirements/{req_id}/quotations",
                json={"amount": 700, "terms": "Cash", "delivery_date": next_week()}).get_json()["quotation"]
    home.post(f"/homeowner/requirements/{req_id}/accept", json={"quotation_id": q["id"]})

    resp = home.post(f"/homeowner/requirements/{req_id}/review", json={"rating": 5, "comment": "Great"})
    assert resp.status_code == 201
    review_id = resp.get_json()["review"]["id"]

    again = home.post(f"/homeowner/requirements/{req_id}/review", json={"rating": 4})
    assert again.status_code == 409
    assert again.get_json()["error"] == "duplicate"

    assert home.put(f"/homeowner/reviews/{review_id}", json={"rating": 3}).status_code == 200

    shop = home.get(f"/shop-owner/requirements/{req_id}")
    assert shop.status_code == 403  # homeowner on a shop-owner route

    profile = home.get(f"/shops/{accounts['s1']['id']}").get_json()
    assert profile["average_rating"] == 3.0
    assert profile["review_count"] == 1
    assert profile["reviews"][0]["comment"] == "Great"

    view = home.get(f"/homeowner/requirements/{req_id}").get_json()
    assert view["review"]["rating"] == 3


# -----------------
# Notifications
# -----------------

def test_lifecycle_events_notify(people, bought):
    home_notes = notification_service.latest_for_user(people["home"])
    assert len(home_notes) == 2
    assert all(n.link == f"/homeowner/requirements/{bought.id}" for n in home_notes)

    s1_notes = notification_service.latest_for_user(people["s1"])
    assert [n.link for n in s1_notes] == [f"/shop-owner/requirements/{bought.id}"]
    assert notification_service.latest_for_user(people["s2"]) == []


def test_feed_is_capped(people):
    for i in range(25):
        notification_service.notify(people["s3"].id, f"message {i}")
    feed = notification_service.latest_for_user(people["s3"])
    assert len(feed) == 20
    assert feed[0].message == "message 24"


def test_mark_read_only_touches_own(people):
    mine = notification_service.notify(people["s1"].id, "for s1")
    theirs = notification_service.notify(people["s2"].id, "for s2")

    assert notification_service.mark_read(people["s1"], [mine.id, theirs.id]) == 1
    assert not notification_service.has_unread(people["s1"])
    assert notification_service.has_unread(people["s2"])
    assert Notification.query.get(theirs.id).read is False


def test_notifications_over_http(login, accounts, app):
    with app.app_context():
        for text in ("one", "two"):
            notification_service.notify(accounts["s1"]["id"], text)

    client = login(accounts["s1"]["email"])
    body = client.get("/notifications").get_json()
    assert [n["message"] for n in body["notifications"]] == ["two", "one"]
    assert body["has_unread"] is True

    first_id = body["notifications"][1]["id"]
    assert client.post("/notifications/read", json={"ids": [first_id]}).get_json() == {"marked": 1}
    assert client.get("/notifications").get_json()["has_unread"] is True
    assert client.post("/notifications/read", json={}).get_json() == {"marked": 1}
    assert client.get("/notifications").get_json()["has_unread"] is False

    bad = client.post("/notifications/read", json={"ids": "all"})
    assert bad.status_code == 422
