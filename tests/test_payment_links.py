import re
from datetime import datetime, timedelta

import pytest

from mansatask.extensions import db
from mansatask.models import LinkDisplayStatus, PaymentLink
from tests.helpers import future, past


def test_create_link_generates_slug(client, merchant_headers):
    response = client.post(
        "/api/payment-links",
        json={"title": "Cours", "amount": 1500},
        headers=merchant_headers,
    )

    assert response.status_code == 201
    data = response.get_json()
    assert re.fullmatch(r"pay-[a-z0-9]{8}", data["slug"])
    assert data["isActive"] is True
    assert data["currentUses"] == 0
    assert data["isValid"] is True
    assert data["displayStatus"] == LinkDisplayStatus.ACTIVE


def test_create_link_expires_after_days(client, merchant_headers):
    before = datetime.utcnow()

    response = client.post(
        "/api/payment-links",
        json={"title": "Week pass", "amount": 100, "expiresAfterDays": 7},
        headers=merchant_headers,
    )

    assert response.status_code == 201
    data = response.get_json()
    expires_at = datetime.fromisoformat(data["expiresAt"])
    assert before + timedelta(days=7) <= expires_at <= datetime.utcnow() + timedelta(days=7)
    assert data["expiresAfterDays"] == 7


def test_create_link_rejects_both_expiry_options(client, merchant_headers):
    response = client.post(
        "/api/payment-links",
        json={
            "title": "Both",
            "amount": 100,
            "expiresAfterDays": 3,
            "expiresAt": future(days=3).isoformat(),
        },
        headers=merchant_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["message"] == "Cannot specify both expiresAfterDays and expiresAt"


@pytest.mark.parametrize("body", [
    {"title": "Cheap", "amount": 0},
    {"title": "Zero uses", "amount": 10, "maxUses": 0},
    {"title": "Too long", "amount": 10, "expiresAfterDays": 366},
])
def test_create_link_validation(client, merchant_headers, body):
    assert client.post("/api/payment-links", json=body, headers=merchant_headers).status_code == 400


def test_create_link_with_foreign_product(client, other_merchant, merchant_headers, make_product):
    product = make_product(other_merchant)

    response = client.post(
        "/api/payment-links",
        json={"title": "Stolen", "amount": 100, "productId": product.id},
        headers=merchant_headers,
    )

    assert response.status_code == 404
    assert response.get_json()["message"] == "Product not found or you do not have access to it"


def test_list_links_with_transaction_counts(client, merchant, merchant_headers, make_link, make_transaction):
    first = make_link(merchant)
    second = make_link(merchant)
    make_transaction(first)
    make_transaction(first)

    response = client.get("/api/payment-links", headers=merchant_headers)

    assert response.status_code == 200
    counts = {item["id"]: item["transactionCount"] for item in response.get_json()}
    assert counts == {first.id: 2, second.id: 0}


def test_get_link_ownership(client, other_merchant, merchant_headers, make_link):
    link = make_link(other_merchant)

    response = client.get(f"/api/payment-links/{link.id}", headers=merchant_headers)

    assert response.status_code == 403
    assert response.get_json()["message"] == "You do not have access to this payment link"


def test_update_clears_limit_with_zero_max_uses(client, merchant, merchant_headers, make_link):
    link = make_link(merchant, max_uses=5)

    response = client.put(f"/api/payment-links/{link.id}", json={"maxUses": 0}, headers=merchant_headers)

    assert response.status_code == 200
    assert response.get_json()["maxUses"] is None


def test_update_expires_at_clears_expires_after_days(client, merchant, merchant_headers, make_link):
    link = make_link(merchant, expires_after_days=3, expires_at=future(days=3))
    new_expiry = future(days=30).replace(microsecond=0)

    response = client.put(
        f"/api/payment-links/{link.id}",
        json={"expiresAt": new_expiry.isoformat() + "Z"},
        headers=merchant_headers,
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["expiresAfterDays"] is None
    assert datetime.fromisoformat(data["expiresAt"]) == new_expiry


def test_update_leaves_unsent_fields(client, merchant, merchant_headers, make_link):
    link = make_link(merchant, max_uses=5, description="Keep me")

    response = client.put(f"/api/payment-links/{link.id}", json={"title": "Renamed"}, headers=merchant_headers)

    data = response.get_json()
    assert data["title"] == "Renamed"
    assert data["maxUses"] == 5
    assert data["description"] == "Keep me"


def test_delete_link(client, merchant, merchant_headers, make_link):
    link = make_link(merchant)

    response = client.delete(f"/api/payment-links/{link.id}", headers=merchant_headers)

    assert response.status_code == 200
    assert response.get_json() == {"message": "Payment link deleted successfully"}
    stored = db.session.get(PaymentLink, link.id)
    assert stored.deleted_at is not None
    assert stored.is_active is False
    assert client.get(f"/api/payment-links/public/{link.slug}").status_code == 404


def test_public_link_includes_product_and_merchant(client, merchant, make_product, make_link):
    product = make_product(merchant, name="Robe")
    link = make_link(merchant, product_id=product.id)

    response = client.get(f"/api/payment-links/public/{link.slug}")

    assert response.status_code == 200
    data = response.get_json()
    assert data["product"]["name"] == "Robe"
    assert data["user"] == {
        "id": merchant.id,
        "name": merchant.name,
        "email": merchant.email,
        "phone": merchant.phone,
    }


@pytest.mark.parametrize("fields,message", [
    ({"is_active": False}, "Payment link is not active"),
    ({"expires_at": past(days=1)}, "Payment link has expired"),
    ({"max_uses": 2, "current_uses": 2}, "Payment link has reached maximum number of uses"),
])
def test_public_link_unusable(client, merchant, make_link, fields, message):
    link = make_link(merchant, **fields)

    response = client.get(f"/api/payment-links/public/{link.slug}")

    assert response.status_code == 400
    assert response.get_json()["message"] == message


def test_public_link_unknown_slug(client):
    response = client.get("/api/payment-links/public/pay-missing1")
    assert response.status_code == 404
    assert response.get_json()["message"] == "Payment link not found"


def test_validity_flips_when_uses_run_out(merchant, make_link):
    link = make_link(merchant, max_uses=2, current_uses=1)
    assert link.is_valid()
    assert link.to_dict()["isValid"] is True

    link.current_uses = 2
    assert not link.is_valid()
    assert link.to_dict()["isValid"] is False
    assert link.to_dict()["displayStatus"] == LinkDisplayStatus.EXHAUSTED


@pytest.mark.parametrize("fields,expected", [
    ({"max_uses": 1, "current_uses": 1, "is_active": True}, LinkDisplayStatus.EXHAUSTED),
    ({"max_uses": 1, "current_uses": 1, "is_active": False, "expires_at": past(days=1)},
     LinkDisplayStatus.EXHAUSTED),
    ({"is_active": False, "expires_at": past(days=1)}, LinkDisplayStatus.EXPIRED),
    ({"is_active": False}, LinkDisplayStatus.INACTIVE),
    ({"max_uses": 3, "current_uses": 1, "expires_at": future(days=1)}, LinkDisplayStatus.ACTIVE),
])
def test_display_status_precedence(merchant, make_link, fields, expected):
    assert make_link(merchant, **fields).display_status() == expected
