from datetime import datetime

import pytest

from mansatask.models import TransactionStatus
from tests.helpers import past


@pytest.fixture()
def history(merchant, make_link, make_transaction):
    link = make_link(merchant)
    return [
        make_transaction(link, status=TransactionStatus.SUCCESS, created_at=past(days=3)),
        make_transaction(link, status=TransactionStatus.FAILED, created_at=past(days=2)),
        make_transaction(link, status=TransactionStatus.SUCCESS, payment_provider="VODAFONE", created_at=past(days=1)),
    ]


def test_list_newest_first_with_pagination(client, merchant_headers, history):
    response = client.get("/api/transactions?page=1&limit=2", headers=merchant_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert [t["id"] for t in body["data"]] == [history[2].id, history[1].id]
    assert body["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "totalPages": 2,
        "hasNextPage": True,
        "hasPreviousPage": False,
    }

    second = client.get("/api/transactions?page=2&limit=2", headers=merchant_headers).get_json()
    assert [t["id"] for t in second["data"]] == [history[0].id]
    assert second["pagination"]["hasNextPage"] is False
    assert second["pagination"]["hasPreviousPage"] is True


def test_empty_list_has_zero_pages(client, merchant_headers):
    body = client.get("/api/transactions", headers=merchant_headers).get_json()

    assert body["data"] == []
    assert body["pagination"]["totalPages"] == 0
    assert body["pagination"]["hasNextPage"] is False


def test_filter_by_status_and_provider(client, merchant_headers, history):
    by_status = client.get("/api/transactions?status=SUCCESS", headers=merchant_headers).get_json()
    by_provider = client.get("/api/transactions?provider=VODAFONE", headers=merchant_headers).get_json()

    assert {t["id"] for t in by_status["data"]} == {history[0].id, history[2].id}
    assert [t["id"] for t in by_provider["data"]] == [history[2].id]


def test_filter_by_date_range(client, merchant_headers, history):
    start = past(days=2, hours=1).isoformat()
    end = past(hours=36).isoformat()

    body = client.get(
        "/api/transactions",
        query_string={"startDate": start, "endDate": end},
        headers=merchant_headers,
    ).get_json()

    assert [t["id"] for t in body["data"]] == [history[1].id]


@pytest.mark.parametrize("query", ["limit=101", "page=0", "status=DONE"])
def test_invalid_query(client, merchant_headers, query):
    assert client.get(f"/api/transactions?{query}", headers=merchant_headers).status_code == 400


def test_list_only_shows_own_transactions(client, other_merchant, auth_headers, history):
    body = client.get("/api/transactions", headers=auth_headers(other_merchant)).get_json()
    assert body["pagination"]["total"] == 0


def test_get_transaction_includes_receipt(client, merchant_headers, history):
    client.post(f"/api/receipts/generate/{history[0].id}", headers=merchant_headers)

    body = client.get(f"/api/transactions/{history[0].id}", headers=merchant_headers).get_json()

    assert body["receipt"]["receiptNumber"].startswith(f"RCP-{datetime.utcnow().year}-")
    assert body["paymentLink"]["id"] == history[0].payment_link_id


def test_get_transaction_without_receipt(client, merchant_headers, history):
    body = client.get(f"/api/transactions/{history[1].id}", headers=merchant_headers).get_json()
    assert body["receipt"] is None


def test_get_foreign_transaction(client, other_merchant, auth_headers, history):
    response = client.get(f"/api/transactions/{history[0].id}", headers=auth_headers(other_merchant))
    assert response.status_code == 403
