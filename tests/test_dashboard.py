from mansatask.models import TransactionStatus
from tests.helpers import past


def test_dashboard_stats(client, merchant, other_merchant, merchant_headers, make_product, make_link, make_transaction):
    make_product(merchant)
    link = make_link(merchant)
    make_link(merchant, is_active=False)
    make_link(merchant, expires_at=past(days=1))
    make_link(other_merchant)

    make_transaction(link, status=TransactionStatus.SUCCESS, amount=5000)
    make_transaction(link, status=TransactionStatus.SUCCESS, amount=2500)
    make_transaction(link, status=TransactionStatus.PENDING)
    make_transaction(link, status=TransactionStatus.PROCESSING)
    make_transaction(link, status=TransactionStatus.FAILED)
    make_transaction(link, status=TransactionStatus.CANCELLED)

    response = client.get("/api/dashboard/stats", headers=merchant_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    stats = body["data"]
    assert stats["totalRevenue"] == 7500.0
    assert stats["totalTransactions"] == 6
    assert stats["successfulTransactions"] == 2
    assert stats["pendingTransactions"] == 2
    assert stats["failedTransactions"] == 1
    assert stats["totalPaymentLinks"] == 3
    assert stats["activePaymentLinks"] == 1
    assert stats["totalProducts"] == 1
    assert len(stats["recentTransactions"]) == 5


def test_dashboard_for_new_merchant(client, merchant_headers):
    stats = client.get("/api/dashboard/stats", headers=merchant_headers).get_json()["data"]

    assert stats["totalRevenue"] == 0.0
    assert stats["totalTransactions"] == 0
    assert stats["recentTransactions"] == []


def test_dashboard_requires_auth(client):
    assert client.get("/api/dashboard/stats").status_code == 401
