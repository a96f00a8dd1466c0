import re

import pytest

from mansatask.models import Receipt, TransactionStatus
from mansatask.services.receipt_pdf import format_cfa


@pytest.fixture()
def paid(merchant, make_link, make_transaction):
    return make_transaction(make_link(merchant, title="Cours particulier"), status=TransactionStatus.SUCCESS)


def test_generate_receipt(client, merchant_headers, paid):
    response = client.post(f"/api/receipts/generate/{paid.id}", headers=merchant_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Receipt generated successfully"
    assert re.fullmatch(r"RCP-\d{4}-\d{6}", body["data"]["receiptNumber"])
    assert body["data"]["pdfUrl"] == f"http://api.test/api/receipts/{paid.id}/download"


def test_generate_is_idempotent(client, merchant_headers, paid):
    first = client.post(f"/api/receipts/generate/{paid.id}", headers=merchant_headers).get_json()
    second = client.post(f"/api/receipts/generate/{paid.id}", headers=merchant_headers).get_json()

    assert first["data"]["receiptNumber"] == second["data"]["receiptNumber"]
    assert Receipt.query.count() == 1


def test_generate_requires_successful_transaction(client, merchant, merchant_headers, make_link, make_transaction):
    pending = make_transaction(make_link(merchant))

    response = client.post(f"/api/receipts/generate/{pending.id}", headers=merchant_headers)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Receipt can only be generated for successful transactions"


def test_generate_for_foreign_transaction(client, other_merchant, auth_headers, paid):
    response = client.post(f"/api/receipts/generate/{paid.id}", headers=auth_headers(other_merchant))
    assert response.status_code == 404


def test_get_receipt_before_generation(client, merchant_headers, paid):
    response = client.get(f"/api/receipts/{paid.id}", headers=merchant_headers)

    assert response.status_code == 404
    assert response.get_json()["message"] == "Receipt not found"


def test_get_receipt(client, merchant_headers, paid):
    client.post(f"/api/receipts/generate/{paid.id}", headers=merchant_headers)

    body = client.get(f"/api/receipts/{paid.id}", headers=merchant_headers).get_json()

    assert body["success"] is True
    assert body["data"]["transactionId"] == paid.id


def test_download_receipt_pdf(client, merchant_headers, paid):
    number = client.post(f"/api/receipts/generate/{paid.id}", headers=merchant_headers).get_json()["data"][
        "receiptNumber"
    ]

    response = client.get(f"/api/receipts/{paid.id}/download", headers=merchant_headers)

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")
    assert f"receipt-{number}.pdf" in response.headers["Content-Disposition"]
    assert response.headers["Content-Disposition"].startswith("attachment")


def test_public_download_generates_receipt(client, paid):
    response = client.get(f"/api/receipts/public/{paid.external_reference}/download")

    assert response.status_code == 200
    assert response.data.startswith(b"%PDF")
    assert Receipt.query.filter_by(transaction_id=paid.id).count() == 1


def test_public_download_unknown_reference(client):
    assert client.get("/api/receipts/public/TXN-0-MISSING/download").status_code == 404


@pytest.mark.parametrize("amount,expected", [
    (1500000, "1 500 000"),
    (2500, "2 500"),
    (100, "100"),
])
def test_format_cfa(amount, expected):
    assert format_cfa(amount) == expected
