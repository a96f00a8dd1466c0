from unittest.mock import Mock

import pytest
from faker import Faker

from mansatask import create_app
from mansatask.extensions import db
from mansatask.models import PaymentLink, Product, Transaction, TransactionStatus, User
from mansatask.services.mansa_client import MansaClient
from mansatask.services.payment_service import generate_external_reference
from mansatask.services.token_service import TokenService

# Initialize Faker for generating test data
fake = Faker()

DEFAULT_PASSWORD = "password123"


# Custom pytest marks for organizing tests
def pytest_configure(config):
    config.addinivalue_line("markers", "auth: mark test as authentication-related")
    config.addinivalue_line("markers", "payment: mark test as payment-related")
    config.addinivalue_line("markers", "client: mark test as API client related")


@pytest.fixture()
def app(tmp_path):
    """Application on an in-memory database with files under a temp dir"""
    app = create_app("testing")
    app.config.update(
        UPLOAD_DIR=str(tmp_path / "uploads"),
        BACKEND_URL="http://api.test",
        FRONTEND_URL="http://app.test",
    )

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def mansa(app):
    """Payment gateway double installed as the app's provider client"""
    mock = Mock(spec=MansaClient)
    mock.initiate_payin.return_value = {
        "providerTransactionId": "MANSA-INT-001",
        "status": TransactionStatus.PENDING,
        "message": "Payment initiated",
    }
    mock.check_status.return_value = {
        "status": TransactionStatus.PROCESSING,
        "providerStatus": "PROCESSING",
        "failureReason": None,
        "raw": {},
    }
    app.extensions["mansa_client"] = mock
    return mock


@pytest.fixture()
def make_user(app):
    def _make_user(email=None, name=None, password=DEFAULT_PASSWORD, phone=None):
        user = User(
            name=name or fake.name(),
            email=(email or fake.unique.email()).lower(),
            phone=phone,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture()
def merchant(make_user):
    return make_user(name="Awa Merchant", phone="+237670000001")


@pytest.fixture()
def other_merchant(make_user):
    return make_user(name="Other Merchant")


@pytest.fixture()
def auth_headers(app):
    """Bearer headers for a given user"""
    def _headers(user):
        tokens = TokenService.generate_tokens(user)
        return {"Authorization": f"Bearer {tokens['accessToken']}"}

    return _headers


@pytest.fixture()
def merchant_headers(merchant, auth_headers):
    return auth_headers(merchant)


@pytest.fixture()
def make_product(app):
    def _make_product(user, **fields):
        product = Product(
            user_id=user.id,
            name=fields.pop("name", fake.catch_phrase()),
            price=fields.pop("price", 5000),
            **fields,
        )
        db.session.add(product)
        db.session.commit()
        return product

    return _make_product


@pytest.fixture()
def make_link(app):
    counter = {"n": 0}

    def _make_link(user, **fields):
        counter["n"] += 1
        link = PaymentLink(
            user_id=user.id,
            title=fields.pop("title", "Test link"),
            amount=fields.pop("amount", 5000),
            slug=fields.pop("slug", f"pay-test{counter['n']:04d}"),
            **fields,
        )
        db.session.add(link)
        db.session.commit()
        return link

    return _make_link


@pytest.fixture()
def make_transaction(app):
    def _make_transaction(link, **fields):
        transaction = Transaction(
            user_id=link.user_id,
            payment_link_id=link.id,
            external_reference=fields.pop("external_reference", generate_external_reference()),
            status=fields.pop("status", TransactionStatus.PENDING),
            payment_provider=fields.pop("payment_provider", "MTN"),
            customer_name=fields.pop("customer_name", "Jean Customer"),
            customer_phone=fields.pop("customer_phone", "+237670000002"),
            customer_email=fields.pop("customer_email", "jean@example.com"),
            amount=fields.pop("amount", link.amount),
            **fields,
        )
        db.session.add(transaction)
        db.session.commit()
        return transaction

    return _make_transaction


@pytest.fixture()
def payment_body():
    def _payment_body(**overrides):
        body = {
            "customerName": "Jean Customer",
            "customerPhone": "0670000002",
            "customerEmail": "jean@example.com",
            "paymentProvider": "MTN",
        }
        body.update(overrides)
        return body

    return _payment_body

