"""Shared pytest fixtures for test suite"""
import json
import pytest
import sys
from pathlib import Path
from typing import Generator
from unittest.mock import Mock, patch
import httpx
import stripe
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from billing.main import app
from billing.db.session import get_db
from billing.models import Base
from billing.models.zeus_subscription import ZeusSubscription
from billing.repositories.zeus_subscriptions import create_subscription
from billing.services.notification_service import ZeusNotificationClient


# SQLite in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine with StaticPool for in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_WEBHOOK_SECRET = "whsec_test123"
TEST_ZEUS_SECRET = "zeus_test_secret"
TEST_ZEUS_URL = "https://zeus.test"
TEST_SIGNATURE = "t=1700000000,v1=test_signature"


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh SQLite in-memory database session for each test"""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    # Create session
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """FastAPI test client with test database"""

    # Override get_db dependency to use test database
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close session here, handled by fixture

    app.dependency_overrides[get_db] = override_get_db

    try:
        # Tables come from db_session, not the production engine
        with patch('billing.main.init_db'):
            with TestClient(app) as test_client:
                yield test_client
    finally:
        # Cleanup - always clear overrides
        app.dependency_overrides.clear()


@pytest.fixture(scope="function", autouse=True)
def webhook_secret():
    """Configure a webhook secret for every test (tests for the missing secret override it)"""
    with patch('billing.core.config.settings.STRIPE_WEBHOOK_SECRET', TEST_WEBHOOK_SECRET):
        yield TEST_WEBHOOK_SECRET


@pytest.fixture(scope="function", autouse=True)
def mock_stripe():
    """Automatically mock Stripe for all tests so nothing reaches the real API.

    construct_event parses the payload as JSON, so tests post the event they
    want processed. Exception classes stay real so except clauses still match.
    """
    with patch('billing.services.stripe_service.stripe') as mock_stripe_module:
        mock_stripe_module.SignatureVerificationError = stripe.SignatureVerificationError
        mock_stripe_module.Webhook.construct_event = Mock(
            side_effect=lambda payload, sig_header, secret: json.loads(payload)
        )

        # Payment method retrieval (used when saving payment methods)
        mock_stripe_module.PaymentMethod.retrieve = Mock(return_value={
            "id": "pm_test123",
            "type": "card",
            "customer": "cus_test123",
            "card": {
                "brand": "visa",
                "last4": "4242",
                "exp_month": 12,
                "exp_year": 2030,
                "funding": "credit",
            },
        })

        # Customer operations
        mock_customer = {"id": "cus_test123", "email": "customer@example.com", "name": "Test Customer"}
        mock_stripe_module.Customer.list = Mock(return_value=Mock(data=[]))
        mock_stripe_module.Customer.create = Mock(return_value=mock_customer)

        # PaymentIntent operations
        mock_stripe_module.PaymentIntent.create = Mock(return_value=Mock(
            id="pi_test123",
            amount=2000,
            currency="usd",
            status="requires_payment_method",
            client_secret="pi_test123_secret_abc",
            customer=None,
            description=None,
            metadata={},
            created=1700000000,
            payment_method=None
        ))
        mock_stripe_module.PaymentIntent.confirm = Mock(return_value=Mock(
            id="pi_test123",
            amount=2000,
            currency="usd",
            status="succeeded",
            client_secret="pi_test123_secret_abc",
            customer=None,
            description=None,
            metadata={},
            created=1700000000,
            payment_method="pm_card_visa"
        ))

        yield mock_stripe_module


class ZeusRecorder:
    """Records requests sent to Zeus through an httpx.MockTransport"""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def payloads(self):
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture(scope="function")
def zeus() -> ZeusRecorder:
    return ZeusRecorder()


@pytest.fixture(scope="function")
def zeus_notifier(zeus: ZeusRecorder) -> ZeusNotificationClient:
    return ZeusNotificationClient(
        base_url=TEST_ZEUS_URL,
        secret=TEST_ZEUS_SECRET,
        timeout=1.0,
        transport=httpx.MockTransport(zeus.handler)
    )


@pytest.fixture(scope="function", autouse=True)
def default_zeus_notifier(zeus_notifier: ZeusNotificationClient):
    """Route every webhook processed in tests to the recording Zeus transport"""
    with patch('billing.services.webhook_service.get_zeus_notifier', return_value=zeus_notifier):
        yield zeus_notifier


@pytest.fixture(scope="function")
def make_event():
    """Factory for Stripe event envelopes"""
    def _make_event(event_id: str, event_type: str, obj: dict) -> dict:
        return {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "created": 1700000000,
            "data": {"object": obj},
        }
    return _make_event


@pytest.fixture(scope="function")
def make_payment_intent():
    """Factory for Stripe PaymentIntent payloads"""
    def _make_payment_intent(payment_intent_id: str = "pi_1", status: str = "succeeded", **overrides) -> dict:
        payment_intent = {
            "id": payment_intent_id,
            "object": "payment_intent",
            "amount": 2000,
            "currency": "usd",
            "status": status,
            "customer": None,
            "description": None,
            "metadata": {},
            "client_secret": f"{payment_intent_id}_secret_abc",
            "created": 1700000000,
            "payment_method": None,
            "last_payment_error": None,
            "cancellation_reason": None,
        }
        payment_intent.update(overrides)
        return payment_intent
    return _make_payment_intent


@pytest.fixture(scope="function")
def post_webhook(client: TestClient):
    """POST an event to the Stripe webhook endpoint with a (mocked) valid signature"""
    def _post_webhook(event: dict, signature: str = TEST_SIGNATURE):
        headers = {"Content-Type": "application/json"}
        if signature:
            headers["stripe-signature"] = signature
        return client.post("/api/v1/webhooks/stripe", content=json.dumps(event), headers=headers)
    return _post_webhook


@pytest.fixture(scope="function")
def zeus_subscription(db_session: Session) -> ZeusSubscription:
    """Pending Zeus subscription waiting on payment intent pi_1"""
    return create_subscription(
        subscription_id=123,
        user_id=456,
        payment_intent_id="pi_1",
        amount=2000,
        customer_email="fan@example.com",
        db=db_session,
        customer_name="Test Fan",
        sport_id=1,
        team_id=42,
        subscription_type="premium"
    )


@pytest.fixture(scope="function")
def session_factory(db_session: Session):
    """Factory for additional sessions on the same test database"""
    return TestSessionLocal
