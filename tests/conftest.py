import os

# przed importem fluxcart - settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["MEILI_URL"] = ""
os.environ["EMAIL_SERVER"] = ""
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"

import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

import fluxcart.data.models  # noqa: F401
from fluxcart.api.deps import get_gateway, get_lock_service, get_notifier
from fluxcart.data.database import Base, SessionLocal, engine, get_db
from fluxcart.data.models.product import ProductModel, RentalPolicyModel
from fluxcart.domain.checkout import PaymentSession, PaymentSessionStatus
from fluxcart.domain.errors import PaymentVerificationError
from fluxcart.main import app
from fluxcart.services.user_service import UserService
from fluxcart.utils.clock import utcnow


class FakeGateway:
    """Operator platnosci w pamieci."""

    def __init__(self):
        self.sessions = {}
        self._counter = 0

    def create_session(self, lines, metadata, success_url, cancel_url):
        self._counter += 1
        ref = f"cs_test_{self._counter}"
        self.sessions[ref] = {"metadata": dict(metadata), "status": "unpaid", "lines": list(lines)}
        return PaymentSession(reference=ref, url=f"https://pay.example/{ref}")

    def mark_paid(self, ref):
        self.sessions[ref]["status"] = "paid"

    def retrieve_session(self, reference):
        session = self.sessions.get(reference)
        if session is None:
            raise PaymentVerificationError(f"Unknown payment session {reference}")
        return PaymentSessionStatus(
            reference=reference,
            paid=session["status"] == "paid",
            payment_status=session["status"],
            metadata=session["metadata"],
        )

    def construct_event(self, payload, signature):
        if signature != "valid-signature":
            raise PaymentVerificationError("Bad signature")
        return json.loads(payload)

    def completed_event(self, ref):
        session = self.sessions[ref]
        return {
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": ref,
                    "payment_status": session["status"],
                    "metadata": session["metadata"],
                }
            },
        }


class FakeLocks:
    def __init__(self):
        self.held = {}

    def acquire(self, key, token, ttl):
        if key in self.held:
            return False
        self.held[key] = token
        return True

    def release(self, key, token):
        if self.held.get(key) == token:
            del self.held[key]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.receipts = []
        self.outcomes = []

    def send_order_receipt(self, order_id):
        self.receipts.append(order_id)

    def send_group_buy_outcome(self, group_buy_id, status):
        self.outcomes.append((group_buy_id, status))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def locks():
    return FakeLocks()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(db, notifier, locks):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway] = lambda: None
    app.dependency_overrides[get_lock_service] = lambda: locks
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def paid_client(client, gateway):
    """Klient z skonfigurowanym operatorem platnosci."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    return client


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price_cents=50000, title=None, category=None, rental=None, **kw):
        counter["n"] += 1
        n = counter["n"]
        product = ProductModel(
            slug=kw.pop("slug", f"product-{n}"),
            title=title or f"Product {n}",
            description=kw.pop("description", f"Description of product {n}"),
            price_cents=price_cents,
            currency=kw.pop("currency", "INR"),
            rating=4.5,
            images=[f"https://img.example/{n}.jpg"],
            stock=10,
            category=category,
            **kw,
        )
        if rental:
            product.rental_policy = RentalPolicyModel(**rental)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def ctx_for(db):
    def _ctx(identifier):
        return UserService(db).context_for(identifier)

    return _ctx


ALICE = {"X-User-Id": "alice@example.com"}
BOB = {"X-User-Id": "bob@example.com"}


def later(minutes=60):
    return utcnow() + timedelta(minutes=minutes)
