"""Shared fixtures: SQLite database, in-memory redis, and a scripted processor."""

import os
import tempfile
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="cardgate-tests-")
os.environ.setdefault("DATABASE_DSN", f"sqlite+pysqlite:///{_DB_DIR}/cardgate.db")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")

import pytest  # noqa: E402
import redis  # noqa: E402

from cardgate.common.db import Base, SessionLocal, engine  # noqa: E402
from cardgate.common.errors import ProcessorError  # noqa: E402
from cardgate.services.customers import models as customer_models  # noqa: E402,F401
from cardgate.services.customers.schemas import CardInfo  # noqa: E402
from cardgate.services.gateway.schemas import AuthenticatedUser, GatewayConfig, RequestContext  # noqa: E402
from cardgate.services.gateway.service import ChargeOrchestrator  # noqa: E402
from cardgate.services.gateway.session import CheckoutSession  # noqa: E402
from cardgate.services.ledger.service import OrderLedger  # noqa: E402
from cardgate.services.processor.schemas import ChargeReceipt, ProcessorCustomer  # noqa: E402


class InMemoryRedis:
    """The handful of redis commands the checkout session uses."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.values: dict[str, str] = {}

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hset(self, key, field=None, value=None, mapping=None):
        bucket = self.hashes.setdefault(key, {})
        if field is not None:
            bucket[field] = value
        bucket.update(mapping or {})

    def hdel(self, key, *fields):
        bucket = self.hashes.get(key, {})
        return sum(1 for field in fields if bucket.pop(field, None) is not None)

    def set(self, key, value):
        self.values[key] = value

    def get(self, key):
        return self.values.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.hashes.pop(key, None) is not None)
        return removed


class UnavailableRedis:
    """Redis client whose every command fails as if the server were down."""

    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise redis.ConnectionError("redis down")

        return _fail


class FakeProcessor:
    """Scripted `PaymentProcessor`: records every call, fails where told to."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.charges = []
        self.customers: dict[str, ProcessorCustomer] = {}
        self.fail: dict[str, str] = {}
        self._seq = 0

    def _next(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        code = self.fail.get(operation)
        if code:
            raise ProcessorError(f"{operation} rejected", code=code)

    def _card(self) -> CardInfo:
        return CardInfo(id=self._next("card"), brand="Visa", last4="4242", exp_month=12, exp_year=2030)

    def create_charge(self, spec):
        self._call("create_charge")
        self.charges.append(spec)
        return ChargeReceipt(id=self._next("ch"))

    def create_customer(self, token, email, description):
        self._call("create_customer")
        card = self._card()
        customer = ProcessorCustomer(id=self._next("cus"), default_card=card.id, cards=[card])
        self.customers[customer.id] = customer
        return customer

    def get_customer(self, customer_id):
        self._call("get_customer")
        if customer_id not in self.customers:
            raise ProcessorError(f"no such customer {customer_id}", code="resource_missing")
        return self.customers[customer_id]

    def add_card(self, customer_id, token):
        self._call("add_card")
        card = self._card()
        customer = self.customers[customer_id]
        self.customers[customer_id] = customer.model_copy(update={"cards": [*customer.cards, card]})
        return card


@pytest.fixture(autouse=True)
def db_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def rdb():
    return InMemoryRedis()


@pytest.fixture
def unavailable_redis():
    return UnavailableRedis()


@pytest.fixture
def checkout_session(rdb):
    rdb.hset("checkout:sess-1", mapping={"reload_checkout": "1", "order_awaiting_payment": "1"})
    rdb.set("cart:sess-1", '[{"id": "hoodie", "quantity": 1}]')
    return CheckoutSession(rdb, "sess-1")


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def config():
    return GatewayConfig(testmode=True, test_secret_key="sk_test_x", test_publishable_key="pk_test_x")


@pytest.fixture
def orchestrator(processor, config):
    return ChargeOrchestrator(SessionLocal, processor, config)


@pytest.fixture
def user():
    return AuthenticatedUser(id="42", login="jdoe", email="jdoe@example.com")


@pytest.fixture
def user_context(checkout_session, user):
    return RequestContext(session=checkout_session, user=user)


@pytest.fixture
def guest_context(checkout_session):
    return RequestContext(session=checkout_session, user=None)


@pytest.fixture
def make_order():
    """Create a committed pending order and return its id."""

    def _make(total="19.99", currency="USD", items=None, user_id="42"):
        if items is None:
            items = [{"name": "Hoodie", "quantity": 1, "line_total": total}]
        with SessionLocal() as db:
            order = OrderLedger(db).create_order(
                currency=currency,
                items=items,
                billing={"first_name": "Jane", "last_name": "Doe", "email": "jdoe@example.com", "postcode": "94107"},
                user_id=user_id,
                total=Decimal(total),
            )
            db.commit()
            return order.id

    return _make
