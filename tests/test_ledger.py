"""Order ledger behaviour against the test database."""

from decimal import Decimal

import pytest

from cardgate.common.db import SessionLocal
from cardgate.common.errors import OrderNotFound, OrderNotPayable
from cardgate.common.state_machine import CANCELLED, COMPLETED, PENDING
from cardgate.services.ledger.service import OrderLedger


def test_create_order_defaults():
    with SessionLocal() as db:
        ledger = OrderLedger(db)
        order = ledger.create_order(
            currency="eur",
            items=[{"name": "Mug", "quantity": 2, "line_total": "8.00"}, {"name": "Tea", "line_total": "4.50"}],
            billing={"first_name": "Ada", "last_name": "Lovelace"},
        )
        db.commit()

        loaded = ledger.load_order(order.id)
        assert loaded.status == PENDING
        assert loaded.total == Decimal("12.50")
        assert loaded.currency == "EUR"
        assert loaded.order_number == str(order.id)
        assert loaded.order_key.startswith("wc_order_")
        assert loaded.billing_name == "Ada Lovelace"
        assert [item.name for item in loaded.items] == ["Mug", "Tea"]


def test_load_missing_order_raises():
    with SessionLocal() as db:
        with pytest.raises(OrderNotFound):
            OrderLedger(db).load_order(12345)


def test_set_meta_overwrites(make_order):
    order_id = make_order()
    with SessionLocal() as db:
        ledger = OrderLedger(db)
        order = ledger.load_order(order_id)
        ledger.set_meta(order, "_transaction_id", "ch_1")
        ledger.set_meta(order, "_transaction_id", "ch_2")
        db.commit()

        assert ledger.get_meta(order, "_transaction_id") == "ch_2"
        assert ledger.get_meta(order, "capture") is None
        assert ledger.all_meta(order) == {"_transaction_id": "ch_2"}


def test_notes_are_appended_in_order(make_order):
    order_id = make_order()
    with SessionLocal() as db:
        ledger = OrderLedger(db)
        order = ledger.load_order(order_id)
        ledger.add_note(order, "first")
        ledger.add_note(order, "second")
        db.commit()

    with SessionLocal() as db:
        assert [note.note for note in OrderLedger(db).load_order(order_id).notes] == ["first", "second"]


def test_cancelled_order_cannot_be_completed(make_order):
    order_id = make_order()
    with SessionLocal() as db:
        ledger = OrderLedger(db)
        order = ledger.load_order(order_id)
        order.status = CANCELLED
        with pytest.raises(ValueError):
            ledger.mark_complete(order)

        order.status = PENDING
        ledger.mark_complete(order)
        assert order.status == COMPLETED


@pytest.mark.parametrize("status", [COMPLETED, CANCELLED])
def test_only_pending_orders_are_payable(make_order, status):
    order_id = make_order()
    with SessionLocal() as db:
        ledger = OrderLedger(db)
        order = ledger.load_order(order_id)
        ledger.ensure_payable(order)

        order.status = status
        with pytest.raises(OrderNotPayable):
            ledger.ensure_payable(order)
