"""Validation rules on gateway inputs and processor payloads."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from cardgate.services.customers.schemas import CardInfo, CustomerRecord
from cardgate.services.gateway.schemas import CheckoutForm, GatewayConfig, to_minor_units
from cardgate.services.processor.schemas import ChargeSpec


@pytest.mark.parametrize(
    "total,expected",
    [("19.99", 1999), ("0.005", 1), ("0.004", 0), ("10", 1000), ("-3.00", 0), (Decimal("1234.565"), 123457)],
)
def test_to_minor_units_rounds_half_up(total, expected):
    assert to_minor_units(total) == expected


@pytest.mark.parametrize("raw,parsed", [("new", "new"), ("NEW", "new"), ("2", 2), (1, 1), ("", 0), (None, 0)])
def test_chosen_card_parsing(raw, parsed):
    assert CheckoutForm(chosen_card=raw).chosen_card == parsed


def test_chosen_card_rejects_garbage():
    with pytest.raises(ValidationError):
        CheckoutForm(chosen_card="second")


def test_charge_spec_requires_exactly_one_source():
    ChargeSpec(amount=100, currency="usd", token="tok_1")
    ChargeSpec(amount=100, currency="usd", customer_id="cus_1", card_id="card_1")
    with pytest.raises(ValidationError):
        ChargeSpec(amount=100, currency="usd")
    with pytest.raises(ValidationError):
        ChargeSpec(amount=100, currency="usd", token="tok_1", customer_id="cus_1", card_id="card_1")
    with pytest.raises(ValidationError):
        ChargeSpec(amount=100, currency="usd", customer_id="cus_1")


def test_charge_spec_currency_and_amount():
    with pytest.raises(ValidationError):
        ChargeSpec(amount=100, currency="USD", token="tok_1")
    with pytest.raises(ValidationError):
        ChargeSpec(amount=-1, currency="usd", token="tok_1")


def test_keys_follow_test_mode():
    config = GatewayConfig(
        test_secret_key="sk_test",
        test_publishable_key="pk_test",
        live_secret_key="sk_live",
        live_publishable_key="pk_live",
    )
    assert (config.secret_key, config.publishable_key) == ("sk_live", "pk_live")
    test_config = config.model_copy(update={"testmode": True})
    assert (test_config.secret_key, test_config.publishable_key) == ("sk_test", "pk_test")


def test_capture_follows_charge_type():
    assert GatewayConfig().capture_immediately is True
    assert GatewayConfig(charge_type="authorize").capture_immediately is False


def test_availability():
    live = GatewayConfig(live_secret_key="sk_live", live_publishable_key="pk_live")
    assert live.is_available(secure=True)
    assert not live.is_available(secure=False)
    assert not live.model_copy(update={"enabled": False}).is_available(secure=True)
    assert not GatewayConfig().is_available(secure=True)
    assert GatewayConfig(testmode=True, test_secret_key="sk_test").is_available(secure=False)


def test_customer_record_default_must_be_saved():
    card = CardInfo(id="card_1")
    CustomerRecord(customer_id="cus_1")
    with pytest.raises(ValidationError):
        CustomerRecord(customer_id="cus_1", cards=[card], default_card_id="card_9")


def test_with_card_appends_and_defaults():
    record = CustomerRecord(customer_id="cus_1", cards=[CardInfo(id="card_1")], default_card_id="card_1")

    updated = record.with_card(CardInfo(id="card_2"))

    assert [card.id for card in updated.cards] == ["card_1", "card_2"]
    assert updated.default_card_id == "card_2"
    assert record.default_card_id == "card_1"
    assert updated.with_default("card_1").default_card_id == "card_1"
