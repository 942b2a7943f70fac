"""Stripe adapter: centralizes SDK calls and error translation.

Each call is made once with the configured secret key; failures surface as
`ProcessorError` carrying Stripe's error code.
"""

from contextlib import contextmanager
from typing import Any, Protocol

import stripe

from cardgate.common.errors import ProcessorError
from cardgate.common.logging import logger
from cardgate.common.metrics import processor_latency_seconds
from cardgate.services.customers.schemas import CardInfo
from cardgate.services.processor.schemas import ChargeReceipt, ChargeSpec, ProcessorCustomer


class PaymentProcessor(Protocol):
    """Remote charge/customer API consumed by the charge orchestrator."""

    def create_charge(self, spec: ChargeSpec) -> ChargeReceipt: ...

    def create_customer(self, token: str, email: str, description: str) -> ProcessorCustomer: ...

    def get_customer(self, customer_id: str) -> ProcessorCustomer: ...

    def add_card(self, customer_id: str, token: str) -> CardInfo: ...


def card_from_source(source: Any) -> CardInfo:
    """Map a Stripe card object (or dict) to `CardInfo`."""

    return CardInfo(
        id=source["id"],
        brand=source.get("brand") or source.get("type") or "",
        last4=source.get("last4") or "",
        exp_month=source.get("exp_month"),
        exp_year=source.get("exp_year"),
    )


def customer_from_stripe(customer: Any) -> ProcessorCustomer:
    sources = (customer.get("sources") or {}).get("data") or []
    return ProcessorCustomer(
        id=customer["id"],
        default_card=customer.get("default_source"),
        cards=[card_from_source(s) for s in sources if s.get("object", "card") == "card"],
    )


class StripeProcessor:
    """`PaymentProcessor` backed by the `stripe` SDK."""

    def __init__(self, secret_key: str, service_name: str = "cardgate") -> None:
        self.secret_key = secret_key
        self.service_name = service_name

    @contextmanager
    def _call(self, operation: str):
        """Time one SDK call and translate Stripe errors to `ProcessorError`."""

        with processor_latency_seconds.labels(service=self.service_name, operation=operation).time():
            try:
                yield
            except stripe.StripeError as exc:
                code = getattr(exc, "code", None) or "api_error"
                logger.warning("processor call failed operation=%s code=%s error=%s", operation, code, exc)
                raise ProcessorError(getattr(exc, "user_message", None) or str(exc), code=code) from exc

    def create_charge(self, spec: ChargeSpec) -> ChargeReceipt:
        params: dict[str, Any] = {
            "amount": spec.amount,
            "currency": spec.currency,
            "capture": spec.capture,
            "description": spec.description,
        }
        if spec.token:
            params["source"] = spec.token
        else:
            params["source"] = spec.card_id
            params["customer"] = spec.customer_id
        with self._call("create_charge"):
            charge = stripe.Charge.create(api_key=self.secret_key, **params)
        return ChargeReceipt(id=charge["id"])

    def create_customer(self, token: str, email: str, description: str) -> ProcessorCustomer:
        with self._call("create_customer"):
            customer = stripe.Customer.create(
                api_key=self.secret_key,
                source=token,
                email=email or None,
                description=description,
                expand=["sources"],
            )
        return customer_from_stripe(customer)

    def get_customer(self, customer_id: str) -> ProcessorCustomer:
        with self._call("get_customer"):
            customer = stripe.Customer.retrieve(customer_id, api_key=self.secret_key, expand=["sources"])
        if customer.get("deleted"):
            raise ProcessorError(f"customer {customer_id} was deleted", code="resource_missing")
        return customer_from_stripe(customer)

    def add_card(self, customer_id: str, token: str) -> CardInfo:
        with self._call("add_card"):
            card = stripe.Customer.create_source(customer_id, api_key=self.secret_key, source=token)
        return card_from_source(card)
