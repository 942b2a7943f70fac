"""Charge orchestration for one checkout submission.

Loads the order, resolves the payment source (one-time token or a saved card
on the user's processor customer), submits a single charge, and records the
outcome on the order. Failures never leave a transaction id on the order.
"""

import redis

from cardgate.common.errors import FormValidationError, GatewayError, MissingPaymentSource, OrderNotFound
from cardgate.common.logging import logger, mode_ctx, order_id_ctx, user_id_ctx
from cardgate.common.metrics import (
    cards_added_total,
    charge_failure_total,
    charge_requests_total,
    charge_success_total,
    customers_created_total,
)
from cardgate.common.state_machine import COMPLETED
from cardgate.common.tracing import charge_span
from cardgate.services.customers.schemas import CardInfo, CustomerRecord
from cardgate.services.customers.service import CustomerStore
from cardgate.services.gateway.errors import failure_message
from cardgate.services.gateway.schemas import (
    AuthenticatedUser,
    ChargeFailure,
    ChargeRequest,
    ChargeResult,
    ChargeSuccess,
    CheckoutForm,
    GatewayConfig,
    PaymentOutcome,
    RequestContext,
    to_minor_units,
)
from cardgate.services.gateway.session import CheckoutSession
from cardgate.services.ledger.models import Order
from cardgate.services.ledger.service import OrderLedger
from cardgate.services.processor.schemas import ChargeSpec
from cardgate.services.processor.service import PaymentProcessor


class ChargeOrchestrator:
    """Runs exactly one synchronous charge attempt per call to `process_payment`."""

    def __init__(
        self,
        session_factory,
        processor: PaymentProcessor,
        config: GatewayConfig,
        service_name: str = "cardgate",
    ) -> None:
        self.session_factory = session_factory
        self.processor = processor
        self.config = config
        self.service_name = service_name

    def process_payment(self, order_id: int, form: CheckoutForm, context: RequestContext) -> PaymentOutcome:
        """Charge the order and return a redirect on success or a message on failure.

        The ledger outcome is committed before the checkout session is touched, so
        a redis failure can never undo a recorded charge.
        """

        user_id = context.user.id if context.user else None
        order_id_ctx.set(str(order_id))
        user_id_ctx.set(user_id or "")
        mode_ctx.set("test" if self.config.testmode else "live")
        charge_requests_total.labels(service=self.service_name).inc()
        with charge_span(order_id, not self.config.testmode, user_id), self.session_factory() as db:
            ledger = OrderLedger(db)
            try:
                order = ledger.load_order(order_id)
            except OrderNotFound as exc:
                logger.warning("charge_failed order_id=%s code=%s", order_id, exc.code)
                charge_failure_total.labels(service=self.service_name, code=exc.code).inc()
                return self._outcome(ChargeFailure(exc.code, failure_message(exc)))

            result = self._send_to_processor(ledger, order, form, context)
            if isinstance(result, ChargeSuccess):
                self._record_charge(ledger, order, result)
                clear_session = self.complete_order(ledger, order, result.transaction_id)
            else:
                clear_session = self._payment_failed(ledger, order, result)
            db.commit()

        if clear_session:
            self._finish_session(context.session, result)
        return self._outcome(result, order)

    def _send_to_processor(
        self, ledger: OrderLedger, order: Order, form: CheckoutForm, context: RequestContext
    ) -> ChargeResult:
        try:
            ledger.ensure_payable(order)
            request = self.build_request(order, form, context.user)
            customer_id = None
            if context.user is not None and self.config.saved_cards:
                store = CustomerStore(ledger.db, livemode=not self.config.testmode)
                card_id, customer_id = self.resolve_customer(store, request, context.user)
                # Saved-card bookkeeping persists even if the charge below fails.
                ledger.db.commit()
                source = {"customer_id": customer_id, "card_id": card_id}
            elif request.token:
                source = {"token": request.token}
            else:
                raise MissingPaymentSource("no card token submitted")

            spec = ChargeSpec(
                amount=request.amount,
                currency=request.currency,
                capture=request.capture_immediately,
                description=self.charge_description(order),
                **source,
            )
            receipt = self.processor.create_charge(spec)
        except GatewayError as exc:
            logger.warning("charge_failed order_id=%s code=%s error=%s", order.id, exc.code, exc)
            return ChargeFailure(exc.code, failure_message(exc))
        logger.info("charge_succeeded order_id=%s transaction_id=%s", order.id, receipt.id)
        return ChargeSuccess(receipt.id, customer_id)

    def build_request(self, order: Order, form: CheckoutForm, user: AuthenticatedUser | None) -> ChargeRequest:
        """Validate the submitted form and normalize amount and currency from the order."""

        if form.form_errors:
            raise FormValidationError("checkout form reported errors")
        if self.config.additional_fields and not (form.billing_name.strip() and form.billing_zip.strip()):
            raise FormValidationError("name on card and billing zip are required")

        request = ChargeRequest(
            amount=to_minor_units(order.total),
            currency=order.currency.lower(),
            capture_immediately=self.config.capture_immediately,
            token=form.stripe_token.strip(),
            chosen_card=form.chosen_card,
            billing_name=order.billing_name,
            billing_email=order.billing_email,
        )
        if user is not None:
            request.customer_description = f"{user.login} (#{user.id} - {user.email}) {request.billing_name}"
        return request

    def charge_description(self, order: Order) -> str:
        product_name = order.items[0].name if order.items else "Purchases"
        return f"Payment for {product_name} (Order: {order.order_number})"

    def resolve_customer(
        self, store: CustomerStore, request: ChargeRequest, user: AuthenticatedUser
    ) -> tuple[str, str]:
        """Return `(card_id, customer_id)` for the user, creating or extending their record.

        Whether a token is needed is decided before any processor call, so a
        missing token fails without touching the network.
        """

        record = store.get(user.id)
        description = request.customer_description or ""

        if record is None:
            if not request.token:
                raise MissingPaymentSource("a card token is required to save a new customer")
            customer = self.processor.create_customer(request.token, request.billing_email, description)
            card_id = customer.default_card or (customer.cards[0].id if customer.cards else None)
            if not card_id:
                raise MissingPaymentSource(f"customer {customer.id} has no default card")
            cards = [card for card in customer.cards if card.id == card_id] or [CardInfo(id=card_id)]
            store.put(user.id, CustomerRecord(customer_id=customer.id, cards=cards, default_card_id=card_id))
            customers_created_total.labels(service=self.service_name).inc()
            logger.info("customer_created customer_id=%s card_id=%s", customer.id, card_id)
            return card_id, customer.id

        adding = not record.cards or request.chosen_card == "new"
        if adding and not request.token:
            raise MissingPaymentSource("a card token is required to add a card")
        if not adding and not 0 <= request.chosen_card < len(record.cards):
            raise MissingPaymentSource(f"saved card index {request.chosen_card} does not exist")

        # Refresh from the processor in case the local record drifted.
        customer = self.processor.get_customer(record.customer_id)

        if adding:
            card = self.processor.add_card(customer.id, request.token)
            updated = record.with_card(card).model_copy(update={"customer_id": customer.id})
            store.put(user.id, updated)
            cards_added_total.labels(service=self.service_name).inc()
            logger.info("card_added customer_id=%s card_id=%s", customer.id, card.id)
            return card.id, customer.id

        card = record.cards[request.chosen_card]
        if card.id != record.default_card_id:
            store.put(user.id, record.with_default(card.id))
        return card.id, customer.id

    def _record_charge(self, ledger: OrderLedger, order: Order, result: ChargeSuccess) -> None:
        ledger.set_meta(order, "_transaction_id", result.transaction_id)
        ledger.set_meta(order, "capture", "true" if self.config.capture_immediately else "false")
        if result.customer_id:
            ledger.set_meta(order, "customer_id", result.customer_id)

    def complete_order(self, ledger: OrderLedger, order: Order, transaction_id: str) -> bool:
        """Mark the order paid; returns False and does nothing if it is already completed."""

        if order.status == COMPLETED:
            return False
        ledger.mark_complete(order)
        ledger.add_note(
            order, f'{self.config.method_title} payment completed with Transaction Id of "{transaction_id}"'
        )
        charge_success_total.labels(service=self.service_name).inc()
        return True

    def _payment_failed(self, ledger: OrderLedger, order: Order, result: ChargeFailure) -> bool:
        charge_failure_total.labels(service=self.service_name, code=result.code).inc()
        if result.code == FormValidationError.code:
            return False
        ledger.add_note(
            order, f'{self.config.method_title} Credit Card Payment Failed with message: "{result.message}"'
        )
        return True

    def _finish_session(self, session: CheckoutSession, result: ChargeResult) -> None:
        """Clear checkout session markers once the outcome is committed."""

        try:
            if isinstance(result, ChargeSuccess):
                session.empty_cart()
                session.clear_order_awaiting_payment()
            else:
                session.clear_reload_checkout()
        except redis.RedisError as exc:
            logger.warning("checkout session not cleared session_id=%s error=%s", session.session_id, exc)

    def _outcome(self, result: ChargeResult, order: Order | None = None) -> PaymentOutcome:
        if isinstance(result, ChargeSuccess):
            return PaymentOutcome(status="success", redirect=self.return_url(order))
        return PaymentOutcome(status="failure", message=result.message, code=result.code)

    def return_url(self, order: Order) -> str:
        return f"{self.config.store_url}/checkout/order-received/{order.id}/?key={order.order_key}"
