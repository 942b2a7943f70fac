"""HTTP surface for checkout payments, orders, and gateway administration.

The storefront authenticates shoppers itself and forwards the user in
`X-User-*` headers and the shopper session in `X-Checkout-Session`.
"""

from time import perf_counter
from uuid import uuid4

import redis
from fastapi import Depends, FastAPI, Header, HTTPException, Request

from cardgate.common.config import settings
from cardgate.common.db import SessionLocal
from cardgate.common.errors import OrderNotFound
from cardgate.common.logging import configure_logging, logger, trace_id_ctx
from cardgate.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from cardgate.common.startup import log_startup_config
from cardgate.common.tracing import instrument_app, setup_tracing
from cardgate.services.customers.service import CustomerStore
from cardgate.services.gateway.errors import GENERIC_TRANSACTION_MESSAGE
from cardgate.services.gateway.schemas import AuthenticatedUser, CheckoutForm, GatewayConfig, RequestContext
from cardgate.services.gateway.service import ChargeOrchestrator
from cardgate.services.gateway.session import CheckoutSession
from cardgate.services.ledger.models import Order
from cardgate.services.ledger.schemas import OrderCreateRequest, OrderResponse
from cardgate.services.ledger.service import OrderLedger
from cardgate.services.processor.service import StripeProcessor

configure_logging()
setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
log_startup_config(settings)

gateway_config = GatewayConfig.from_settings(settings)
orchestrator = ChargeOrchestrator(
    SessionLocal,
    StripeProcessor(gateway_config.secret_key, service_name=settings.service_name),
    gateway_config,
    service_name=settings.service_name,
)
rdb = redis.Redis.from_url(settings.redis_url, decode_responses=True)

app = FastAPI(title="CardGate")
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def get_config() -> GatewayConfig:
    return gateway_config


def get_orchestrator() -> ChargeOrchestrator:
    return orchestrator


def get_redis() -> redis.Redis:
    return rdb


def get_db():
    with SessionLocal() as db:
        yield db


def enforce_api_key(x_api_key: str | None = Header(default=None)) -> None:
    """Reject requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def current_user(
    x_user_id: str | None = Header(default=None),
    x_user_login: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> AuthenticatedUser | None:
    if not x_user_id:
        return None
    return AuthenticatedUser(id=x_user_id, login=x_user_login or "", email=x_user_email or "")


def require_available(request: Request, config: GatewayConfig = Depends(get_config)) -> GatewayConfig:
    """Answer 503 when the gateway cannot take card payments for this request."""

    secure = request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"
    if not config.is_available(secure):
        raise HTTPException(status_code=503, detail="card payments are unavailable")
    return config


def _order_response(ledger: OrderLedger, order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        order_number=order.order_number,
        order_key=order.order_key,
        status=order.status,
        total=order.total,
        currency=order.currency,
        notes=[note.note for note in order.notes],
        meta=ledger.all_meta(order),
    )


@app.post("/orders", response_model=OrderResponse, dependencies=[Depends(enforce_api_key)])
def create_order(req: OrderCreateRequest, db=Depends(get_db)):
    """Create a `pending` order for the storefront."""

    ledger = OrderLedger(db)
    order = ledger.create_order(
        currency=req.currency,
        items=[item.model_dump() for item in req.items],
        billing=req.billing.model_dump(),
        user_id=req.user_id,
        total=req.total,
        order_number=req.order_number,
    )
    db.commit()
    return _order_response(ledger, order)


@app.get("/orders/{order_id}", response_model=OrderResponse, dependencies=[Depends(enforce_api_key)])
def get_order(order_id: int, db=Depends(get_db)):
    """Fetch status, notes and payment meta for one order."""

    ledger = OrderLedger(db)
    try:
        order = ledger.load_order(order_id)
    except OrderNotFound as exc:
        raise HTTPException(status_code=404, detail="order not found") from exc
    return _order_response(ledger, order)


@app.post("/orders/{order_id}/payment", dependencies=[Depends(require_available)])
def process_payment(
    order_id: int,
    form: CheckoutForm,
    user: AuthenticatedUser | None = Depends(current_user),
    x_checkout_session: str = Header(default=""),
    service: ChargeOrchestrator = Depends(get_orchestrator),
    rdb: redis.Redis = Depends(get_redis),
):
    """Charge the order once; failures come back as messages, never as 5xx."""

    context = RequestContext(session=CheckoutSession(rdb, x_checkout_session or "guest"), user=user)
    outcome = service.process_payment(order_id, form, context)
    if outcome.status == "success":
        return {"result": "success", "redirect": outcome.redirect}
    return {
        "result": "failure",
        "code": outcome.code,
        "messages": [outcome.message or GENERIC_TRANSACTION_MESSAGE],
    }


@app.get("/checkout/config")
def checkout_config(
    order_id: int | None = None,
    key: str | None = None,
    user: AuthenticatedUser | None = Depends(current_user),
    config: GatewayConfig = Depends(require_available),
    db=Depends(get_db),
):
    """Values the checkout page needs to render the card form and saved cards."""

    cards = []
    if user is not None and config.saved_cards:
        record = CustomerStore(db, livemode=not config.testmode).get(user.id)
        if record is not None:
            cards = [
                {
                    "index": index,
                    "brand": card.brand,
                    "last4": card.last4,
                    "exp_month": card.exp_month,
                    "exp_year": card.exp_year,
                    "default": card.id == record.default_card_id,
                }
                for index, card in enumerate(record.cards)
            ]
    payload = {
        "title": config.title,
        "description": config.description,
        "publishable_key": config.publishable_key,
        "saved_cards_enabled": config.saved_cards,
        "additional_fields": config.additional_fields,
        "has_card": bool(cards),
        "cards": cards,
    }
    # Pay-for-order page: the card form needs the order's billing details.
    if order_id is not None and key:
        order = db.get(Order, order_id)
        if order is not None and order.order_key == key:
            payload["billing_name"] = order.billing_name
            payload["billing_postcode"] = order.billing_postcode
    return payload


@app.delete("/admin/test-data", dependencies=[Depends(enforce_api_key)])
def delete_test_data(confirm: str | None = None, db=Depends(get_db)):
    """Delete every test-mode saved customer; requires `confirm=yes`."""

    if confirm != "yes":
        raise HTTPException(
            status_code=400,
            detail="Are you sure you want to delete all test data? This action cannot be undone. Pass confirm=yes.",
        )
    deleted = CustomerStore(db, livemode=False).delete_test_data()
    db.commit()
    logger.info("admin deleted test customer data rows=%s", deleted)
    return {"deleted": deleted}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
