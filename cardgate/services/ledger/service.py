"""Order ledger access used by checkout and the order endpoints."""

from decimal import Decimal

from sqlalchemy import select

from cardgate.common.errors import OrderNotFound, OrderNotPayable
from cardgate.common.logging import logger
from cardgate.common.state_machine import COMPLETED, PENDING, validate_transition
from cardgate.services.ledger.models import Order, OrderItem, OrderMeta, OrderNote


class OrderLedger:
    """Reads and mutates orders inside the caller's database session.

    The ledger never commits; the caller owns the transaction boundary.
    """

    def __init__(self, db) -> None:
        self.db = db

    def create_order(
        self,
        *,
        currency: str,
        items: list[dict],
        billing: dict,
        user_id: str | None = None,
        total: Decimal | None = None,
        order_number: str | None = None,
    ) -> Order:
        """Create a `pending` order; the total defaults to the sum of line totals."""

        lines = [
            OrderItem(
                name=item["name"],
                quantity=int(item.get("quantity", 1)),
                line_total=Decimal(str(item["line_total"])),
            )
            for item in items
        ]
        if total is None:
            total = sum((line.line_total for line in lines), Decimal("0"))
        order = Order(
            status=PENDING,
            total=total,
            currency=currency.upper(),
            user_id=user_id,
            billing_first_name=billing.get("first_name", ""),
            billing_last_name=billing.get("last_name", ""),
            billing_email=billing.get("email", ""),
            billing_postcode=billing.get("postcode", ""),
            items=lines,
        )
        self.db.add(order)
        self.db.flush()
        order.order_number = order_number or str(order.id)
        logger.info("order_created order_id=%s total=%s currency=%s", order.id, order.total, order.currency)
        return order

    def load_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFound(f"order {order_id} not found")
        return order

    def ensure_payable(self, order: Order) -> None:
        """Raise `OrderNotPayable` unless the order can still move to `completed`."""

        try:
            validate_transition(order.status, COMPLETED)
        except ValueError as exc:
            raise OrderNotPayable(f"order {order.id} is {order.status}") from exc

    def mark_complete(self, order: Order) -> None:
        """Move the order to `completed`; illegal transitions raise `ValueError`."""

        validate_transition(order.status, COMPLETED)
        order.status = COMPLETED

    def add_note(self, order: Order, text: str) -> OrderNote:
        note = OrderNote(note=text)
        order.notes.append(note)
        return note

    def set_meta(self, order: Order, key: str, value: str | None) -> None:
        """Insert or overwrite one meta value on the order."""

        row = self._meta_row(order, key)
        if row is None:
            self.db.add(OrderMeta(order_id=order.id, meta_key=key, meta_value=value))
        else:
            row.meta_value = value

    def get_meta(self, order: Order, key: str) -> str | None:
        row = self._meta_row(order, key)
        return row.meta_value if row is not None else None

    def all_meta(self, order: Order) -> dict[str, str | None]:
        rows = self.db.execute(select(OrderMeta).where(OrderMeta.order_id == order.id)).scalars().all()
        return {row.meta_key: row.meta_value for row in rows}

    def _meta_row(self, order: Order, key: str) -> OrderMeta | None:
        self.db.flush()
        return self.db.execute(
            select(OrderMeta).where(OrderMeta.order_id == order.id, OrderMeta.meta_key == key)
        ).scalar_one_or_none()
