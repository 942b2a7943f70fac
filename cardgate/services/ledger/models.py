"""Order ledger database models.

Orders are the host store's record of a purchase. The gateway only appends
notes, writes payment meta, and moves an order to `completed`.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cardgate.common.db import Base


class Order(Base):
    """Current state of one storefront order."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str | None] = mapped_column(String, unique=True, index=True, nullable=True)
    order_key: Mapped[str] = mapped_column(String, default=lambda: f"wc_order_{uuid4().hex[:13]}")
    status: Mapped[str] = mapped_column(String, index=True)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(3))
    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    billing_first_name: Mapped[str] = mapped_column(String, default="")
    billing_last_name: Mapped[str] = mapped_column(String, default="")
    billing_email: Mapped[str] = mapped_column(String, default="")
    billing_postcode: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    items: Mapped[list["OrderItem"]] = relationship(order_by="OrderItem.id", lazy="selectin")
    notes: Mapped[list["OrderNote"]] = relationship(order_by="OrderNote.id", lazy="selectin")

    @property
    def billing_name(self) -> str:
        return f"{self.billing_first_name} {self.billing_last_name}".strip()


class OrderItem(Base):
    """One purchased line of an order."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    name: Mapped[str] = mapped_column(String)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2))


class OrderNote(Base):
    """Append-only audit note shown on the order."""

    __tablename__ = "order_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    note: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class OrderMeta(Base):
    """Key/value payment data attached to an order (transaction id, capture flag)."""

    __tablename__ = "order_meta"
    __table_args__ = (UniqueConstraint("order_id", "meta_key", name="uq_order_meta_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    meta_key: Mapped[str] = mapped_column(String)
    meta_value: Mapped[str | None] = mapped_column(Text, nullable=True)
