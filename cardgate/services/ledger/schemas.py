"""API request/response schemas for order endpoints."""

from decimal import Decimal

from pydantic import BaseModel, Field


class OrderItemIn(BaseModel):
    name: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    line_total: Decimal = Field(ge=0)


class BillingIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    postcode: str = ""


class OrderCreateRequest(BaseModel):
    """Order placed by the storefront before payment."""

    currency: str = Field(min_length=3, max_length=3)
    items: list[OrderItemIn] = Field(default_factory=list)
    billing: BillingIn = Field(default_factory=BillingIn)
    user_id: str | None = None
    total: Decimal | None = Field(default=None, ge=0)
    order_number: str | None = None


class OrderResponse(BaseModel):
    order_id: int
    order_number: str | None
    order_key: str
    status: str
    total: Decimal
    currency: str
    notes: list[str] = Field(default_factory=list)
    meta: dict[str, str | None] = Field(default_factory=dict)
