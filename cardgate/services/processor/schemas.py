"""Request/response shapes exchanged with the payment processor."""

from pydantic import BaseModel, Field, model_validator

from cardgate.services.customers.schemas import CardInfo


class ChargeSpec(BaseModel):
    """One charge as dispatched to the processor.

    Exactly one source is set: a one-time `token`, or a saved `card_id` on `customer_id`.
    """

    amount: int = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3)
    capture: bool = True
    description: str = ""
    token: str | None = None
    customer_id: str | None = None
    card_id: str | None = None

    @model_validator(mode="after")
    def _one_source(self) -> "ChargeSpec":
        saved = bool(self.customer_id and self.card_id)
        if bool(self.token) == saved:
            raise ValueError("exactly one of token or customer_id+card_id is required")
        if self.currency != self.currency.lower():
            raise ValueError("currency must be lowercase")
        return self


class ChargeReceipt(BaseModel):
    """Processor acknowledgement of an accepted charge."""

    id: str


class ProcessorCustomer(BaseModel):
    """Customer as currently known to the processor."""

    id: str
    default_card: str | None = None
    cards: list[CardInfo] = Field(default_factory=list)
