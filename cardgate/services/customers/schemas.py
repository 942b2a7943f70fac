"""Saved-card values mirrored from the processor."""

from pydantic import BaseModel, Field, model_validator


class CardInfo(BaseModel):
    """Display-safe summary of one card stored at the processor."""

    id: str = Field(min_length=1)
    brand: str = ""
    last4: str = ""
    exp_month: int | None = None
    exp_year: int | None = None


class CustomerRecord(BaseModel):
    """Processor customer id plus the user's saved cards, in the order they were added."""

    customer_id: str = Field(min_length=1)
    cards: list[CardInfo] = Field(default_factory=list)
    default_card_id: str | None = None

    @model_validator(mode="after")
    def _default_card_is_saved(self) -> "CustomerRecord":
        if self.cards and self.default_card_id not in {card.id for card in self.cards}:
            raise ValueError("default_card_id must reference a saved card")
        return self

    def with_card(self, card: CardInfo) -> "CustomerRecord":
        """Return a copy with `card` appended and made the default."""

        return CustomerRecord(
            customer_id=self.customer_id,
            cards=[*self.cards, card],
            default_card_id=card.id,
        )

    def with_default(self, card_id: str) -> "CustomerRecord":
        return CustomerRecord(customer_id=self.customer_id, cards=list(self.cards), default_card_id=card_id)
