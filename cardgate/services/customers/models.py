"""Customer store persistence model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from cardgate.common.db import Base, JSONType


class StoredCustomer(Base):
    """One store user's processor customer, kept separately for test and live mode."""

    __tablename__ = "stored_customers"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    livemode: Mapped[bool] = mapped_column(Boolean, primary_key=True)
    customer_id: Mapped[str] = mapped_column(String, index=True)
    default_card_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cards: Mapped[list] = mapped_column(JSONType, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
