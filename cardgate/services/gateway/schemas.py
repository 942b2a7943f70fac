"""Gateway configuration, checkout inputs, and charge outcomes."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

from cardgate.common.config import CommonSettings
from cardgate.services.gateway.session import CheckoutSession


class GatewayConfig(BaseModel):
    """Gateway settings passed explicitly to the orchestrator and endpoints."""

    enabled: bool = True
    title: str = "Credit Card Payment"
    description: str = ""
    method_title: str = "Stripe"
    charge_type: Literal["capture", "authorize"] = "capture"
    additional_fields: bool = False
    saved_cards: bool = True
    testmode: bool = False
    test_secret_key: str = ""
    test_publishable_key: str = ""
    live_secret_key: str = ""
    live_publishable_key: str = ""
    store_url: str = "http://localhost:8000"

    @classmethod
    def from_settings(cls, settings: CommonSettings) -> "GatewayConfig":
        return cls(**{name: getattr(settings, name) for name in cls.model_fields})

    @property
    def secret_key(self) -> str:
        return self.test_secret_key if self.testmode else self.live_secret_key

    @property
    def publishable_key(self) -> str:
        return self.test_publishable_key if self.testmode else self.live_publishable_key

    @property
    def capture_immediately(self) -> bool:
        return self.charge_type == "capture"

    def is_available(self, secure: bool) -> bool:
        """Whether checkout may offer this gateway for a request."""

        if not self.enabled:
            return False
        if not self.publishable_key and not self.secret_key:
            return False
        # Live card data is only accepted over HTTPS.
        if not secure and not self.testmode:
            return False
        return True


class CheckoutForm(BaseModel):
    """Fields submitted with the checkout form."""

    stripe_token: str = ""
    chosen_card: Union[Literal["new"], int] = 0
    billing_name: str = ""
    billing_zip: str = ""
    form_errors: bool = False

    @field_validator("chosen_card", mode="before")
    @classmethod
    def _parse_chosen_card(cls, value):
        if value in (None, ""):
            return 0
        if isinstance(value, str) and value.strip().lower() == "new":
            return "new"
        return int(value)


class AuthenticatedUser(BaseModel):
    """Store account placing the order."""

    id: str = Field(min_length=1)
    login: str = ""
    email: str = ""


@dataclass
class RequestContext:
    """Per-request collaborators: who is checking out and their checkout session."""

    session: CheckoutSession
    user: AuthenticatedUser | None = None


class ChargeRequest(BaseModel):
    """Normalized charge fields extracted from one order and form submission."""

    amount: int = Field(ge=0)
    currency: str
    capture_immediately: bool
    token: str = ""
    chosen_card: Union[Literal["new"], int] = 0
    billing_name: str = ""
    billing_email: str = ""
    customer_description: str | None = None


def to_minor_units(total: Decimal | float | str) -> int:
    """Order total in integer minor units, rounded half-up."""

    cents = (Decimal(str(total)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, int(cents))


@dataclass(frozen=True)
class ChargeSuccess:
    transaction_id: str
    customer_id: str | None = None


@dataclass(frozen=True)
class ChargeFailure:
    code: str
    message: str | None = None


ChargeResult = Union[ChargeSuccess, ChargeFailure]


@dataclass(frozen=True)
class PaymentOutcome:
    """Result handed back to checkout: a redirect on success, a message on failure."""

    status: Literal["success", "failure"]
    redirect: str | None = None
    message: str | None = None
    code: str | None = None
