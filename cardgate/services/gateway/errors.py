"""User-facing messages for processor and local checkout failures."""

from cardgate.common.errors import (
    FormValidationError,
    GatewayError,
    MissingPaymentSource,
    OrderNotFound,
    OrderNotPayable,
)

GENERIC_PROCESSOR_MESSAGE = "Failed to process the order, please try again later."
GENERIC_TRANSACTION_MESSAGE = "Transaction Error: Could not complete your payment."

PROCESSOR_ERROR_MESSAGES: dict[str, str] = {
    "incorrect_number": "Your card number is incorrect.",
    "invalid_number": "Your card number is not a valid credit card number.",
    "invalid_expiry_month": "Your card's expiration month is invalid.",
    "invalid_expiry_year": "Your card's expiration year is invalid.",
    "invalid_cvc": "Your card's security code is invalid.",
    "expired_card": "Your card has expired.",
    "incorrect_cvc": "Your card's security code is incorrect.",
    "incorrect_zip": "Your zip code failed validation.",
    "card_declined": "Your card was declined.",
}


def classify_processor_error(code: str | None) -> str:
    """Map a processor error code to its fixed message; unknown codes get the generic one."""

    return PROCESSOR_ERROR_MESSAGES.get(code or "", GENERIC_PROCESSOR_MESSAGE)


def failure_message(exc: GatewayError) -> str | None:
    """Message to show for a failure raised anywhere in one checkout attempt.

    Form validation failures return `None`: the form already showed its errors.
    """

    if isinstance(exc, FormValidationError):
        return None
    if isinstance(exc, (OrderNotFound, OrderNotPayable, MissingPaymentSource)):
        return GENERIC_TRANSACTION_MESSAGE
    return classify_processor_error(exc.code)
