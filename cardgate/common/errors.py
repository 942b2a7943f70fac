"""Typed failures raised by the gateway stores and processor adapter.

Every failure carries a stable `code`. The charge orchestrator catches these at
its boundary and turns them into a user-facing message plus an order note.
"""


class GatewayError(Exception):
    """Base class for failures that end one checkout attempt."""

    code = "gateway_error"

    def __init__(self, message: str = "", code: str | None = None) -> None:
        super().__init__(message or self.code)
        if code is not None:
            self.code = code
        self.message = message


class OrderNotFound(GatewayError):
    """The order id does not resolve to an order in the ledger."""

    code = "order_not_found"


class MissingPaymentSource(GatewayError):
    """No token, and no saved card could be resolved for the charge."""

    code = "missing_payment_source"


class FormValidationError(GatewayError):
    """The checkout form was rejected before reaching the processor."""

    code = "form_errors"


class ProcessorError(GatewayError):
    """The payment processor rejected a call; `code` is the processor's error code."""

    code = "api_error"


class OrderNotPayable(GatewayError):
    """The order's status does not allow it to be paid (already completed or cancelled)."""

    code = "order_not_payable"
