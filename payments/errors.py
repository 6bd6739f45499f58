"""Error taxonomy for the payment flow.

Every error carries the HTTP status the entry point answers with and a
message that is safe to show to the shopper.
"""


class PaymentError(Exception):
    status_code = 500
    default_message = "Payment processing failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PaymentError):
    status_code = 400
    default_message = "Missing required fields"


class ConfigError(PaymentError):
    status_code = 400
    default_message = "Nagad payment is not configured. Please set up Nagad in admin panel."


class InvalidState(PaymentError):
    status_code = 400
    default_message = "Order already processed"


class Unauthorized(PaymentError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(PaymentError):
    status_code = 403
    default_message = "Unauthorized access to order"


class NotFound(PaymentError):
    status_code = 404
    default_message = "Order not found"


class CryptoError(PaymentError):
    status_code = 500
    default_message = "Failed to process payment credentials"


class GatewayError(PaymentError):
    status_code = 500
    default_message = "Payment gateway request failed"
