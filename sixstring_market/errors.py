"""Domain errors raised by the service layer.

Every error carries a short snake_case ``code`` (what API clients match on),
a human readable ``message`` and the HTTP status the API answers with.
"""


class MarketError(Exception):
    status = 400
    code = "error"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.code
        self.message = message or self.code.replace("_", " ")
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(MarketError):
    status = 400
    code = "invalid_input"

    def __init__(self, code=None, message=None, details=None):
        super().__init__(code, message)
        self.details = list(details or [])

    def to_dict(self):
        d = super().to_dict()
        if self.details:
            d["details"] = self.details
        return d


class NotFoundError(MarketError):
    status = 404
    code = "not_found"


class PermissionDenied(MarketError):
    status = 403
    code = "forbidden"


class NotAuthenticated(PermissionDenied):
    status = 401
    code = "not_authenticated"


class Conflict(MarketError):
    status = 409
    code = "conflict"


class InvalidTransition(Conflict):
    code = "invalid_transition"


class CheckoutStepError(Conflict):
    code = "checkout_step"


class PaymentFailed(MarketError):
    status = 402
    code = "payment_failed"


class PersistenceError(MarketError):
    status = 500
    code = "operation_failed"
