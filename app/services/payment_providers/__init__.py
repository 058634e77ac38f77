"""Payment provider integrations."""

class PaymentProviderError(Exception):
    """Base error for payment providers."""


class PaymentProviderConfigurationError(PaymentProviderError):
    """Raised when provider configuration is invalid or missing."""


class ProviderError(PaymentProviderError):
    """Raised when a provider response lacks its identifying field.

    ``message`` and ``code`` are copied verbatim from the provider body and
    may be ``None`` when the body was empty or could not be decoded.
    """

    def __init__(self, message: str | None, code: str | None = None, response: dict | None = None):
        self.message = message
        self.code = code
        self.response = response or {}
        super().__init__(self._compose(message, code))

    @staticmethod
    def _compose(message: str | None, code: str | None) -> str:
        text = message or "Payment provider returned an invalid response"
        if code:
            return f"{text} (code: {code})"
        return text


class InvalidPaymentRequestError(PaymentProviderError, ValueError):
    """Raised before any request is sent when the caller's arguments are unusable."""
