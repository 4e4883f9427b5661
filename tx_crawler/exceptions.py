class InvalidInputError(ValueError):
    """Raised when a caller supplies a malformed address, range or date."""
    pass


class ProviderError(Exception):
    """Base class for faults reported by the ledger query provider."""
    pass


class TransientProviderError(ProviderError):
    """A provider fault that may succeed when retried."""
    pass


class ProviderUnavailableError(TransientProviderError):
    """Raised on network errors, timeouts and server-side failures."""
    pass


class RateLimitedError(TransientProviderError):
    """Raised when the provider rejects a call because of its rate limit."""
    pass


class ProviderRejectedError(ProviderError):
    """Raised when the provider refuses a request in a way retrying won't fix."""
    pass


class ProviderExhaustedError(ProviderError):
    """Raised when every attempt across a whole operation failed."""
    pass
