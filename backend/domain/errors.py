"""
Error taxonomy for the resolution pipeline.

Each error carries the HTTP status category the API layer reports it under.
Only ValidationError and InternalResolverError ever reach a client; the rest
are downgraded to a provider fallback by the resolver. A page with no
coordinates is not an error at all: it is a NOT_FOUND outcome.
"""


class ResolverError(Exception):
    status_code: int = 500
    category: str = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ResolverError):
    """Malformed origin coordinate or destination."""
    status_code = 400
    category = "bad_request"


class QuotaExceeded(ResolverError):
    """Monthly geocoding budget spent. Never leaves the official client."""
    status_code = 429
    category = "quota_exceeded"


class UpstreamTimeout(ResolverError):
    status_code = 408
    category = "request_timeout"


class UpstreamUnavailable(ResolverError):
    """DNS or connection failure."""
    status_code = 503
    category = "service_unavailable"


class UpstreamBadResponse(ResolverError):
    """Non-2xx or malformed upstream body."""
    status_code = 502
    category = "bad_gateway"


class InternalResolverError(ResolverError):
    status_code = 500
    category = "internal"
