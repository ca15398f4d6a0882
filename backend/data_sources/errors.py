"""
Provider Error Taxonomy
Raised by data source clients, absorbed by ChainProbe and the resolution
cascade and recorded as metadata. Never surfaced to API callers.
"""

from typing import Optional


class ProviderError(Exception):
    """Base class for any failed provider sub-query"""

    def __init__(self, service: str, message: str):
        self.service = service
        self.message = message
        super().__init__(f"{service}: {message}")


class ProviderUnavailable(ProviderError):
    """Network failure, non-2xx response or missing credentials"""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(service, message)


class ProviderRateLimited(ProviderUnavailable):
    """HTTP 429 from the provider"""

    def __init__(self, service: str, retry_after: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(service, "rate limited", status_code=429)


class ProviderTimeout(ProviderError):
    """Provider did not answer within the request timeout"""

    def __init__(self, service: str, message: str = "timeout"):
        super().__init__(service, message)


class MalformedPayload(ProviderError):
    """Provider answered with an unexpected shape"""
    pass
