"""Exception hierarchy for the prompt catalog.

All errors inherit from :class:`PromptCatalogError` so callers can catch a
single base class while still telling the categories apart.
"""


class PromptCatalogError(Exception):
    """Base exception for prompt catalog failures."""


class ConfigurationError(PromptCatalogError):
    """Raised when required credentials or identifiers are missing.

    Not retryable; surfaced to users as a server misconfiguration.
    """


class UpstreamError(PromptCatalogError):
    """Raised when the Feishu API call fails or returns a non-zero code."""


class DurableStoreError(PromptCatalogError):
    """Raised when a read or write against the durable cache fails."""


class WebhookValidationError(PromptCatalogError):
    """Raised when a webhook payload is malformed or unauthorized.

    Attributes:
        status_code: HTTP status the webhook endpoint should answer with
        message: Error text for the response body
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class RecordNormalizationError(PromptCatalogError):
    """Raised when a single Bitable record cannot be normalized."""
