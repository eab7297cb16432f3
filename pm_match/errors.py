"""Exceptions raised along the analysis flow.

Everything derives from :class:`MatchError` so the top-level handlers (the
Streamlit submit handler and the CLI) can catch one type and turn it into a
single user-facing message.
"""
from __future__ import annotations


class MatchError(Exception):
    """Base class for all errors surfaced to the user."""


class InputValidationError(MatchError):
    """Resume or job input is missing."""


class ExtractionError(MatchError):
    """
    Text could not be extracted from an uploaded file.

    Attributes:
        extension: Upper-cased file extension without the dot (e.g. 'PDF')
    """

    def __init__(self, extension: str, detail: str | None = None):
        self.extension = extension or "FILE"
        self.detail = detail
        super().__init__(f"Could not extract text from {self.extension}.")


class ProviderError(MatchError):
    """The model provider rejected or failed the request.

    Carries the provider's original message for diagnostics.
    """


class MissingCredentialError(ProviderError):
    def __init__(self, message: str = "API key not configured"):
        super().__init__(message)


class QuotaExceededError(ProviderError):
    pass


class ProviderTimeoutError(ProviderError):
    pass


class EntitlementError(ProviderError):
    """The configured key lacks access to search-enabled generation."""


class ResponseFormatError(MatchError):
    """The model answered, but not with a usable result."""


class EmptyResponseError(ResponseFormatError):
    def __init__(self, message: str = "Empty response from AI"):
        super().__init__(message)


class InvalidFormatError(ResponseFormatError):
    def __init__(self, message: str = "The AI returned an invalid format. Please try again."):
        super().__init__(message)


class MissingFieldsError(ResponseFormatError):
    """
    The parsed object lacks required fields.

    Attributes:
        missing: Field names absent from the object, in schema order
    """

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "The AI response is missing required fields: " + ", ".join(self.missing)
        )
