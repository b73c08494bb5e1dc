"""Exception taxonomy for the review pipeline."""


class ReviewError(Exception):
    """Base class for every failure the pipeline reports to the caller."""


class MissingConfigurationError(ReviewError):
    """Raised when a required setting (the API key) is absent."""


class BadInputError(ReviewError):
    """Raised when the upload is missing or carries no usable text."""


class ExtractionError(ReviewError):
    """Raised when text cannot be extracted from an uploaded file."""


class UnsupportedFormatError(ExtractionError):
    """Raised for MIME types the extractor does not handle."""


class ExtractionFailedError(ExtractionError):
    """Raised when a supported file cannot be decoded."""


class DispatchError(ReviewError):
    """Raised when the LLM provider call cannot produce a reply."""


class InvalidProviderError(DispatchError):
    """Raised when the configured provider is not one we know."""


class ProviderError(DispatchError):
    """Raised on transport failures and non-success provider responses."""
