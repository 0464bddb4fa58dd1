"""Error taxonomy for the document-to-artifact generation pipeline.

Every fatal error carries a ``code`` matching the taxonomy name; its message is
what ends up verbatim in a document's ``last_error`` field. Per-item problems
(``ValidationSkipped``, ``DuplicateSkipped``) are counted, never propagated out
of a run.
"""


class GenerationError(Exception):
    code = 'GenerationError'
    default_message = 'Generation failed'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class UnsupportedFormatError(GenerationError):
    code = 'UnsupportedFormat'
    default_message = 'Unsupported document format'


class ExtractionFailedError(GenerationError):
    code = 'ExtractionFailed'
    default_message = 'Failed to extract text from document'


class InsufficientContentError(GenerationError):
    code = 'InsufficientContent'
    default_message = 'Document content is too short to generate study items'


class GenerationNotConfiguredError(GenerationError):
    code = 'NotConfigured'
    default_message = 'GENERATION_API_KEY is not configured'


class ServiceError(GenerationError):
    code = 'ServiceError'
    default_message = 'Generation service error'

    def __init__(self, message: str = None, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceUnauthorizedError(ServiceError):
    code = 'ServiceUnauthorized'
    default_message = 'Invalid or unauthorized generation API key'


class RateLimitedError(ServiceError):
    code = 'RateLimited'
    default_message = 'Generation API rate limit exceeded. Please try again later.'


class ServiceUnavailableError(ServiceError):
    code = 'ServiceUnavailable'
    default_message = 'Generation service is temporarily unavailable'


class NetworkError(ServiceError):
    code = 'NetworkError'
    default_message = 'Network error connecting to generation service'


class MalformedResponseError(GenerationError):
    code = 'MalformedResponse'
    default_message = 'Failed to parse generation service response'


class EmptyResultError(GenerationError):
    code = 'EmptyResult'
    default_message = 'No valid study items were generated from this document'


class ItemSkipped(Exception):
    """A single candidate was dropped; the run continues."""
    code = 'ItemSkipped'


class ValidationSkipped(ItemSkipped):
    code = 'ValidationSkipped'


class DuplicateSkipped(ItemSkipped):
    code = 'DuplicateSkipped'


class StoreError(Exception):
    """Raised when a document or artifact write/read fails."""


class DocumentNotFoundError(StoreError):
    pass
