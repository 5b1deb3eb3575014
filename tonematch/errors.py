# Error taxonomy shared by the search, generate and service layers.
# Parse irregularities and empty retrieval are not errors; they never reach here.


class ToneMatchError(Exception):
    """Base class for failures surfaced to callers."""


class NotFoundError(ToneMatchError):
    """A user, partner or style profile does not exist."""


class UpstreamError(ToneMatchError):
    """An external service (embeddings or generation) failed or timed out."""

    retryable = True


class EmbeddingError(UpstreamError):
    pass


class GenerationError(UpstreamError):
    pass
