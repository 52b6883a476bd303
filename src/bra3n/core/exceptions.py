"""
Error Taxonomy

Domain exceptions shared by the embedding and search services.
The search facade converts these into user-facing error records;
the HTTP layer maps them to status codes.
"""


class Bra3nError(Exception):
    """Base class for all bra3n domain errors."""

    kind: str = "internal"


class ConfigurationError(Bra3nError):
    """Provider credentials are missing or invalid. Fatal for the operation."""

    kind = "configuration"


class EmbeddingProviderError(Bra3nError):
    """Embedding provider failed: rate limit, timeout, malformed response."""

    kind = "provider"


class SearchValidationError(Bra3nError):
    """Input rejected before any network call."""

    kind = "validation"


class NoteNotFoundError(Bra3nError):
    """Referenced note does not exist."""

    kind = "not_found"

    def __init__(self, note_id: object) -> None:
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id


__all__ = [
    "Bra3nError",
    "ConfigurationError",
    "EmbeddingProviderError",
    "SearchValidationError",
    "NoteNotFoundError",
]
