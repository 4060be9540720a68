"""
Personalization Errors

Configuration problems fail fast at construction time. Sparse or malformed
candidate data is never an error: it simply contributes zero points.
"""


class PersonalizationError(Exception):
    """Base class for all personalization engine errors."""


class ConfigurationError(PersonalizationError, ValueError):
    """Invalid weight table, diversity cap, limit or settings value."""


class RetrievalTimeoutError(PersonalizationError):
    """Candidate pools were not fetched within the configured timeout."""
