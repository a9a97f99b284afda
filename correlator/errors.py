"""Exception hierarchy for the correlation engine."""


class CorrelatorError(Exception):
    """Base exception for correlation engine errors."""
    pass


class NotFoundError(CorrelatorError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class DuplicateKeyError(CorrelatorError):
    """A create collided with an existing natural key."""
    pass


class InvalidTransitionError(CorrelatorError):
    """An analysis state change is not allowed from the current state."""
    pass


class AnalysisProviderError(CorrelatorError):
    """The text-completion provider failed or returned nothing usable."""
    pass


class MalformedAnalysisError(AnalysisProviderError):
    """The provider response could not be parsed into the expected shape."""
    pass


class DiffFetchError(CorrelatorError):
    """Diff retrieval from GitHub failed."""
    pass
