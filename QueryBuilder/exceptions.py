class QueryTranslationError(ValueError):
    """Raised when list/count options cannot be turned into an ORM query."""
