class CompletionError(RuntimeError):
    """The completion service answered, but not with usable text."""


class PersistenceError(RuntimeError):
    """A persistence or identity backend rejected a request or returned a malformed row."""
