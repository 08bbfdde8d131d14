"""Errors raised by the signage store."""


class StoreUnavailableError(RuntimeError):
    """A store read or write failed; callers keep their last good snapshot."""
