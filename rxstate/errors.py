"""
RxState Errors - Exception Types
================================

All exceptions raised by RxState itself derive from `RxStateError`. Each one also
derives from the built-in exception a caller would naturally expect, so code that
already catches `TypeError` or `ValueError` keeps working.

Exceptions raised by caller-supplied selectors, mutators and projectors are never
wrapped: they propagate exactly as raised.
"""


class RxStateError(Exception):
    """Base class for errors raised by RxState."""


class StoreConfigError(RxStateError, ValueError):
    """Store options are missing `initial_state` or carry an unknown key."""


class QueryArityError(RxStateError, TypeError):
    """
    A query was built with a projector that cannot take its inputs.

    Raised at construction time (`Store.query`, `StoreQuery.map`,
    `StoreQuery.join`) so the mistake surfaces where it is made rather than on
    the first `get()`.
    """


class DraftRevokedError(RxStateError, RuntimeError):
    """A draft was used after the `produce` call that created it returned."""
