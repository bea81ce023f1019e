"""
RxState - Reactive Immutable State Containers
=============================================

A Store holds a single immutable value. Writes go through `set` or `update` (an
in-place edit on a copy-on-write draft) and reads go through `get` or `select`.
Queries derive values from any mix of stores and other queries, and only emit
when their derived value actually changes.
"""

import logging

from .draft import DictDraft, ListDraft, is_draft, original, produce
from .errors import (
    DraftRevokedError,
    QueryArityError,
    RxStateError,
    StoreConfigError,
)
from .query import StoreQuery
from .store import Store, StoreOptions
from .types import Mutator, Projector, QueryInput, Selector

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Core
    "Store",
    "StoreOptions",
    "StoreQuery",
    "QueryInput",
    # Drafts
    "produce",
    "is_draft",
    "original",
    "DictDraft",
    "ListDraft",
    # Types
    "Selector",
    "Mutator",
    "Projector",
    # Exceptions
    "RxStateError",
    "StoreConfigError",
    "QueryArityError",
    "DraftRevokedError",
]
