"""
RxState Common Types - Shared Contracts
=======================================

This module holds the contract that stores and queries share, along with the
callable aliases used across the package. Keeping them here avoids a circular
import between `store` and `query`.

The QueryInput protocol is what lets a query be built from any mix of stores and
other queries: both satisfy it, so `join` never needs to know which one it got.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    List,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from reactivex import Observable

if TYPE_CHECKING:
    from .store import Store

# ============================================================================
# TYPE VARIABLES
# ============================================================================

T = TypeVar("T")
U = TypeVar("U")
T_co = TypeVar("T_co", covariant=True)

# ============================================================================
# FUNCTION TYPES
# ============================================================================

Selector = Callable[[T], U]
Mutator = Callable[[T], Any]  # return value is ignored by Store.update
Projector = Callable[..., T]

# ============================================================================
# QUERY INPUT PROTOCOL
# ============================================================================


@runtime_checkable
class QueryInput(Protocol[T_co]):
    """
    Anything a StoreQuery can read from.

    Implemented by both `Store` and `StoreQuery`.

    - `get()` returns the current value.
    - `select()` returns a stream of the value that replays the current value
      to new subscribers and skips consecutive equal values.
    - `sources()` returns the root stores the value is derived from. A store
      returns itself.
    """

    def get(self) -> T_co: ...

    def select(self) -> Observable: ...

    def sources(self) -> List["Store[Any]"]: ...
