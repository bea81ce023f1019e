"""
RxState Store - The Single Source of Truth
==========================================

A Store owns exactly one immutable state value. The value is never edited in
place: every write installs a new value and pushes it to subscribers. Reads are
either point-in-time (`get`) or streaming (`select`), and both accept an optional
selector that narrows the state down to the slice a caller cares about.

Basic Usage
-----------

```python
from rxstate import Store

store = Store.of({"person": {"first": "Joe", "last": "Smith"}})

store.get(lambda s: s["person"]["first"])  # "Joe"

seen = []
store.select(lambda s: s["person"]["first"]).subscribe(seen.append)

store.update(lambda s: s["person"].update(first="Sue"))
seen  # ["Joe", "Sue"]
```

Writes
------

`set(state)` installs `state` as-is and always emits, even when the new value is
equal to the old one. Deduplication only happens on the read side, in `select`.

`update(mutator)` hands the mutator a draft of the current state (see
`rxstate.draft`). The mutator edits the draft in place, and the new state shares
every untouched subtree with the old one by reference. Whatever the mutator
returns is discarded, so `lambda s: s.pop("key")` is a valid mutator.

Streams
-------

`select()` is backed by a `reactivex` BehaviorSubject, so subscribing replays the
current value synchronously. Consecutive equal values (Python `==`) are skipped,
and when a selector is given equality is checked on the selected slice, not on the
whole state.

Errors
------

A selector or projector that raises while a write is propagating ends only the
subscription it belongs to, which receives the error through its `on_error`.
Every other subscriber still receives the new value. A subscription without an
`on_error` re-raises the error to the writer, after the new state is installed
and after all other subscribers have been notified.

Threading
---------

Each store serialises its writes with a re-entrant lock, so `update`'s
read-mutate-write sequence is atomic across threads. A subscriber may write to
the store it is subscribed to; the nested write is delivered depth-first.

The lock is held while subscribers run, which keeps emissions in write order.
Subscribers that write to *another* store therefore take that store's lock
while holding this one. When several threads write, such cross-store write-backs
must always flow in one direction (for example, from `a` to `b` but never from
`b` to `a`), otherwise two writers can deadlock on each other's locks.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Mapping, Optional, TypeVar, Union

from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase
from reactivex.subject import BehaviorSubject

from .draft import produce
from .errors import StoreConfigError
from .query import StoreQuery
from .types import Mutator, Selector

logger = logging.getLogger(__name__)

State = TypeVar("State")
Value = TypeVar("Value")


def _identity(value: Any) -> Any:
    return value


class _StateSubject(BehaviorSubject):
    """
    BehaviorSubject that notifies every observer even if one of them raises.

    The first error is re-raised once all observers have seen the value.
    """

    def _on_next_core(self, value: Any) -> None:
        with self.lock:
            observers = self.observers.copy()
            self.value = value

        errors = []
        for observer in observers:
            try:
                observer.on_next(value)
            except Exception as error:
                errors.append(error)
        if errors:
            raise errors[0]


@dataclass(frozen=True)
class StoreOptions(Generic[State]):
    """
    Construction options for a Store.

    Attributes:
        initial_state: The value the store starts with. Required.
    """

    initial_state: State

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "StoreOptions[Any]":
        """Build options from a plain mapping such as `{"initial_state": ...}`."""
        unknown = [key for key in options if key != "initial_state"]
        if unknown:
            names = ", ".join(repr(key) for key in unknown)
            raise StoreConfigError(f"Unknown store option(s): {names}")
        if "initial_state" not in options:
            raise StoreConfigError("Store options require 'initial_state'")
        return cls(initial_state=options["initial_state"])


class Store(Generic[State]):
    """
    Holder of a single immutable state value.

    Store satisfies the QueryInput contract, so it can be passed directly to
    `StoreQuery.join` alongside other queries.

    Example:
        ```python
        store = Store(StoreOptions(initial_state={"count": 0}))
        store.update(lambda s: s.update(count=s["count"] + 1))
        store.get()  # {"count": 1}
        ```
    """

    def __init__(self, options: Union[StoreOptions[State], Mapping[str, Any]]) -> None:
        if isinstance(options, Mapping):
            options = StoreOptions.from_mapping(options)
        elif not isinstance(options, StoreOptions):
            raise StoreConfigError(
                f"Store expects StoreOptions or a mapping, got {type(options).__name__}"
            )

        self._lock = threading.RLock()
        self._state: State = options.initial_state
        self._subject: BehaviorSubject = _StateSubject(self._state)
        logger.debug(
            f"Created store {id(self):#x} with {type(self._state).__name__} state"
        )

    @classmethod
    def of(cls, initial_state: State) -> "Store[State]":
        """Shorthand for `Store(StoreOptions(initial_state=...))`."""
        return cls(StoreOptions(initial_state=initial_state))

    # ============================================================
    # Reads
    # ============================================================

    def get(self, selector: Optional[Selector[State, Value]] = None) -> Any:
        """Return the current state, or `selector(state)` if a selector is given."""
        state = self._state
        return selector(state) if selector is not None else state

    def select(self, selector: Optional[Selector[State, Value]] = None) -> Observable:
        """
        Stream the state, or a slice of it, replaying the current value first.

        Consecutive equal values are dropped, so a subscriber only hears about
        writes that changed what it selected.

        If `selector` raises, only this subscription ends: the error goes to its
        `on_error`, or is re-raised to the writer once every other subscriber has
        been notified.
        """
        return self._subject.pipe(
            ops.map(selector if selector is not None else _identity),
            ops.distinct_until_changed(),
        )

    def sources(self) -> List["Store[Any]"]:
        """A store is its own, and only, root source."""
        return [self]

    # ============================================================
    # Writes
    # ============================================================

    def set(self, state: State) -> None:
        """Replace the state unconditionally and emit it."""
        with self._lock:
            self._state = state
            logger.debug(f"Store {id(self):#x} set new {type(state).__name__} state")
            self._subject.on_next(state)

    def update(self, mutator: Mutator[State]) -> None:
        """
        Apply an in-place edit to a draft of the state and install the result.

        Args:
            mutator: Receives a draft of the current state and edits it. Its
                return value is ignored.
        """

        def recipe(draft: Any) -> None:
            mutator(draft)

        with self._lock:
            new_state = produce(self._state, recipe)
            self.set(new_state)

    # ============================================================
    # Queries and subscriptions
    # ============================================================

    def query(
        self, selector: Optional[Selector[State, Value]] = None
    ) -> StoreQuery[Any]:
        """Build a query over this store, optionally narrowed by `selector`."""
        return StoreQuery([self], selector if selector is not None else _identity)

    def subscribe(
        self,
        on_next: Callable[[Any], None],
        selector: Optional[Selector[State, Value]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> DisposableBase:
        """
        Subscribe `on_next` to `select(selector)`.

        Returns:
            The subscription; call `dispose()` on it to unsubscribe.
        """
        return self.select(selector).subscribe(on_next, on_error)

    def __repr__(self) -> str:
        return f"Store({self._state!r})"
