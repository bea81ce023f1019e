"""
RxState StoreQuery - Composable Derived Views
=============================================

A StoreQuery derives a value from one or more inputs, where each input is either
a Store or another StoreQuery. Queries form a static DAG: the input list is fixed
at construction, and so is the set of root stores the query ultimately depends on.

```python
from rxstate import Store

people = Store.of({"person": {"first": "Joe"}, "city": 1})
cities = Store.of({1: "Denver", 2: "Boston"})

city_id = people.query(lambda s: s["city"])
city_name = city_id.join(cities, lambda cid, names: names[cid])

city_name.get()  # "Denver"
```

Evaluation
----------

`get()` is pull-based and never cached: it reads every input's current value in
declared order and calls the projector with them, so it always reflects the
stores as they are right now.

`select()` subscribes to the query's *root stores* rather than its direct inputs.
Roots are collected once at construction by walking each input's `sources()` and
dropping duplicates, so a diamond such as `a.join(b, ...)` where `a` and `b` both
read the same store subscribes to that store once. Any root emission triggers a
fresh `get()`, and the result is passed through `distinct_until_changed`, so the
query never emits the same value twice in a row.

Joining
-------

`join(*inputs, projector)` prepends the query itself to `inputs`: the projector
receives this query's value first, followed by the values of `inputs` in order.
Projector arity is checked when the query is built.
"""

import inspect
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    overload,
)

import reactivex as rx
from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase

from .errors import QueryArityError
from .types import Projector, QueryInput, Selector

if TYPE_CHECKING:
    from .store import Store

logger = logging.getLogger(__name__)

Value = TypeVar("Value")
NewValue = TypeVar("NewValue")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
D = TypeVar("D")


def _check_arity(projector: Callable[..., Any], count: int) -> None:
    """Fail fast if `projector` cannot be called with `count` positional values."""
    try:
        signature = inspect.signature(projector)
    except (TypeError, ValueError):
        # Some builtins expose no signature; they get checked on first call.
        return

    try:
        signature.bind(*([None] * count))
    except TypeError:
        name = getattr(projector, "__qualname__", repr(projector))
        raise QueryArityError(
            f"Projector {name}{signature} cannot take {count} input value(s)"
        ) from None


def _combine_sources(inputs: Sequence[QueryInput[Any]]) -> Tuple["Store[Any]", ...]:
    """Flatten the root stores of `inputs`, keeping the first occurrence of each."""
    seen = set()
    sources = []
    for query_input in inputs:
        for store in query_input.sources():
            if id(store) not in seen:
                seen.add(id(store))
                sources.append(store)
    return tuple(sources)


class StoreQuery(Generic[Value]):
    """
    A derived view over one or more stores or queries.

    Built by `Store.query`, `StoreQuery.map` and `StoreQuery.join`; constructing
    one directly is equivalent.

    Args:
        inputs: Stores and/or queries, in the order their values are passed to
            `projector`. At least one is required.
        projector: Called with one value per input, returns the derived value.

    Raises:
        QueryArityError: If `inputs` is empty or `projector` cannot take
            `len(inputs)` positional arguments.
        TypeError: If an input is not a QueryInput or `projector` is not callable.
    """

    def __init__(
        self, inputs: Sequence[QueryInput[Any]], projector: Projector[Value]
    ) -> None:
        inputs = tuple(inputs)
        if not inputs:
            raise QueryArityError("A query needs at least one input")
        for position, query_input in enumerate(inputs):
            if not isinstance(query_input, QueryInput):
                raise TypeError(
                    f"Query input #{position} must be a Store or StoreQuery, "
                    f"got {type(query_input).__name__}"
                )
        if not callable(projector):
            raise TypeError(
                f"Query projector must be callable, got {type(projector).__name__}"
            )
        _check_arity(projector, len(inputs))

        self._inputs: Tuple[QueryInput[Any], ...] = inputs
        self._projector = projector
        self._source_stores = _combine_sources(inputs)
        logger.debug(
            f"Built query {id(self):#x} over {len(inputs)} input(s), "
            f"{len(self._source_stores)} root store(s)"
        )

    def get(self) -> Value:
        """Recompute the value from the current state of every input."""
        values = [query_input.get() for query_input in self._inputs]
        return self._projector(*values)

    def select(self) -> Observable:
        """
        Stream the derived value, recomputing on every root store emission.

        The current value is emitted on subscribe; after that only changes are.
        A projector error ends only this subscription, as described for
        `Store.select`.
        """
        streams = [store.select() for store in self._source_stores]
        return rx.combine_latest(*streams).pipe(
            ops.map(lambda _: self.get()),
            ops.distinct_until_changed(),
        )

    def sources(self) -> List["Store[Any]"]:
        """The de-duplicated root stores this query depends on."""
        return list(self._source_stores)

    def map(self, selector: Selector[Value, NewValue]) -> "StoreQuery[NewValue]":
        """Derive a new query by applying `selector` to this query's value."""
        return StoreQuery([self], selector)

    @overload
    def join(
        self, a: QueryInput[A], projector: Callable[[Value, A], NewValue]
    ) -> "StoreQuery[NewValue]": ...

    @overload
    def join(
        self,
        a: QueryInput[A],
        b: QueryInput[B],
        projector: Callable[[Value, A, B], NewValue],
    ) -> "StoreQuery[NewValue]": ...

    @overload
    def join(
        self,
        a: QueryInput[A],
        b: QueryInput[B],
        c: QueryInput[C],
        projector: Callable[[Value, A, B, C], NewValue],
    ) -> "StoreQuery[NewValue]": ...

    @overload
    def join(
        self,
        a: QueryInput[A],
        b: QueryInput[B],
        c: QueryInput[C],
        d: QueryInput[D],
        projector: Callable[[Value, A, B, C, D], NewValue],
    ) -> "StoreQuery[NewValue]": ...

    @overload
    def join(self, *args: Any) -> "StoreQuery[Any]": ...

    def join(self, *args: Any) -> "StoreQuery[Any]":
        """
        Combine this query with other inputs.

        The last positional argument is the projector. It receives this query's
        value first, then the value of each other input in the order given.
        """
        if not args:
            raise QueryArityError("join() requires at least one input and a projector")
        *inputs, projector = args
        if not inputs:
            raise QueryArityError(
                "join() requires at least one input before the projector"
            )
        return StoreQuery([self, *inputs], projector)

    def subscribe(
        self,
        on_next: Callable[[Value], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> DisposableBase:
        """Subscribe `on_next` to `select()` and return the subscription."""
        return self.select().subscribe(on_next, on_error)

    def __repr__(self) -> str:
        return (
            f"StoreQuery(inputs={len(self._inputs)}, "
            f"sources={len(self._source_stores)})"
        )
