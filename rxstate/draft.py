"""
RxState Drafts - Copy-on-Write Immutable Updates
================================================

This module provides `produce`, the function `Store.update` uses to turn an
in-place edit into a brand new state value. The caller edits a *draft* as if it
were ordinary data; `produce` then builds the next value, copying only the
containers that were actually touched and sharing everything else with the base
value by reference.

```python
from rxstate.draft import produce

base = {"person": {"first": "Joe"}, "address": {"city": "Denver"}}

def rename(draft):
    draft["person"]["first"] = "Sue"

new = produce(base, rename)
new["person"]["first"]                # "Sue"
base["person"]["first"]               # "Joe" (base is never touched)
new["address"] is base["address"]     # True (untouched subtree is shared)
```

Draftable Values
----------------

Only plain `dict` and `list` values (and their subclasses) are drafted. Anything
else, ints, strings, tuples, frozensets or arbitrary objects, is treated as an
opaque leaf and shared by reference. Mutating such an object in place mutates it
for every state that shares it.

How It Works
------------

A draft wraps its base value and makes a shallow copy the first time it is
written, or the first time a nested container is read through it. Nested
containers are handed out as nested drafts and stored in the copy, so they move
with the data when a list is reordered. When the recipe returns, every draft is
finalised bottom-up: a draft that was not written and whose nested drafts are
all unchanged resolves to its original base object, which is what preserves
reference identity for untouched subtrees.

Once `produce` returns, every draft it created is revoked and raises
`DraftRevokedError` on use.
"""

import copy
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from .errors import DraftRevokedError

T = TypeVar("T")


def _is_draftable(value: Any) -> bool:
    return isinstance(value, (dict, list))


class _Scope:
    """The set of drafts created by a single `produce` call."""

    def __init__(self) -> None:
        self.revoked = False


class _Draft:
    """Copy-on-write bookkeeping shared by dict and list drafts."""

    def __init__(self, base: Any, scope: _Scope) -> None:
        self._base = base
        self._copy: Optional[Any] = None
        self._scope = scope
        self._modified = False
        self._finalized = False
        self._result: Any = base

    def _check(self) -> None:
        if self._scope.revoked:
            raise DraftRevokedError(
                f"{type(self).__name__} used after produce() returned"
            )

    def _source(self) -> Any:
        self._check()
        return self._base if self._copy is None else self._copy

    def _writable(self) -> Any:
        self._check()
        if self._copy is None:
            self._copy = copy.copy(self._base)
        return self._copy

    def _child(self, key: Any, value: Any) -> Any:
        """Hand out a nested draft for a draftable value stored at `key`."""
        if not _is_draftable(value):
            return value
        child = _make_draft(value, self._scope)
        self._writable()[key] = child
        return child

    def _entries(self, container: Any) -> List[Any]:
        raise NotImplementedError

    def _finalize(self) -> Any:
        if self._finalized:
            return self._result
        self._finalized = True

        if self._copy is None:
            return self._base

        changed = self._modified
        # Values carried over from the base cannot hold drafts; anything else
        # written by the recipe may wrap one in a new container.
        shared = {id(value) for _, value in self._entries(self._base)}
        for key, value in self._entries(self._copy):
            if isinstance(value, _Draft):
                final = value._finalize()
                if final is not value._base:
                    changed = True
                self._copy[key] = final
            elif id(value) not in shared:
                final = _finalize_value(value)
                if final is not value:
                    changed = True
                    self._copy[key] = final

        self._result = self._copy if changed else self._base
        return self._result


class DictDraft(_Draft, MutableMapping):
    """Draft proxy for a `dict`."""

    def _entries(self, container: Any) -> List[Any]:
        return list(container.items())

    def __getitem__(self, key: Any) -> Any:
        return self._child(key, self._source()[key])

    def __setitem__(self, key: Any, value: Any) -> None:
        source = self._source()
        if key in source and source[key] is value:
            return
        self._writable()[key] = value
        self._modified = True

    def __delitem__(self, key: Any) -> None:
        del self._writable()[key]
        self._modified = True

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._source()))

    def __len__(self) -> int:
        return len(self._source())

    def __contains__(self, key: Any) -> bool:
        return key in self._source()

    def __repr__(self) -> str:
        return f"DictDraft({dict(self.items())!r})"


class ListDraft(_Draft, MutableSequence):
    """Draft proxy for a `list`."""

    def _entries(self, container: Any) -> List[Any]:
        return list(enumerate(container))

    def __getitem__(self, index: Any) -> Any:
        source = self._source()
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(source)))]
        if index < 0:
            index += len(source)
            if index < 0:
                raise IndexError("list index out of range")
        return self._child(index, source[index])

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            self._writable()[index] = list(value)
        else:
            source = self._source()
            if source[index] is value:
                return
            self._writable()[index] = value
        self._modified = True

    def __delitem__(self, index: Any) -> None:
        del self._writable()[index]
        self._modified = True

    def __len__(self) -> int:
        return len(self._source())

    def insert(self, index: int, value: Any) -> None:
        self._writable().insert(index, value)
        self._modified = True

    def sort(
        self, *, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False
    ) -> None:
        self._writable().sort(key=key, reverse=reverse)
        self._modified = True

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, (list, ListDraft)):
            return list(self) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ListDraft({list(self)!r})"


def _make_draft(value: Any, scope: _Scope) -> _Draft:
    if isinstance(value, dict):
        return DictDraft(value, scope)
    return ListDraft(value, scope)


def _finalize_value(value: Any) -> Any:
    """Resolve drafts embedded in a value returned from, or written by, a recipe."""
    if isinstance(value, _Draft):
        return value._finalize()
    if isinstance(value, dict):
        resolved = {k: _finalize_value(v) for k, v in value.items()}
        if all(resolved[k] is v for k, v in value.items()):
            return value
        result = copy.copy(value)
        result.update(resolved)
        return result
    if isinstance(value, list):
        resolved = [_finalize_value(v) for v in value]
        if all(r is v for r, v in zip(resolved, value)):
            return value
        result = copy.copy(value)
        result[:] = resolved
        return result
    return value


def is_draft(value: Any) -> bool:
    """Return True if `value` is a draft handed out by `produce`."""
    return isinstance(value, _Draft)


def original(draft: Any) -> Any:
    """Return the base value a draft was created from."""
    if not isinstance(draft, _Draft):
        raise TypeError(f"original() expects a draft, got {type(draft).__name__}")
    draft._check()
    return draft._base


def produce(base: T, recipe: Callable[[Any], Any]) -> T:
    """
    Build the next immutable value by applying an in-place edit to a draft.

    Args:
        base: The current value. Never modified.
        recipe: Called with a draft of `base`. Edits made to the draft define
            the result. If the recipe returns something other than `None` or the
            root draft, that value replaces the result entirely.

    Returns:
        The new value. Untouched containers are shared with `base` by
        reference, and if nothing changed `base` itself is returned.

    Raises:
        Whatever `recipe` raises. Drafts are revoked either way.
    """
    if not _is_draftable(base):
        returned = recipe(base)
        return base if returned is None else returned

    scope = _Scope()
    root = _make_draft(base, scope)
    try:
        returned = recipe(root)
        if returned is None or returned is root:
            return root._finalize()
        return _finalize_value(returned)
    finally:
        scope.revoked = True
