"""
Shared pytest fixtures and configuration for RxState tests.
"""

import pytest

from rxstate import Store, StoreOptions


@pytest.fixture
def person_state():
    """A fresh nested state value for each test."""
    return {
        "person": {"first": "Joe", "last": "Smith"},
        "address": {"city": "Denver"},
    }


@pytest.fixture
def store(person_state):
    """A Store seeded with `person_state`."""
    return Store(StoreOptions(initial_state=person_state))


@pytest.fixture
def resident_store():
    """A person store that refers to a city by id."""
    return Store.of({"person": {"first": "Joe", "last": "Smith"}, "city": 1})


@pytest.fixture
def city_store():
    """A lookup store of cities keyed by id."""
    return Store.of(
        {
            1: {"name": "Denver", "country": "USA"},
            2: {"name": "Boston", "country": "USA"},
            3: {"name": "Tokyo", "country": "Japan"},
        }
    )


@pytest.fixture
def diamond_dependency():
    """
    One store read by two queries that are joined back together.

    Returns (source, path_a, path_b, combined, calls) where `calls` records every
    invocation of the combined projector.
    """
    source = Store.of({"value": 10, "unrelated": 0})
    path_a = source.query(lambda s: s["value"] + 5)
    path_b = source.query(lambda s: s["value"] * 2)
    calls = []

    def combine(a, b):
        calls.append((a, b))
        return a + b

    combined = path_a.join(path_b, combine)
    return source, path_a, path_b, combined, calls
