"""Integration tests for stores and queries working together."""

import threading

import pytest

from rxstate import Store


@pytest.mark.integration
@pytest.mark.store
def test_selected_first_name_follows_update():
    """A first-name subscriber sees the initial name, then the updated one."""
    # Arrange
    store = Store.of({"person": {"first": "Joe", "last": "Smith"}})
    seen = []
    store.select(lambda s: s["person"]["first"]).subscribe(seen.append)

    # Act
    store.update(lambda s: s["person"].update(first="Sue"))

    # Assert
    assert seen == ["Joe", "Sue"]


@pytest.mark.integration
@pytest.mark.store
def test_alternating_writes_only_show_transitions():
    """Repeated writes of the same value collapse into one emission."""
    # Arrange
    store = Store.of("Joe")
    seen = []
    store.select().subscribe(seen.append)

    # Act
    for name in ["Sue", "Joe", "Sue", "Joe", "Joe"]:
        store.set(name)

    # Assert
    assert seen == ["Joe", "Sue", "Joe", "Sue", "Joe"]


@pytest.mark.integration
@pytest.mark.query
def test_cross_store_lookup_ignores_unrelated_keys():
    """A join over two stores re-emits only when the looked-up value changes."""
    # Arrange
    location = Store.of({"city": 1})
    cities = Store.of({1: "Denver", 2: "Boston"})
    city_name = location.query().join(cities, lambda loc, names: names[loc["city"]])
    seen = []
    city_name.select().subscribe(seen.append)

    # Act & Assert
    assert city_name.get() == "Denver"

    location.update(lambda s: s.update(city=2))
    assert seen == ["Denver", "Boston"]

    cities.update(lambda s: s.update({3: "Tokyo"}))
    assert seen == ["Denver", "Boston"]


@pytest.mark.integration
@pytest.mark.query
def test_joining_two_queries_from_the_same_store(resident_store):
    """Each store update produces exactly one recomputation of the join."""
    # Arrange
    first = resident_store.query(lambda s: s["person"]["first"])
    city = resident_store.query(lambda s: s["city"])
    sentence = first.join(city, lambda name, city_id: f"{name} lives in city #{city_id}")
    seen = []
    sentence.select().subscribe(seen.append)

    # Act
    resident_store.update(lambda s: s.update(city=3))
    resident_store.update(lambda s: s["person"].update(first="Joey"))

    # Assert
    assert seen == [
        "Joe lives in city #1",
        "Joe lives in city #3",
        "Joey lives in city #3",
    ]


@pytest.mark.integration
@pytest.mark.query
def test_joining_queries_between_different_stores(resident_store, city_store):
    """A three-way join over two stores follows both of them."""
    # Arrange
    name = resident_store.query(lambda s: s["person"]["first"])
    city_id = resident_store.query(lambda s: s["city"])
    cities = city_store.query()
    sentence = city_id.join(
        cities, name, lambda cid, all_cities, first: f"{first} lives in {all_cities[cid]['name']}"
    )
    seen = []
    sentence.select().subscribe(seen.append)

    # Act
    resident_store.update(lambda s: s.update(city=2))
    resident_store.update(lambda s: s.update(city=3))
    city_store.update(lambda s: s.update({3: {"name": "Osaka", "country": "Japan"}}))

    # Assert
    assert sentence.sources() == [resident_store, city_store]
    assert seen == [
        "Joe lives in Denver",
        "Joe lives in Boston",
        "Joe lives in Tokyo",
        "Joe lives in Osaka",
    ]


@pytest.mark.integration
@pytest.mark.query
def test_diamond_dependency_recomputes_once_per_update(diamond_dependency):
    """A diamond over one store subscribes to it once and recomputes once."""
    # Arrange
    source, path_a, path_b, combined, calls = diamond_dependency
    seen = []
    combined.select().subscribe(seen.append)

    # Act
    source.update(lambda s: s.update(value=20))

    # Assert
    assert combined.sources() == [source]
    assert seen == [35, 65]
    assert len(calls) == 2
    assert path_a.get() == 25
    assert path_b.get() == 40


@pytest.mark.integration
@pytest.mark.query
def test_diamond_dependency_dedups_unchanged_result(diamond_dependency):
    """An update that leaves the derived value unchanged is recomputed, not emitted."""
    # Arrange
    source, _, _, combined, calls = diamond_dependency
    seen = []
    combined.select().subscribe(seen.append)

    # Act
    source.update(lambda s: s.update(unrelated=1))

    # Assert
    assert seen == [35]
    assert len(calls) == 2


@pytest.mark.integration
@pytest.mark.query
def test_unrelated_store_never_triggers_recomputation(resident_store, city_store):
    """Writes to a store outside the query graph cost the query nothing."""
    # Arrange
    other = Store.of({"theme": "light"})
    calls = []

    def projector(state, cities):
        calls.append(state["city"])
        return cities[state["city"]]["name"]

    resident_store.query().join(city_store, projector).subscribe(lambda value: None)

    # Act
    other.update(lambda s: s.update(theme="dark"))
    other.set({"theme": "blue"})

    # Assert
    assert calls == [1]


@pytest.mark.integration
@pytest.mark.query
def test_projector_error_only_terminates_its_own_subscription():
    """A failing projector errors its subscription; siblings keep running."""
    # Arrange
    store = Store.of({"items": ["a"]})
    first_item = store.query(lambda s: s["items"][0])
    count = store.query(lambda s: len(s["items"]))
    first_seen, first_errors, counts = [], [], []
    first_item.subscribe(first_seen.append, first_errors.append)
    count.subscribe(counts.append)

    # Act
    store.update(lambda s: s["items"].clear())
    store.update(lambda s: s["items"].append("b"))

    # Assert
    assert first_seen == ["a"]
    assert len(first_errors) == 1
    assert isinstance(first_errors[0], IndexError)
    assert counts == [1, 0, 1]


@pytest.mark.integration
@pytest.mark.query
def test_failing_subscription_without_handler_does_not_starve_later_subscribers():
    """Subscribers after a failing one still see the write, then the writer gets the error."""
    # Arrange
    store = Store.of({"items": ["a"]})
    first_item = store.query(lambda s: s["items"][0])
    count = store.query(lambda s: len(s["items"]))
    first_seen, counts = [], []
    first_item.subscribe(first_seen.append)
    count.subscribe(counts.append)

    # Act & Assert
    with pytest.raises(IndexError):
        store.update(lambda s: s["items"].clear())

    assert store.get() == {"items": []}
    assert counts == [1, 0]

    # Act
    store.update(lambda s: s["items"].append("b"))

    # Assert
    assert first_seen == ["a"]
    assert counts == [1, 0, 1]


@pytest.mark.integration
@pytest.mark.store
def test_failing_selector_does_not_starve_later_store_subscribers():
    """A raising store selector ends only its own subscription."""
    # Arrange
    store = Store.of({"person": {"first": "Joe"}})
    names, states = [], []
    store.subscribe(names.append, lambda s: s["person"]["first"])
    store.subscribe(states.append)

    # Act & Assert
    with pytest.raises(KeyError):
        store.set({})

    store.set({"person": {"first": "Sue"}})

    # Assert
    assert names == ["Joe"]
    assert states == [{"person": {"first": "Joe"}}, {}, {"person": {"first": "Sue"}}]


@pytest.mark.integration
@pytest.mark.store
def test_concurrent_updates_are_not_lost():
    """update() is atomic across threads."""
    # Arrange
    store = Store.of({"count": 0})

    def worker():
        for _ in range(200):
            store.update(lambda s: s.update(count=s["count"] + 1))

    threads = [threading.Thread(target=worker) for _ in range(8)]

    # Act
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert
    assert store.get(lambda s: s["count"]) == 1600


@pytest.mark.integration
@pytest.mark.query
def test_query_of_queries_tracks_nested_changes():
    """Queries built on queries stay consistent with their root stores."""
    # Arrange
    cart = Store.of({"items": [{"price": 3, "qty": 2}, {"price": 5, "qty": 1}]})
    discount = Store.of({"percent": 10})
    subtotal = cart.query(lambda s: sum(i["price"] * i["qty"] for i in s["items"]))
    total = subtotal.join(discount, lambda amount, d: amount * (100 - d["percent"]) / 100)
    label = total.map(lambda amount: f"${amount:.2f}")
    seen = []
    label.select().subscribe(seen.append)

    # Act
    cart.update(lambda s: s["items"][1].update(qty=3))
    discount.update(lambda s: s.update(percent=0))

    # Assert
    assert label.sources() == [cart, discount]
    assert seen == ["$9.90", "$18.90", "$21.00"]
