from rxstate import Store

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Defining a store")
print("-" * 100)
print()

# A store holds one immutable value. Reads never change it.
people = Store.of({"person": {"first": "Joe", "last": "Smith"}, "address": {"city": "Denver"}})
print(people.get(lambda s: s["person"]["first"]))

# Subscribing replays the current value right away, then each change.
first_names = people.select(lambda s: s["person"]["first"])
subscription = first_names.subscribe(lambda name: print(f"First name is now: {name}"))

# update() edits a draft in place; the store gets a brand new value.
before = people.get()
people.update(lambda s: s["person"].update(first="Sue"))

# The untouched address is shared between the old and the new state.
print(people.get()["address"] is before["address"])

# Nothing is printed here: the selected first name did not change.
people.update(lambda s: s["address"].update(city="Boston"))

subscription.dispose()

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Writes only show transitions")
print("-" * 100)
print()

names = Store.of("Joe")
names.subscribe(lambda name: print(f"Saw: {name}"))

# The trailing repeat is not printed.
for name in ["Sue", "Joe", "Sue", "Joe", "Joe"]:
    names.set(name)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Joining stores")
print("-" * 100)
print()

location = Store.of({"city": 1})
cities = Store.of({1: "Denver", 2: "Boston"})

# The joining query's own value is always the projector's first argument.
city_name = location.query().join(cities, lambda loc, names: names[loc["city"]])
city_name.subscribe(lambda name: print(f"Lives in: {name}"))

location.update(lambda s: s.update(city=2))  # Prints Boston

# Adding an unrelated city recomputes the query but prints nothing.
cities.update(lambda s: s.update({3: "Tokyo"}))
