#!/usr/bin/env python3
"""
RxState Propagation Benchmarks

Measures how quickly updates propagate from a store to subscribed queries, and
how many projector calls each topology costs.

Benchmark Categories:
- Single Store: one store, one selector subscription
- Diamond Join: two queries over the same store joined back together
- Cross-Store Join: a lookup join across two stores
- Query Chain: a long chain of map() queries over one store

Usage:
    python scripts/benchmark.py                  # Run with default iterations
    python scripts/benchmark.py --iterations N   # Updates per benchmark
    python scripts/benchmark.py --config         # Show configuration and exit
"""

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Tuple

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rxstate import Store, StoreQuery

# Configuration constants - adjust these to change benchmark behavior
DEFAULT_ITERATIONS = 10_000
CHAIN_LENGTH = 50


@dataclass
class BenchmarkResult:
    """Outcome of one propagation benchmark."""

    name: str
    updates: int
    elapsed: float
    emissions: int
    projector_calls: int

    @property
    def updates_per_second(self) -> float:
        return self.updates / self.elapsed if self.elapsed else float("inf")

    @property
    def calls_per_update(self) -> float:
        return self.projector_calls / self.updates if self.updates else 0.0


class CallCounter:
    """Wraps projectors so their invocations can be counted."""

    def __init__(self):
        self.calls = 0

    def wrap(self, func: Callable) -> Callable:
        def counted(*values):
            self.calls += 1
            return func(*values)

        return counted


Builder = Callable[[CallCounter], Tuple[StoreQuery, Callable[[int], None]]]


def _measure(name: str, iterations: int, build: Builder) -> BenchmarkResult:
    counter = CallCounter()
    query, write = build(counter)
    emissions: List[object] = []
    subscription = query.select().subscribe(emissions.append)
    counter.calls = 0

    start = time.perf_counter()
    for i in range(iterations):
        write(i)
    elapsed = time.perf_counter() - start

    subscription.dispose()
    return BenchmarkResult(
        name=name,
        updates=iterations,
        elapsed=elapsed,
        emissions=len(emissions) - 1,
        projector_calls=counter.calls,
    )


def _single_store(counter: CallCounter):
    store = Store.of({"count": 0, "other": {"flag": False}})
    query = store.query(counter.wrap(lambda s: s["count"]))
    return query, lambda i: store.update(lambda s: s.update(count=i + 1))


def _diamond_join(counter: CallCounter):
    store = Store.of({"a": 0, "b": 0})
    left = store.query(lambda s: s["a"])
    right = store.query(lambda s: s["b"])
    query = left.join(right, counter.wrap(lambda a, b: a + b))
    return query, lambda i: store.update(lambda s: s.update(a=i + 1))


def _cross_store_join(counter: CallCounter):
    location = Store.of({"city": 0})
    cities = Store.of({i: f"city-{i}" for i in range(100)})
    lookup = counter.wrap(lambda loc, names: names[loc["city"]])
    query = location.query().join(cities, lookup)
    return query, lambda i: location.update(lambda s: s.update(city=(i + 1) % 100))


def _query_chain(counter: CallCounter):
    store = Store.of({"value": 0})
    query = store.query(lambda s: s["value"])
    for _ in range(CHAIN_LENGTH - 1):
        query = query.map(lambda v: v + 1)
    query = query.map(counter.wrap(lambda v: v))
    return query, lambda i: store.update(lambda s: s.update(value=i + 1))


BENCHMARKS = [
    ("Single Store", _single_store),
    ("Diamond Join", _diamond_join),
    ("Cross-Store Join", _cross_store_join),
    (f"Query Chain ({CHAIN_LENGTH})", _query_chain),
]


class RxStateBenchmark:
    """Rich-formatted display for RxState propagation benchmarks."""

    def __init__(self, iterations: int):
        self.console = Console()
        self.iterations = iterations
        self.results: List[BenchmarkResult] = []

    def run_benchmarks(self):
        """Run all benchmarks and display results with rich formatting."""
        start_time = time.time()
        self._display_header()

        for name, build in BENCHMARKS:
            self.console.print(f"[yellow]Running {name}...[/yellow]")
            result = _measure(name, self.iterations, build)
            self.results.append(result)
            self.console.print(
                f"[green]✓[/green] {name}: {result.updates_per_second:,.0f} updates/sec"
            )

        self._display_final_results(start_time)

    def _display_header(self):
        header = Panel(
            Align.center("RxState Propagation Benchmark Suite"),
            title="RxState Benchmarks",
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float):
        elapsed = time.time() - start_time

        table = Table(title="Final Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Updates", style="magenta", justify="right")
        table.add_column("Updates/sec", style="green", justify="right")
        table.add_column("Emissions", justify="right")
        table.add_column("Projector calls / update", style="yellow", justify="right")

        for result in self.results:
            table.add_row(
                result.name,
                f"{result.updates:,}",
                f"{result.updates_per_second:,.0f}",
                f"{result.emissions:,}",
                f"{result.calls_per_update:.2f}",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()
        self.console.print(f"[dim]Benchmark completed in {elapsed:.2f} seconds[/dim]")


def print_config(iterations: int):
    """Print the current benchmark configuration."""
    print("RxState Benchmark Configuration:")
    print(f"  Updates per benchmark: {iterations:,}")
    print(f"  Query chain length: {CHAIN_LENGTH}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="RxState Propagation Benchmarks")
    parser.add_argument(
        "--iterations",
        type=int,
        default=DEFAULT_ITERATIONS,
        help=f"Updates per benchmark (default: {DEFAULT_ITERATIONS})",
    )
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    args = parser.parse_args()

    if args.config:
        print_config(args.iterations)
        return

    RxStateBenchmark(args.iterations).run_benchmarks()


if __name__ == "__main__":
    main()
