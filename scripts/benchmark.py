#!/usr/bin/env python3
"""Benchmark query latency against a real folder of notes.

Each query is typed one character at a time, the way a user types into the
search box, so every keystroke supersedes the previous generation. The time
reported is from the last keystroke until the final generation is idle.

Usage:
    uv run python scripts/benchmark.py --root /path/to/notes "#todo urgent" meeting
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Add the src directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def format_time(seconds: float) -> str:
    """Format time in human readable format."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"


async def benchmark_query(query: str, config, keystroke_delay: float) -> dict:
    """Benchmark a single query typed keystroke by keystroke."""
    from quick_file_search.search.orchestrator import ProcessOrchestrator
    from quick_file_search.search.results import ItemKind
    from quick_file_search.search.session import CollectingSurface

    surface = CollectingSurface()
    orchestrator = ProcessOrchestrator(config, surface)

    print(f"  Typing {query!r}...", end=" ", flush=True)
    for i in range(1, len(query) + 1):
        orchestrator.on_query_change(query[:i])
        await asyncio.sleep(keystroke_delay)
    generations = orchestrator.generation

    start = time.perf_counter()
    await surface.wait_idle()
    settle_time = time.perf_counter() - start
    orchestrator.close()

    items = surface.items
    file_count = sum(1 for item in items if item.kind is ItemKind.FILE_MATCH)
    print(f"{format_time(settle_time)} ({file_count} files)")

    return {
        "query": query,
        "generations": generations,
        "settle_time": settle_time,
        "files": file_count,
        "messages": len(items) - file_count,
    }


def print_results_table(results: list[dict]):
    """Print benchmark results in a table format."""
    print("\n" + "=" * 64)
    print("BENCHMARK RESULTS")
    print("=" * 64)

    print(f"{'Query':<28} {'Gens':>6} {'Settle':>10} {'Files':>8} {'Errors':>8}")
    print("-" * 64)
    for r in results:
        print(
            f"{r['query'][:28]:<28} {r['generations']:>6} "
            f"{format_time(r['settle_time']):>10} {r['files']:>8} {r['messages']:>8}"
        )


def main():
    parser = argparse.ArgumentParser(description="Benchmark live search latency")
    parser.add_argument("--root", "-r", action="append", type=Path, required=True)
    parser.add_argument(
        "--keystroke-delay",
        type=float,
        default=0.05,
        help="Seconds between simulated keystrokes",
    )
    parser.add_argument("queries", nargs="+")
    args = parser.parse_args()

    from quick_file_search.config import get_config

    config = get_config(args.root)
    print(f"Searching {len(config.roots)} roots with {config.rg_path}")

    results = []
    for query in args.queries:
        results.append(asyncio.run(benchmark_query(query, config, args.keystroke_delay)))

    print_results_table(results)


if __name__ == "__main__":
    main()
