"""Benchmark: editor construction and command-chain throughput.

Measures how many editors can be assembled from the basic-editor kit per
second, and how many multi-command chains can be committed per second.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import docweave

_ASSEMBLY_ITERATIONS: int = 200
_CHAIN_ITERATIONS: int = 2_000


def bench_assembly_throughput() -> dict[str, object]:
    """Benchmark resolve + schema assembly + command/keymap merge.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    start = time.perf_counter()
    for _ in range(_ASSEMBLY_ITERATIONS):
        docweave.create_editor(platform="pc")
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "editor_assembly",
        "iterations": _ASSEMBLY_ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ASSEMBLY_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _ASSEMBLY_ITERATIONS * 1000, 4),
    }
    print(f"[bench_throughput] {result['operation']}: {result['ops_per_second']:,.0f} ops/sec")
    return result


def bench_chain_throughput() -> dict[str, object]:
    """Benchmark insert + select + toggle chains committed as one transaction each."""
    editor = docweave.create_editor(platform="pc")

    start = time.perf_counter()
    for _ in range(_CHAIN_ITERATIONS):
        editor.chain().insert_text("word ").select_text(0, 4).toggle_strong().select_text(0).run()
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "chain_insert_toggle",
        "iterations": _CHAIN_ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_CHAIN_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _CHAIN_ITERATIONS * 1000, 4),
    }
    print(f"[bench_throughput] {result['operation']}: {result['ops_per_second']:,.0f} ops/sec")
    return result


if __name__ == "__main__":
    results = [bench_assembly_throughput(), bench_chain_throughput()]
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "throughput_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
