"""Benchmark: key-handling latency (p50/p95/mean).

Measures per-call latency of ``CoreEditor.handle_key`` for a command that
builds and commits one transaction (Enter splits a paragraph) and for a
pure selection change (Mod-a).
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import docweave

_WARMUP: int = 50
_ITERATIONS: int = 1_000

_DOCUMENT = {
    "type": "doc",
    "content": [
        {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Release notes"}]},
        {"type": "paragraph", "content": [{"type": "text", "text": "The editor core resolves extensions."}]},
        {"type": "paragraph", "content": [{"type": "text", "text": "Commands run as one atomic chain."}]},
    ],
}


def _summarize(operation: str, latencies_ms: list[float]) -> dict[str, object]:
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000
    return {
        "operation": operation,
        "iterations": n,
        "total_seconds": round(total, 4),
        "ops_per_second": round(n / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_ms": round(sorted_lats[int(n * 0.50)], 4),
        "p95_ms": round(sorted_lats[min(int(n * 0.95), n - 1)], 4),
    }


def bench_enter_latency() -> dict[str, object]:
    """Benchmark Enter (split block) latency.

    The document is reset between calls so each measurement splits the
    same paragraph.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_ms, p95_ms.
    """
    editor = docweave.create_editor(content=_DOCUMENT, platform="pc")
    select_middle = editor.commands.create("select_text", 4, 0, 1)

    def one_call() -> float:
        editor.set_document(_DOCUMENT)
        editor.run(select_middle)
        t0 = time.perf_counter()
        editor.handle_key("Enter")
        return (time.perf_counter() - t0) * 1000

    for _ in range(_WARMUP):
        one_call()
    result = _summarize("handle_key_enter", [one_call() for _ in range(_ITERATIONS)])
    print(
        f"[bench_latency] {result['operation']}: "
        f"p50={result['p50_ms']:.4f}ms  p95={result['p95_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def bench_select_all_latency() -> dict[str, object]:
    """Benchmark Mod-a (selection only, no document change) latency."""
    editor = docweave.create_editor(content=_DOCUMENT, platform="pc")

    for _ in range(_WARMUP):
        editor.handle_key("Ctrl-a")

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        editor.handle_key("Ctrl-a")
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    result = _summarize("handle_key_select_all", latencies_ms)
    print(f"[bench_latency] {result['operation']}: mean={result['avg_latency_ms']:.4f}ms")
    return result


if __name__ == "__main__":
    results = [bench_enter_latency(), bench_select_all_latency()]
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
