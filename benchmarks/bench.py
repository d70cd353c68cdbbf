from __future__ import annotations

import argparse
import platform
import statistics
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, NamedTuple

import pydantic
from pydantic import Field, TypeAdapter

from guardwire import (
    AiService,
    FaultToleranceOptions,
    NumericOutputGuardrail,
    StaticProvider,
    sanitize,
)
from guardwire.retrieval import HashingEmbedder, InMemoryEmbeddingStore, RetrievalAugmentor, ingest


class BenchResult(NamedTuple):
    name: str
    iters: int
    seconds_per_iter: float


def _run_bench(
    name: str,
    fn: Callable[[], object],
    *,
    target_total_seconds: float = 0.25,
    repeats: int = 7,
    max_iters: int = 1_000_000,
) -> BenchResult:
    iters = 1
    while True:
        start = time.perf_counter()
        for _ in range(iters):
            fn()
        elapsed = time.perf_counter() - start
        if elapsed >= target_total_seconds:
            break
        if iters >= max_iters:
            break
        iters *= 2

    per_iter_samples: list[float] = []
    for _ in range(repeats):
        start = time.perf_counter()
        for _ in range(iters):
            fn()
        elapsed = time.perf_counter() - start
        per_iter_samples.append(elapsed / iters)

    return BenchResult(name=name, iters=iters, seconds_per_iter=statistics.median(per_iter_samples))


def _fmt_seconds(s: float) -> str:
    if s < 1e-6:
        return f"{s * 1e9:.1f} ns"
    if s < 1e-3:
        return f"{s * 1e6:.1f} µs"
    if s < 1:
        return f"{s * 1e3:.3f} ms"
    return f"{s:.3f} s"


def _print_table(results: list[BenchResult]) -> None:
    name_w = max(len(r.name) for r in results)
    it_w = max(len(str(r.iters)) for r in results)
    print(
        f"{'scenario'.ljust(name_w)}  {'iters'.rjust(it_w)}  "
        f"{'median/op'.rjust(12)}  {'ops/s'.rjust(12)}"
    )
    print(f"{'-' * name_w}  {'-' * it_w}  {'-' * 12}  {'-' * 12}")
    for r in results:
        ops = 1.0 / r.seconds_per_iter if r.seconds_per_iter else float("inf")
        print(
            f"{r.name.ljust(name_w)}  {str(r.iters).rjust(it_w)}  "
            f"{_fmt_seconds(r.seconds_per_iter).rjust(12)}  {ops:12.0f}"
        )


@dataclass(frozen=True, slots=True)
class Payloads:
    literal: str
    sentence: str
    rambling: str
    refusal: str


def _payloads() -> Payloads:
    sentence = "The answer is 42."
    rambling = (
        "Let me think about this step by step. The invoice lists several items, "
        "some of which were discounted, and the shipping fee depends on weight. "
    ) * 20 + "So the final total comes to 1234.56 dollars."
    return Payloads(
        literal="3.14159",
        sentence=sentence,
        rambling=rambling,
        refusal="I'm sorry, I can't help with that request." * 5,
    )


_DOCS = [
    "Bookings can be cancelled up to 7 days before the start date.",
    "Cars can be rented for a maximum of 30 days.",
    "The office opens at 9 and closes at 17 on weekdays.",
    "A refundable deposit of 250 euros is required for every rental.",
] * 25


def main() -> None:
    parser = argparse.ArgumentParser(description="Microbenchmarks for guardwire.")
    parser.add_argument("--target-seconds", type=float, default=0.25)
    parser.add_argument("--repeats", type=int, default=7)
    args = parser.parse_args()

    payloads = _payloads()
    float_adapter = TypeAdapter(float)
    float_guardrail = NumericOutputGuardrail(float)
    bounded_guardrail = NumericOutputGuardrail(Annotated[float, Field(ge=0, le=100)])

    service = AiService(
        generator=StaticProvider([payloads.sentence]),
        system_message="Answer with a number.",
        output_guardrail=float_guardrail,
        fault_tolerance=FaultToleranceOptions(timeout=None, max_retries=0, delay=0),
    )

    store = InMemoryEmbeddingStore()
    embedder = HashingEmbedder()
    ingest(_DOCS, store, embedder)
    augmentor = RetrievalAugmentor(store, embedder)

    scenarios: list[tuple[str, Callable[[], object]]] = [
        ("sanitize literal (direct)", lambda: sanitize(payloads.literal)),
        ("sanitize sentence (extracted)", lambda: sanitize(payloads.sentence)),
        ("sanitize rambling (~2.7k chars)", lambda: sanitize(payloads.rambling)),
        ("sanitize refusal (failure)", lambda: sanitize(payloads.refusal)),
        (
            "pydantic validate_python literal (baseline)",
            lambda: float_adapter.validate_python(payloads.literal),
        ),
        ("guardrail float sentence", lambda: float_guardrail.validate(payloads.sentence)),
        ("guardrail bounded float rejects", lambda: bounded_guardrail.validate("It is 250")),
        ("service.chat static provider", lambda: service.chat("What is the answer?")),
        ("retrieval augment (100 segments)", lambda: augmentor.augment("Can I cancel?")),
    ]

    results = [
        _run_bench(
            name,
            fn,
            target_total_seconds=args.target_seconds,
            repeats=args.repeats,
        )
        for name, fn in scenarios
    ]

    print("Environment")
    print(f"- python: {platform.python_version()} ({platform.python_implementation()})")
    print(f"- platform: {platform.platform()}")
    print(f"- pydantic: {pydantic.__version__}")
    print()

    _print_table(results)


if __name__ == "__main__":
    main()
