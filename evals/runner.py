from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, NonNegativeFloat, PositiveInt, StrictInt

from guardwire.guardrails import NumericOutputGuardrail
from guardwire.sanitize import sanitize
from guardwire.types import Success

_TYPE_REGISTRY: dict[str, Any] = {
    "int": int,
    "float": float,
    "StrictInt": StrictInt,
    "PositiveInt": PositiveInt,
    "NonNegativeFloat": NonNegativeFloat,
}

_RANGE_RE = re.compile(r"^float\[(-?[\d.]+)\s*,\s*(-?[\d.]+)\]$")


def load_dataset(path: str | Path) -> dict[str, Any]:
    dataset_path = Path(path)
    with dataset_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or not isinstance(data.get("cases"), list):
        raise ValueError(f"Invalid dataset format: {dataset_path}")
    return data


def resolve_target(spec: str) -> Any:
    """Map a dataset type name to a validation target.

    ``float[lo, hi]`` builds an inclusive range constraint.
    """
    spec = spec.strip()
    if spec in _TYPE_REGISTRY:
        return _TYPE_REGISTRY[spec]

    m_range = _RANGE_RE.match(spec)
    if m_range:
        lo, hi = float(m_range.group(1)), float(m_range.group(2))
        return Annotated[float, Field(ge=lo, le=hi)]

    raise KeyError(f"Unknown target type spec: {spec!r}")


def _parse_evaluator(item: Any) -> tuple[str, Any]:
    if isinstance(item, str):
        return item, True
    if isinstance(item, dict) and len(item) == 1:
        ((k, v),) = item.items()
        return str(k), v
    raise ValueError(f"Invalid evaluator: {item!r}")


def _safe_equals(actual: Any, expected: Any) -> bool:
    # Avoid common Python footgun where True == 1.
    if isinstance(expected, bool) or isinstance(actual, bool):
        return actual is expected
    return actual == expected


def _preview(value: Any, *, limit: int = 200) -> str:
    s = repr(value)
    if len(s) > limit:
        return s[:limit] + "…"
    return s


def _case_text(case: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    name = str(case.get("name") or "<unnamed>")
    inputs = case.get("inputs") or {}
    if not isinstance(inputs, dict):
        raise ValueError(f"Case {name!r} has invalid inputs")
    text = inputs.get("text")
    if not isinstance(text, str):
        raise ValueError(f"Case {name!r} inputs.text must be a string")
    return text, inputs


@dataclass(slots=True)
class EvalResult:
    name: str
    passed: bool
    errors: list[str]
    output: Any = None


def run_sanitize_case(case: dict[str, Any]) -> EvalResult:
    name = str(case.get("name") or "<unnamed>")
    text, _ = _case_text(case)
    actual = sanitize(text)
    expected = case.get("expected_output")

    errors: list[str] = []
    for ev in case.get("evaluators") or []:
        ev_name, ev_params = _parse_evaluator(ev)

        if ev_name == "IsFailure":
            want = bool(ev_params)
            got = not actual.ok
            if got != want:
                errors.append(f"IsFailure: expected {want}, got {got}")

        elif ev_name == "MatchesExpected":
            if not ev_params:
                continue
            if "expected_output" not in case:
                errors.append("MatchesExpected: missing expected_output")
                continue
            got = actual.value if isinstance(actual, Success) else None
            if not _safe_equals(got, expected):
                errors.append(
                    "MatchesExpected: output mismatch "
                    f"(expected={_preview(expected)}, actual={_preview(got)})"
                )

        elif ev_name == "MatchedTextIs":
            got = actual.matched_text if isinstance(actual, Success) else None
            if got != ev_params:
                errors.append(f"MatchedTextIs: expected {ev_params!r}, got {got!r}")

        elif ev_name == "StageIs":
            want = str(ev_params).upper()
            if want not in {"DIRECT", "EXTRACTED"}:
                errors.append(f"StageIs: invalid expected stage {ev_params!r}")
                continue
            got = actual.stage.name if isinstance(actual, Success) else None
            if got != want:
                errors.append(f"StageIs: expected {want}, got {got}")

        else:
            errors.append(f"Unknown evaluator: {ev_name}")

    if isinstance(actual, Success):
        output = {"value": actual.value, "matched": actual.matched_text, "stage": actual.stage.name}
    else:
        output = {"failure": actual.reason}
    return EvalResult(name=name, passed=not errors, errors=errors, output=output)


def run_guardrail_case(case: dict[str, Any]) -> EvalResult:
    name = str(case.get("name") or "<unnamed>")
    text, inputs = _case_text(case)
    target_spec = inputs.get("target", "float")
    if not isinstance(target_spec, str):
        raise ValueError(f"Case {name!r} inputs.target must be a string")

    guardrail = NumericOutputGuardrail(resolve_target(target_spec))
    result = guardrail.validate(text)
    expected = case.get("expected_output")

    errors: list[str] = []
    for ev in case.get("evaluators") or []:
        ev_name, ev_params = _parse_evaluator(ev)

        if ev_name == "Passes":
            want = bool(ev_params)
            if result.ok != want:
                errors.append(f"Passes: expected {want}, got {result.ok}")

        elif ev_name == "MatchesExpected":
            if not ev_params:
                continue
            if "expected_output" not in case:
                errors.append("MatchesExpected: missing expected_output")
                continue
            if not _safe_equals(result.value, expected):
                errors.append(
                    "MatchesExpected: output mismatch "
                    f"(expected={_preview(expected)}, actual={_preview(result.value)})"
                )

        elif ev_name == "TypeIs":
            got = type(result.value).__name__
            if got != ev_params:
                errors.append(f"TypeIs: expected {ev_params!r}, got {got!r}")

        elif ev_name == "MessageContains":
            message = result.message or ""
            if str(ev_params) not in message:
                errors.append(f"MessageContains: {ev_params!r} not in {message!r}")

        else:
            errors.append(f"Unknown evaluator: {ev_name}")

    output = {"ok": result.ok, "value": result.value, "message": result.message}
    return EvalResult(name=name, passed=not errors, errors=errors, output=output)


def run_dataset(path: str | Path, *, task: str) -> list[EvalResult]:
    dataset = load_dataset(path)
    out: list[EvalResult] = []
    for case in dataset["cases"]:
        if not isinstance(case, dict):
            raise ValueError(f"Invalid case: {case!r}")
        if task == "sanitize":
            out.append(run_sanitize_case(case))
        elif task == "guardrail":
            out.append(run_guardrail_case(case))
        else:
            raise ValueError(f"Unknown task: {task!r}")
    return out
