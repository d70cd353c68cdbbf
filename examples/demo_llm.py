"""guardwire end-to-end demo: a real model behind the guardrails.

Requires: uv sync --extra ai
Requires: OPENAI_API_KEY env var (or GUARDWIRE_MODEL for other providers)
"""

from typing import Annotated

from pydantic import Field
from pydantic_ai import Agent

import guardwire as gw
from guardwire.ai import numeric_output_validator

# ── Service: system prompt, memory, timeout, retry and fallback ──────

service = gw.create_service(
    system_message=(
        "You are a helpful travel assistant. Today is {current_date}. "
        "Answer every question with a single number."
    ),
    output_guardrail=gw.NumericOutputGuardrail(Annotated[float, Field(ge=0)]),
    fault_tolerance=gw.FaultToleranceOptions(timeout=30.0, max_retries=2, delay=1.0),
)

session = gw.ChatSession()
for question in [
    "How many kilometres is it from Paris to Berlin by road?",
    "And how many hours would that take at an average of 90 km/h?",
]:
    answer = service.chat(question, session=session)
    print(f"Q: {question}\nA: {answer!r}\n")

# ── Same guard inside a plain pydantic-ai agent ──────────────────────

agent = Agent("openai:gpt-4o-mini", output_type=str)
agent.output_validator(numeric_output_validator(int))

result = agent.run_sync("How many moons does Mars have?")
print(f"pydantic-ai agent: {result.output!r}")
