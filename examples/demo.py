"""guardwire demo: guard a chatty model that was asked for a number.

Runs offline: a ``StaticProvider`` stands in for the model.
"""

import logging

import guardwire as gw
from guardwire.retrieval import HashingEmbedder, InMemoryEmbeddingStore, RetrievalAugmentor

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# ── 1. Sanitize: free text → number ──────────────────────────────────
#
# Models asked for "just a number" love to answer in full sentences.

print("1) sanitize")
for text in ["42", "The answer is 42.", "Price: $19.99 dollars", "No idea, sorry."]:
    print(f"   {text!r:28s} → {gw.sanitize(text)!r}")
print()


# ── 2. Guardrail: number + type/constraint check ─────────────────────

guardrail = gw.NumericOutputGuardrail(int)
print("2) NumericOutputGuardrail(int)")
for text in ["There are 12 rooms", "About 2.5 rooms"]:
    result = guardrail.validate(text)
    print(f"   {text!r:22s} → ok={result.ok} value={result.value!r} message={result.message!r}")
print()


# ── 3. Service: memory + reprompt + retrieval ────────────────────────
#
# The first answer holds no number, so the guardrail reprompts; the second
# answer is accepted and remembered in the session.

store = InMemoryEmbeddingStore()
embedder = HashingEmbedder()
gw.ingest(
    [
        "Bookings can be cancelled up to 7 days before the start date.",
        "Cars can be rented for a maximum of 30 days.",
    ],
    store,
    embedder,
)

provider = gw.StaticProvider(["Let me check the policy for you.", "You can rent it for 30 days."])
service = gw.AiService(
    generator=provider,
    system_message="You are a car rental assistant. Today is {current_date}.",
    output_guardrail=gw.NumericOutputGuardrail(int),
    retriever=RetrievalAugmentor(store, embedder, min_score=0.5),
    fault_tolerance=gw.FaultToleranceOptions(timeout=2.0, max_retries=1, delay=0.0),
)

session = gw.ChatSession(max_messages=10)
days = service.chat("For how many days can cars be rented?", session=session)
print("3) AiService.chat")
print(f"   answer={days!r}  model calls={provider.calls}")
for message in session.messages:
    print(f"   {message.role.value:>9}: {message.content}")
print()


# ── 4. Fallback: a model that never answers ─────────────────────────


def broken_model(prompt: str) -> str:
    raise ConnectionError("model endpoint unreachable")


run = gw.numeric_pipeline(
    broken_model,
    options=gw.FaultToleranceOptions(timeout=1.0, max_retries=2, delay=0.05),
    fallback="0",
)
print("4) numeric_pipeline with fallback")
print(f"   {run('How many?')!r}")
