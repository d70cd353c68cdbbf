from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("guardwire")
except PackageNotFoundError:  # pragma: no cover - local source tree without installed metadata
    __version__ = "0.1.0"

from .guardrails import (
    FatalGuardrailError,
    GuardrailError,
    GuardrailResult,
    InputGuardrail,
    InputGuardrailError,
    NumericOutputGuardrail,
    OutputGuardrail,
    OutputGuardrailError,
)
from .memory import ChatMessage, ChatSession, Role
from .pipeline import anumeric_pipeline, numeric_pipeline
from .providers import PydanticAIProvider, StaticProvider, TextGenerator, create_provider
from .resilience import (
    ExecutionContext,
    FaultToleranceOptions,
    RetriesExhaustedError,
    ServiceTimeoutError,
    afault_tolerant,
    fault_tolerant,
    static_fallback,
)
from .retrieval import (
    HashingEmbedder,
    InMemoryEmbeddingStore,
    RetrievalAugmentor,
    ingest,
)
from .sanitize import NumericResponseSanitizer, extract_trailing_number, sanitize
from .service import DEFAULT_FALLBACK_RESPONSE, AiService, create_service
from .types import Failure, SanitizeResult, Stage, Success

__all__ = [
    "AiService",
    "ChatMessage",
    "ChatSession",
    "DEFAULT_FALLBACK_RESPONSE",
    "ExecutionContext",
    "Failure",
    "FatalGuardrailError",
    "FaultToleranceOptions",
    "GuardrailError",
    "GuardrailResult",
    "HashingEmbedder",
    "InMemoryEmbeddingStore",
    "InputGuardrail",
    "InputGuardrailError",
    "NumericOutputGuardrail",
    "NumericResponseSanitizer",
    "OutputGuardrail",
    "OutputGuardrailError",
    "PydanticAIProvider",
    "RetrievalAugmentor",
    "RetriesExhaustedError",
    "Role",
    "SanitizeResult",
    "ServiceTimeoutError",
    "Stage",
    "StaticProvider",
    "Success",
    "TextGenerator",
    "afault_tolerant",
    "anumeric_pipeline",
    "create_provider",
    "create_service",
    "extract_trailing_number",
    "fault_tolerant",
    "ingest",
    "numeric_pipeline",
    "sanitize",
    "static_fallback",
]
