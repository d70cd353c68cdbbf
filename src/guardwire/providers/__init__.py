from .base import ProviderConfig, TextGenerator
from .factory import create_provider
from .registry import register, registered_providers, resolve, resolve_provider
from .static import StaticProvider

# PydanticAIProvider registers itself on import; it is only usable when
# pydantic-ai is installed.
from .pydantic_ai_provider import PydanticAIProvider  # noqa: E402

__all__ = [
    "ProviderConfig",
    "PydanticAIProvider",
    "StaticProvider",
    "TextGenerator",
    "create_provider",
    "register",
    "registered_providers",
    "resolve",
    "resolve_provider",
]
