"""Backend adapters and provider configuration."""

from .base import MAX_TOKENS, TEMPERATURE, ProviderAdapter
from .chat_completions import ChatCompletionAdapter
from .config import DEFAULT_PROVIDERS, AdapterFamily, ProviderConfig
from .messages import MessagesAdapter
from .registry import ProviderRegistry, build_default_adapters, resolve_family

__all__ = [
    "AdapterFamily",
    "ChatCompletionAdapter",
    "DEFAULT_PROVIDERS",
    "MAX_TOKENS",
    "MessagesAdapter",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderRegistry",
    "TEMPERATURE",
    "build_default_adapters",
    "resolve_family",
]
