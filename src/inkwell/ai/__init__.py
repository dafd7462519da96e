"""AI edit pipeline: requests, provider adapters and session handling."""

from .errors import EditError, ErrorCode, StaleSessionError, TransportError, ValidationError
from .pipeline import AIEditPipeline
from .prompts import QUICK_INSTRUCTIONS
from .providers import AdapterFamily, ProviderConfig, ProviderRegistry
from .session import EditSession, SessionStatus
from .types import EditRequest, EditResult

__all__ = [
    "AIEditPipeline",
    "AdapterFamily",
    "EditError",
    "EditRequest",
    "EditResult",
    "EditSession",
    "ErrorCode",
    "ProviderConfig",
    "ProviderRegistry",
    "QUICK_INSTRUCTIONS",
    "SessionStatus",
    "StaleSessionError",
    "TransportError",
    "ValidationError",
]
