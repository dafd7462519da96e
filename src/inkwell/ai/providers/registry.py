"""Provider registry and the active-provider resolution policy."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

import httpx

from ...events import EventBus, ProvidersChanged
from .base import DEFAULT_TIMEOUT, ProviderAdapter
from .chat_completions import ChatCompletionAdapter
from .config import DEFAULT_PROVIDERS, AdapterFamily, ProviderConfig
from .messages import MessagesAdapter

LOGGER = logging.getLogger(__name__)

_WELL_KNOWN_FAMILIES: Mapping[str, AdapterFamily] = MappingProxyType(
    {
        "openai": AdapterFamily.CHAT_COMPLETIONS,
        "anthropic": AdapterFamily.MESSAGES,
        "claude": AdapterFamily.MESSAGES,
    }
)
_MESSAGES_HOST = "anthropic.com"


def resolve_family(config: ProviderConfig) -> AdapterFamily:
    """Pick the wire protocol for ``config``.

    An explicit ``family`` wins, then well-known ids, then the base URL's
    host. Anything else is treated as OpenAI-compatible.
    """

    if config.family:
        try:
            return AdapterFamily(config.family.strip().lower())
        except ValueError:
            LOGGER.warning("Provider %s declares unknown family %r; inferring it", config.id, config.family)
    known = _WELL_KNOWN_FAMILIES.get(config.id.strip().lower())
    if known is not None:
        return known
    if config.base_url:
        try:
            host = httpx.URL(config.base_url).host.lower()
        except httpx.InvalidURL:
            host = ""
        if host == _MESSAGES_HOST or host.endswith(f".{_MESSAGES_HOST}"):
            return AdapterFamily.MESSAGES
    return AdapterFamily.CHAT_COMPLETIONS


def build_default_adapters(
    *,
    timeout: float | None = DEFAULT_TIMEOUT,
    debug_logging: bool = False,
) -> Mapping[AdapterFamily, ProviderAdapter]:
    return MappingProxyType(
        {
            AdapterFamily.CHAT_COMPLETIONS: ChatCompletionAdapter(timeout=timeout, debug_logging=debug_logging),
            AdapterFamily.MESSAGES: MessagesAdapter(timeout=timeout, debug_logging=debug_logging),
        }
    )


class ProviderRegistry:
    """Owns provider configs and the default marker.

    Every mutation publishes :class:`ProvidersChanged` on the bus so other
    windows and the settings dialog stay in sync without shared globals.
    """

    def __init__(
        self,
        providers: Iterable[ProviderConfig] = (),
        *,
        default_provider: str | None = None,
        bus: EventBus | None = None,
        adapters: Mapping[AdapterFamily, ProviderAdapter] | None = None,
    ) -> None:
        self._providers: dict[str, ProviderConfig] = {}
        for config in providers:
            if config.id in self._providers:
                raise ValueError(f"Duplicate provider id: {config.id}")
            self._providers[config.id] = config
        if default_provider is not None and default_provider not in self._providers:
            LOGGER.warning("Default provider %s is not registered; ignoring it", default_provider)
            default_provider = None
        self._default = default_provider
        self._bus = bus or EventBus()
        self._adapters = adapters if adapters is not None else build_default_adapters()

    @classmethod
    def with_defaults(cls, **kwargs: Any) -> "ProviderRegistry":
        return cls(DEFAULT_PROVIDERS, **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def providers(self) -> tuple[ProviderConfig, ...]:
        return tuple(self._providers.values())

    @property
    def default_provider(self) -> str | None:
        return self._default

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self.providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def get(self, provider_id: str) -> ProviderConfig | None:
        return self._providers.get(provider_id)

    def resolve_active_provider(self) -> ProviderConfig | None:
        """Default provider if eligible, else the first eligible in registration order."""

        if self._default is not None:
            preferred = self._providers.get(self._default)
            if preferred is not None and preferred.is_eligible:
                return preferred
        for config in self._providers.values():
            if config.is_eligible:
                return config
        return None

    def has_active_provider(self) -> bool:
        return self.resolve_active_provider() is not None

    def adapter_for(self, config: ProviderConfig) -> ProviderAdapter:
        family = resolve_family(config)
        try:
            return self._adapters[family]
        except KeyError:
            raise LookupError(f"No adapter registered for family {family.value}") from None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def register(self, config: ProviderConfig) -> None:
        """Insert ``config``, or replace the entry with the same id in place."""

        replaced = config.id in self._providers
        self._providers[config.id] = config
        LOGGER.debug("%s provider %s", "Replaced" if replaced else "Registered", config.id)
        self._publish()

    def update(self, provider_id: str, **changes: Any) -> ProviderConfig:
        current = self._require(provider_id)
        if "id" in changes and changes["id"] != provider_id:
            raise ValueError("Provider ids cannot be changed")
        updated = current.with_changes(**changes)
        self._providers[provider_id] = updated
        self._publish()
        return updated

    def remove(self, provider_id: str) -> ProviderConfig:
        removed = self._providers.pop(provider_id, None)
        if removed is None:
            raise KeyError(provider_id)
        if self._default == provider_id:
            self._default = None
        self._publish()
        return removed

    def set_default(self, provider_id: str | None) -> None:
        if provider_id is not None:
            self._require(provider_id)
        if provider_id == self._default:
            return
        self._default = provider_id
        self._publish()

    def replace_all(self, providers: Iterable[ProviderConfig], *, default_provider: str | None = None) -> None:
        """Swap in a full provider list, e.g. after the settings dialog is accepted."""

        replacement: dict[str, ProviderConfig] = {}
        for config in providers:
            if config.id in replacement:
                raise ValueError(f"Duplicate provider id: {config.id}")
            replacement[config.id] = config
        self._providers = replacement
        self._default = default_provider if default_provider in replacement else None
        self._publish()

    def subscribe(self, handler) -> None:
        self._bus.subscribe(ProvidersChanged, handler)

    def unsubscribe(self, handler) -> None:
        self._bus.unsubscribe(ProvidersChanged, handler)

    def _require(self, provider_id: str) -> ProviderConfig:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise KeyError(f"Unknown provider: {provider_id}") from None

    def _publish(self) -> None:
        active = self.resolve_active_provider()
        self._bus.publish(
            ProvidersChanged(
                provider_ids=tuple(self._providers),
                default_provider=self._default,
                active_provider=active.id if active else None,
            )
        )


__all__ = ["ProviderRegistry", "build_default_adapters", "resolve_family"]
