"""Provider configuration records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Mapping


class AdapterFamily(str, enum.Enum):
    """Wire protocol variants understood by the adapters."""

    CHAT_COMPLETIONS = "chat-completions"
    MESSAGES = "messages"


@dataclass(slots=True, frozen=True)
class ProviderConfig:
    """One configured text-generation backend.

    ``family`` is optional; configs without it are classified from their id
    and base URL when an adapter is picked.
    """

    id: str
    name: str
    api_key: str = field(default="", repr=False)
    base_url: str = ""
    model: str = ""
    enabled: bool = False
    family: str | None = None

    @property
    def has_key(self) -> bool:
        return bool(self.api_key.strip())

    @property
    def is_eligible(self) -> bool:
        """Enabled and holding key material, i.e. usable as the active provider."""

        return self.enabled and self.has_key

    def with_changes(self, **changes: Any) -> "ProviderConfig":
        return replace(self, **changes)

    def to_dict(self, *, include_key: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "base_url": self.base_url,
            "model": self.model,
            "enabled": self.enabled,
        }
        if self.family:
            payload["family"] = self.family
        if include_key:
            payload["api_key"] = self.api_key
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProviderConfig":
        provider_id = str(payload.get("id") or "").strip()
        if not provider_id:
            raise ValueError("Provider entries require an id")
        family = payload.get("family")
        return cls(
            id=provider_id,
            name=str(payload.get("name") or provider_id),
            api_key=str(payload.get("api_key") or ""),
            base_url=str(payload.get("base_url") or ""),
            model=str(payload.get("model") or ""),
            enabled=bool(payload.get("enabled", False)),
            family=str(family) if family else None,
        )


DEFAULT_PROVIDERS: tuple[ProviderConfig, ...] = (
    ProviderConfig(
        id="openai",
        name="OpenAI",
        base_url="https://api.openai.com/v1",
        model="gpt-3.5-turbo",
        family=AdapterFamily.CHAT_COMPLETIONS.value,
    ),
    ProviderConfig(
        id="claude",
        name="Claude",
        base_url="https://api.anthropic.com",
        model="claude-3-sonnet-20240229",
        family=AdapterFamily.MESSAGES.value,
    ),
)


__all__ = ["AdapterFamily", "DEFAULT_PROVIDERS", "ProviderConfig"]
