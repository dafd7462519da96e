"""Settings dataclass and its encrypted JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from cryptography.fernet import Fernet, InvalidToken

from ..ai.providers.config import DEFAULT_PROVIDERS, ProviderConfig
from .storage import write_text_atomic

__all__ = [
    "FernetSecretProvider",
    "SecretVault",
    "Settings",
    "SettingsStore",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".inkwell"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_KEY_CIPHERTEXT_FIELD = "api_key_ciphertext"
_ENV_PREFIX = "INKWELL_"
_TRUE_WORDS = frozenset({"1", "true", "yes", "on", "debug"})


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_WORDS


def _env_int(raw: str) -> int:
    return int(raw, 10)


# INKWELL_<FIELD> -> parser for that field
_ENV_FIELDS: Mapping[str, Callable[[str], Any]] = {
    "theme": str,
    "default_provider": str,
    "document_dir": str,
    "trigger_char": str,
    "autosave": _env_bool,
    "debug_logging": _env_bool,
    "autosave_delay": float,
    "toolbar_hide_delay": float,
    "request_timeout": float,
    "context_chars": _env_int,
}


def _default_providers() -> list[ProviderConfig]:
    return list(DEFAULT_PROVIDERS)


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    providers: list[ProviderConfig] = field(default_factory=_default_providers)
    default_provider: str | None = None
    theme: str = "light"
    autosave: bool = True
    autosave_delay: float = 1.0
    toolbar_hide_delay: float = 0.2
    trigger_char: str = "/"
    request_timeout: float = 60.0
    context_chars: int = 500
    debug_logging: bool = False
    document_dir: str | None = None


class FernetSecretProvider:
    """Symmetric Fernet key stored on disk next to the settings file."""

    name = "fernet"

    def __init__(self, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_SETTINGS_DIR / "settings.key")
        self._fernet: Fernet | None = None

    @property
    def key_path(self) -> Path:
        return self._key_path

    def encrypt(self, secret: str) -> str:
        return self._get_fernet().encrypt(secret.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        return self._get_fernet().decrypt(token.encode("ascii")).decode("utf-8")

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            self._fernet = Fernet(self._load_or_create_key())
        return self._fernet

    def _load_or_create_key(self) -> bytes:
        path = self._key_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            return path.read_bytes().strip()
        key = Fernet.generate_key()
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_bytes(key)
        if os.name != "nt":  # pragma: no cover - depends on OS
            os.chmod(tmp_path, 0o600)
        tmp_path.replace(path)
        return key


class SecretVault:
    """Encrypts and decrypts provider keys as ``<backend>:<token>`` strings."""

    def __init__(self, *, key_path: Path | None = None, provider: FernetSecretProvider | None = None) -> None:
        self._provider = provider or FernetSecretProvider(key_path)

    @property
    def strategy(self) -> str:
        return self._provider.name

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        return f"{self._provider.name}:{self._provider.encrypt(secret)}"

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        prefix, payload = self._split_token(token)
        if prefix not in (None, self._provider.name):
            raise ValueError(f"Unknown secret backend {prefix!r}")
        try:
            return self._provider.decrypt(payload)
        except InvalidToken as exc:
            raise ValueError("Invalid Fernet token") from exc

    @staticmethod
    def _split_token(token: str) -> tuple[str | None, str]:
        if ":" not in token:
            return None, token
        prefix, payload = token.split(":", 1)
        return (prefix or None), payload


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, then apply CLI overrides and ``INKWELL_*`` variables."""

        payload = self._read_payload()
        settings = Settings()
        needs_migration = False

        if payload:
            providers_payload = payload.pop("providers", None)
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            if isinstance(providers_payload, list):
                providers, migrated = self._load_providers(providers_payload)
                settings = replace(settings, providers=providers)
                needs_migration = migrated

        version_mismatch = bool(payload) and payload.get("version") != _SETTINGS_VERSION
        if needs_migration or version_mismatch:
            try:
                self.save(settings)
            except OSError as exc:
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")
        return self._apply_env_overrides(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings with an atomic write; provider keys are stored encrypted."""

        body = json.dumps(self._serialize(settings), indent=2, sort_keys=True)
        write_text_atomic(self._path, body)
        LOGGER.debug("Settings saved to %s (%d providers)", self._path, len(settings.providers))
        return self._path

    def _serialize(self, settings: Settings) -> Dict[str, Any]:
        data = asdict(settings)
        data["providers"] = [self._serialize_provider(config) for config in settings.providers]
        data["version"] = _SETTINGS_VERSION
        data["secret_backend"] = self._vault.strategy
        return data

    def _serialize_provider(self, config: ProviderConfig) -> Dict[str, Any]:
        entry = config.to_dict(include_key=False)
        if config.api_key:
            entry[_KEY_CIPHERTEXT_FIELD] = self._vault.encrypt(config.api_key)
        return entry

    def _load_providers(self, entries: list[Any]) -> tuple[list[ProviderConfig], bool]:
        providers: list[ProviderConfig] = []
        migrated = False
        seen: set[str] = set()
        for entry in entries:
            if not isinstance(entry, Mapping):
                LOGGER.debug("Ignoring non-mapping provider entry of type %s", type(entry))
                continue
            record = dict(entry)
            ciphertext = record.pop(_KEY_CIPHERTEXT_FIELD, None)
            legacy_plaintext = record.pop("api_key", None)
            record["api_key"] = self._decrypt_key(record.get("id"), ciphertext, legacy_plaintext)
            if legacy_plaintext and not ciphertext:
                migrated = True
            try:
                config = ProviderConfig.from_dict(record)
            except ValueError as exc:
                LOGGER.warning("Skipping provider entry: %s", exc)
                continue
            if config.id in seen:
                LOGGER.warning("Skipping duplicate provider entry %s", config.id)
                continue
            seen.add(config.id)
            providers.append(config)
        return providers, migrated

    def _decrypt_key(self, provider_id: Any, ciphertext: str | None, legacy_plaintext: str | None) -> str:
        if ciphertext:
            try:
                return self._vault.decrypt(ciphertext)
            except ValueError as exc:
                LOGGER.warning("Unable to decrypt API key for provider %s: %s", provider_id, exc)
                return ""
        if legacy_plaintext:
            LOGGER.info("Migrating plaintext API key for provider %s to encrypted storage.", provider_id)
            return str(legacy_plaintext)
        return ""

    def _read_payload(self) -> Dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(self, settings: Settings, overrides: Mapping[str, Any], *, source: str) -> Settings:
        allowed = {item.name for item in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed:
                continue
            if key == "providers":
                value = [item if isinstance(item, ProviderConfig) else ProviderConfig.from_dict(item) for item in value]
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for field_name, parse in _ENV_FIELDS.items():
            env_name = f"{_ENV_PREFIX}{field_name.upper()}"
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                overrides[field_name] = parse(raw)
            except ValueError:
                LOGGER.warning("Ignoring environment override %s=%r", env_name, raw)

        providers = [self._env_provider_key(config) for config in settings.providers]
        if providers != settings.providers:
            overrides["providers"] = providers
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings

    @staticmethod
    def _env_provider_key(config: ProviderConfig) -> ProviderConfig:
        """``INKWELL_<ID>_API_KEY`` supplies a key without storing it."""

        env_name = f"{_ENV_PREFIX}{config.id.upper().replace('-', '_')}_API_KEY"
        value = os.environ.get(env_name)
        if not value:
            return config
        LOGGER.debug("Using %s for provider %s (%s)", env_name, config.id, redact_secret(value))
        return config.with_changes(api_key=value.strip())


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)} - {"providers"}
    return {key: value for key, value in payload.items() if key in allowed}


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"
