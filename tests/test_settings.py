"""Settings persistence: encrypted keys, migrations, and overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from inkwell.ai.providers import ProviderConfig
from inkwell.services.settings import SecretVault, Settings, SettingsStore, redact_secret


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


def test_missing_file_yields_defaults(settings_path: Path) -> None:
    settings = SettingsStore(settings_path).load()
    assert settings == Settings()
    assert [config.id for config in settings.providers] == ["openai", "claude"]
    assert not any(config.enabled for config in settings.providers)
    assert not settings_path.exists()


def test_round_trip_encrypts_api_keys(settings_path: Path) -> None:
    store = SettingsStore(settings_path)
    settings = Settings(
        providers=[ProviderConfig("openai", "OpenAI", api_key="sk-secret-123", enabled=True, model="gpt-test")],
        default_provider="openai",
        theme="dark",
        autosave_delay=2.5,
    )

    store.save(settings)

    raw = settings_path.read_text(encoding="utf-8")
    assert "sk-secret-123" not in raw
    payload = json.loads(raw)
    assert payload["version"] == 1
    assert payload["secret_backend"] == "fernet"
    assert payload["providers"][0]["api_key_ciphertext"].startswith("fernet:")
    assert "api_key" not in payload["providers"][0]
    assert settings_path.with_suffix(".key").exists()

    assert SettingsStore(settings_path).load() == settings


def test_legacy_plaintext_key_is_migrated(settings_path: Path) -> None:
    settings_path.write_text(
        json.dumps(
            {
                "theme": "dark",
                "providers": [{"id": "openai", "name": "OpenAI", "api_key": "sk-legacy", "enabled": True}],
            }
        ),
        encoding="utf-8",
    )

    settings = SettingsStore(settings_path).load()

    assert settings.providers[0].api_key == "sk-legacy"
    assert settings.theme == "dark"
    rewritten = settings_path.read_text(encoding="utf-8")
    assert "sk-legacy" not in rewritten
    assert json.loads(rewritten)["version"] == 1


def test_bad_provider_entries_are_skipped(settings_path: Path) -> None:
    settings_path.write_text(
        json.dumps(
            {
                "version": 1,
                "providers": [
                    "garbage",
                    {"name": "missing id"},
                    {"id": "local", "name": "Local"},
                    {"id": "local", "name": "Duplicate"},
                ],
            }
        ),
        encoding="utf-8",
    )
    settings = SettingsStore(settings_path).load()
    assert [(config.id, config.name) for config in settings.providers] == [("local", "Local")]


def test_unknown_keys_in_file_are_ignored(settings_path: Path) -> None:
    settings_path.write_text(
        json.dumps({"version": 1, "theme": "dark", "window_geometry": "AAAA", "last_document": "notes"}),
        encoding="utf-8",
    )
    settings = SettingsStore(settings_path).load()
    assert settings == Settings(theme="dark")
    assert not hasattr(settings, "window_geometry")


def test_invalid_json_falls_back_to_defaults(settings_path: Path) -> None:
    settings_path.write_text("{not json", encoding="utf-8")
    assert SettingsStore(settings_path).load() == Settings()


def test_undecryptable_key_is_dropped(settings_path: Path, tmp_path: Path) -> None:
    other = SecretVault(key_path=tmp_path / "other.key")
    settings_path.write_text(
        json.dumps(
            {
                "version": 1,
                "providers": [{"id": "openai", "name": "OpenAI", "api_key_ciphertext": other.encrypt("sk-x")}],
            }
        ),
        encoding="utf-8",
    )
    settings = SettingsStore(settings_path).load()
    assert settings.providers[0].api_key == ""


def test_environment_overrides(settings_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INKWELL_THEME", "dark")
    monkeypatch.setenv("INKWELL_AUTOSAVE", "off")
    monkeypatch.setenv("INKWELL_CONTEXT_CHARS", "200")
    monkeypatch.setenv("INKWELL_REQUEST_TIMEOUT", "15")
    monkeypatch.setenv("INKWELL_OPENAI_API_KEY", "sk-from-env")
    monkeypatch.setenv("INKWELL_AUTOSAVE_DELAY", "soon")

    settings = SettingsStore(settings_path).load()

    assert settings.theme == "dark"
    assert settings.autosave is False
    assert settings.context_chars == 200
    assert settings.request_timeout == 15.0
    assert settings.autosave_delay == 1.0
    assert settings.providers[0].api_key == "sk-from-env"
    assert not settings_path.exists()


def test_cli_overrides_accept_provider_dicts(settings_path: Path) -> None:
    settings = SettingsStore(settings_path).load(
        overrides={"trigger_char": ";", "providers": [{"id": "local", "name": "Local", "enabled": True}], "unknown": 1}
    )
    assert settings.trigger_char == ";"
    assert settings.providers == [ProviderConfig("local", "Local", enabled=True)]


class TestSecretVault:
    def test_encrypt_decrypt(self, tmp_path: Path) -> None:
        vault = SecretVault(key_path=tmp_path / "vault.key")
        token = vault.encrypt("sk-123")
        assert token.startswith("fernet:")
        assert vault.decrypt(token) == "sk-123"
        assert vault.encrypt("") == ""
        assert vault.decrypt(None) == ""

    def test_unknown_backend_is_rejected(self, tmp_path: Path) -> None:
        vault = SecretVault(key_path=tmp_path / "vault.key")
        with pytest.raises(ValueError):
            vault.decrypt("dpapi:AAAA")


@pytest.mark.parametrize(
    ("secret", "expected"),
    [("", ""), ("abc", "***"), ("sk-abcdef", "sk*****ef")],
)
def test_redact_secret(secret: str, expected: str) -> None:
    assert redact_secret(secret) == expected
