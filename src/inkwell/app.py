"""Command line entry point and desktop bootstrap for Inkwell."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, cast

from .services.settings import Settings, SettingsStore, redact_secret
from .services.storage import FileDocumentStore
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_TRUE_WORDS = frozenset({"1", "true", "yes", "on", "debug"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off", "disabled"})
_NULL_WORDS = frozenset({"", "none", "null"})


@dataclass(slots=True)
class QtRuntime:
    """The ``QApplication`` plus the qasync loop driving it."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    log_path = logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Writing %s logs to %s", logging.getLevelName(level), log_path)


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Read settings from disk; an unreadable file means defaults, never a crash."""

    settings_store = store or SettingsStore(path)
    try:
        return settings_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Using default settings; %s could not be read: %s", settings_store.path, exc)
        return Settings()


def create_qapp(settings: Settings) -> QtRuntime:
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("The Inkwell window needs PySide6; install the 'PySide6' package.") from exc
    try:
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("The Inkwell window needs qasync to run asyncio on the Qt loop.") from exc

    qt_app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    qt_app.setApplicationName("Inkwell")
    qt_app.setApplicationDisplayName("Inkwell")
    loop = QEventLoop(qt_app)
    asyncio.set_event_loop(loop)
    qt_app.aboutToQuit.connect(loop.stop)  # type: ignore[attr-defined]
    if settings.theme.strip().lower() == "dark":
        qt_app.setStyle("Fusion")
    return QtRuntime(app=qt_app, loop=loop)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the ``inkwell`` console script."""

    args = _build_parser().parse_args(argv)
    debug = os.environ.get("INKWELL_DEBUG", "").strip().lower() in _TRUE_WORDS
    configure_logging(debug)

    raw_path = args.settings_path or os.environ.get("INKWELL_SETTINGS_PATH")
    settings_path = Path(raw_path).expanduser() if raw_path else None
    store = SettingsStore(settings_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc
    settings = load_settings(settings_path, store=store, overrides=cli_overrides or None)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=cli_overrides)
        return
    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    from .ui.main_window import WindowContext, run_window

    qt = create_qapp(settings)
    context = WindowContext(
        settings=settings,
        settings_store=store,
        document_store=FileDocumentStore(settings.document_dir),
        loop=qt.loop,
    )
    window = run_window(context, document_path=Path(args.document).expanduser() if args.document else None)
    try:
        qt.loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Interrupted; shutting down.")
    finally:
        window.runtime.shutdown()
        _drain_event_loop(qt.loop)
        qt.loop.close()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inkwell",
        description="Markdown editor with slash commands and AI edits.",
    )
    parser.add_argument("document", nargs="?", help="Markdown file to open on launch.")
    parser.add_argument(
        "--settings",
        dest="settings_path",
        metavar="PATH",
        help="Settings file to use instead of ~/.inkwell/settings.json.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override one setting for this run; may be given several times.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings as JSON, API keys redacted, and exit.",
    )
    return parser


def _drain_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel whatever is still scheduled (autosave timers, AI requests) and let it unwind."""

    if loop.is_closed():
        return

    async def _cancel_pending() -> None:
        me = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks(loop) if task is not me and not task.done()]
        if not pending:
            return
        _LOGGER.debug("Cancelling %d task(s) left on the loop", len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    with contextlib.suppress(RuntimeError):
        loop.run_until_complete(_cancel_pending())


# ----------------------------------------------------------------------
# --set parsing
# ----------------------------------------------------------------------
def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``KEY=VALUE`` strings into typed values keyed by setting name.

    The type of each value follows the setting's default: booleans, integers,
    floats and JSON lists are parsed, settings that default to ``None`` accept
    ``none``/``null``, everything else stays a string.
    """

    known = {item.name for item in fields(Settings)}
    defaults = Settings()
    parsed: Dict[str, Any] = {}
    for entry in items:
        name, separator, raw = entry.partition("=")
        name = name.strip()
        if not separator:
            raise ValueError(f"Expected KEY=VALUE, got '{entry}'.")
        if not name:
            raise ValueError(f"'{entry}' does not name a setting.")
        if name not in known:
            raise ValueError(f"Unknown setting '{name}'.")
        parsed[name] = _parse_override(getattr(defaults, name), raw.strip())
    return parsed


def _parse_override(default: Any, raw: str) -> Any:
    # bool first: it is a subclass of int
    if isinstance(default, bool):
        return _parse_bool(raw)
    if isinstance(default, int):
        return int(raw, 10)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, list):
        try:
            value = json.loads(raw or "[]")
        except json.JSONDecodeError as exc:
            raise ValueError(f"'{raw}' is not a JSON array") from exc
        if not isinstance(value, list):
            raise ValueError(f"'{raw}' is not a JSON array")
        return value
    if default is None and raw.lower() in _NULL_WORDS:
        return None
    return raw


def _parse_bool(raw: str) -> bool:
    word = raw.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"'{raw}' is neither true nor false.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    out = stream or sys.stdout
    snapshot = asdict(settings)
    for provider in snapshot["providers"]:
        provider["api_key"] = redact_secret(provider.get("api_key", ""))
    meta = {
        "path": str(store.path),
        "secret_backend": store.vault.strategy,
        "cli_overrides": sorted(overrides),
        "environment_variables": sorted(name for name in os.environ if name.startswith("INKWELL_")),
    }
    json.dump({"settings": snapshot, "meta": meta}, out, indent=2)
    out.write("\n")


__all__ = ["QtRuntime", "configure_logging", "create_qapp", "load_settings", "main"]
