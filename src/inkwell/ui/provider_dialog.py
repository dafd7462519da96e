"""Dialog for editing provider keys, endpoints and the default provider."""

from __future__ import annotations

from typing import Any, Sequence

from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QGridLayout,
    QLabel,
    QLineEdit,
    QRadioButton,
    QVBoxLayout,
)

from ..ai.providers.config import ProviderConfig


class ProviderSettingsDialog(QDialog):
    """One row per provider; :meth:`providers` returns the edited configs."""

    _HEADERS = ("Default", "Provider", "Enabled", "API key", "Base URL", "Model")

    def __init__(
        self,
        providers: Sequence[ProviderConfig],
        *,
        default_provider: str | None = None,
        parent: Any | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("AI Providers")
        self.setObjectName("inkwell-provider-settings")
        self._originals = list(providers)
        self._rows: list[tuple[QCheckBox, QLineEdit, QLineEdit, QLineEdit, QRadioButton]] = []
        self._default_group = QButtonGroup(self)

        layout = QVBoxLayout(self)
        grid = QGridLayout()
        for column, header in enumerate(self._HEADERS):
            grid.addWidget(QLabel(header, self), 0, column)
        for row, config in enumerate(self._originals, start=1):
            default_button = QRadioButton(self)
            default_button.setChecked(config.id == default_provider)
            self._default_group.addButton(default_button, row - 1)
            enabled = QCheckBox(self)
            enabled.setChecked(config.enabled)
            api_key = QLineEdit(config.api_key, self)
            api_key.setEchoMode(QLineEdit.EchoMode.Password)
            api_key.setPlaceholderText("sk-...")
            base_url = QLineEdit(config.base_url, self)
            model = QLineEdit(config.model, self)
            for column, widget in enumerate(
                (default_button, QLabel(config.name, self), enabled, api_key, base_url, model)
            ):
                grid.addWidget(widget, row, column)
            self._rows.append((enabled, api_key, base_url, model, default_button))
        layout.addLayout(grid)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel, parent=self
        )
        buttons.accepted.connect(self.accept)  # type: ignore[attr-defined]
        buttons.rejected.connect(self.reject)  # type: ignore[attr-defined]
        layout.addWidget(buttons)

    def providers(self) -> list[ProviderConfig]:
        updated: list[ProviderConfig] = []
        for config, (enabled, api_key, base_url, model, _default) in zip(self._originals, self._rows):
            updated.append(
                config.with_changes(
                    enabled=enabled.isChecked(),
                    api_key=api_key.text().strip(),
                    base_url=base_url.text().strip(),
                    model=model.text().strip(),
                )
            )
        return updated

    def default_provider(self) -> str | None:
        checked = self._default_group.checkedId()
        if checked < 0:
            return None
        return self._originals[checked].id


__all__ = ["ProviderSettingsDialog"]
