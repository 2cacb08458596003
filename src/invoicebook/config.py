"""Application settings.

Settings are built once at startup and passed to every component; nothing
reads configuration from module-level state.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from invoicebook.domain.columns import ColumnLayout
from invoicebook.domain.naming import DEFAULT_TEMPLATE, FilenameTemplate

ENV_STORAGE_ROOT = "INVOICEBOOK_STORAGE_ROOT"
ENV_CONFIG_DIR = "INVOICEBOOK_CONFIG_DIR"
ENV_TEMPLATE = "INVOICEBOOK_TEMPLATE"
ENV_DECIMAL_SEPARATOR = "INVOICEBOOK_DECIMAL_SEPARATOR"
ENV_COLUMNS = "INVOICEBOOK_COLUMNS"


def default_config_dir() -> Path:
    """~/.invoicebook"""
    return Path.home() / ".invoicebook"


def default_storage_root() -> Path:
    """~/Documents/invoicebook"""
    return Path.home() / "Documents" / "invoicebook"


def parse_column_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated column list."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    storage_root: Path = field(default_factory=default_storage_root)
    config_dir: Path = field(default_factory=default_config_dir)
    use_month_subfolders: bool = True
    global_store: bool = False
    naming_template: str = DEFAULT_TEMPLATE
    decimal_separator: str = ","
    currency_default: str = "EUR"
    default_account: int = 0
    layout: ColumnLayout = field(default_factory=ColumnLayout)

    @classmethod
    def build(
        cls,
        storage_root: Optional[str | Path] = None,
        config_dir: Optional[str | Path] = None,
        use_month_subfolders: bool = True,
        global_store: bool = False,
        naming_template: Optional[str] = None,
        decimal_separator: Optional[str] = None,
        currency_default: str = "EUR",
        default_account: int = 0,
        column_order: Optional[Iterable[str]] = None,
    ) -> "Settings":
        """Build settings, falling back to environment variables and defaults.

        Raises:
            ValidationError: If the decimal separator is not ',' or '.'
        """
        if storage_root is None:
            storage_root = os.environ.get(ENV_STORAGE_ROOT) or default_storage_root()
        if config_dir is None:
            config_dir = os.environ.get(ENV_CONFIG_DIR) or default_config_dir()
        if naming_template is None:
            naming_template = os.environ.get(ENV_TEMPLATE) or DEFAULT_TEMPLATE
        if decimal_separator is None:
            decimal_separator = os.environ.get(ENV_DECIMAL_SEPARATOR) or ","
        if column_order is None:
            column_order = parse_column_list(os.environ.get(ENV_COLUMNS))

        settings = cls(
            storage_root=Path(storage_root).expanduser(),
            config_dir=Path(config_dir).expanduser(),
            use_month_subfolders=use_month_subfolders,
            global_store=global_store,
            naming_template=naming_template,
            decimal_separator=decimal_separator,
            currency_default=currency_default,
            default_account=default_account,
            layout=ColumnLayout.from_order(column_order),
        )
        # Validates the template options eagerly
        settings.filename_template()
        return settings

    def filename_template(self) -> FilenameTemplate:
        return FilenameTemplate(self.naming_template, self.decimal_separator)
