from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from core.errors import UnknownSourceError


SOURCE_NAMES: Tuple[str, ...] = ("dashboard", "documents", "tableaux", "diagrammes")

API_KEY = os.environ.get("SHEETGUARD_API_KEY", "REPLACE_WITH_YOUR_API_KEY")
DATA_DIR = Path(os.environ.get("SHEETGUARD_DATA_DIR") or Path.home() / ".sheetguard")
AUTH_PASSWORD = os.environ.get("SHEETGUARD_PASSWORD", "cbe425")

FETCH_DELAY_DEFAULT = 0.5
UPDATE_DELAY_DEFAULT = 1.0


@dataclass(frozen=True)
class SheetConfig:
    api_key: str
    spreadsheet_id: str
    range: str


@dataclass(frozen=True)
class SheetSource:
    spreadsheet_id: str
    range: str


@dataclass(frozen=True)
class AppSettings:
    app_name: str = "CBE#4 Process Validation"
    base_path: str = "/sheetguard-navigator"
    is_production: bool = False
    animation_duration_ms: int = 300
    default_theme: str = "light"


def _source_from_env(name: str) -> SheetSource:
    spreadsheet_id = os.environ.get(
        f"SHEETGUARD_{name.upper()}_SPREADSHEET_ID",
        f"REPLACE_WITH_{name.upper()}_SPREADSHEET_ID",
    )
    return SheetSource(spreadsheet_id=spreadsheet_id, range=f"{name}!A1:Z1000")


GOOGLE_SHEETS: Dict[str, SheetSource] = {name: _source_from_env(name) for name in SOURCE_NAMES}

APP_SETTINGS = AppSettings(is_production=os.environ.get("SHEETGUARD_ENV", "").lower() == "production")


def _as_delay(raw: object, default: float) -> float:
    try:
        return max(0.0, float(raw))  # type: ignore[arg-type]
    except Exception:
        return default


@dataclass(frozen=True)
class AccessorDelays:
    fetch: float = field(default_factory=lambda: _as_delay(os.environ.get("SHEETGUARD_FETCH_DELAY"), FETCH_DELAY_DEFAULT))
    update: float = field(default_factory=lambda: _as_delay(os.environ.get("SHEETGUARD_UPDATE_DELAY"), UPDATE_DELAY_DEFAULT))


def sheet_config(source: str, *, api_key: str | None = None) -> SheetConfig:
    """Build the accessor config for one of the logical sources."""
    try:
        src = GOOGLE_SHEETS[source]
    except KeyError:
        raise UnknownSourceError(source) from None
    return SheetConfig(api_key=api_key or API_KEY, spreadsheet_id=src.spreadsheet_id, range=src.range)


def get_base_url(settings: AppSettings = APP_SETTINGS) -> str:
    if settings.is_production:
        return settings.base_path
    return ""
