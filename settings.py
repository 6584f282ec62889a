"""
Dashboard settings: store display order and sales targets.

Values come from the environment (optionally a .env file), then persisted
targets from a small JSON file override the environment defaults.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv

from kpi import DEFAULT_STORE_ORDER
from records import parse_number

logger = logging.getLogger(__name__)

ENV_STORE_ORDER = "SALES_DASHBOARD_STORE_ORDER"
ENV_SETTINGS_FILE = "SALES_DASHBOARD_SETTINGS_FILE"
ENV_ANNUAL_TARGET = "SALES_DASHBOARD_ANNUAL_TARGET"
ENV_MONTHLY_TARGET = "SALES_DASHBOARD_MONTHLY_TARGET"
DEFAULT_SETTINGS_FILE = os.path.join("outputs", "settings.json")


@dataclass(frozen=True)
class TargetSettings:
    annual: float = 0.0
    monthly: float = 0.0


@dataclass(frozen=True)
class DashboardSettings:
    store_order: tuple[str, ...] = DEFAULT_STORE_ORDER
    targets: TargetSettings = field(default_factory=TargetSettings)
    settings_path: str = DEFAULT_SETTINGS_FILE


def _load_env_from_project(env_dir: str | Path | None) -> None:
    for d in [Path(env_dir) if env_dir else None, Path(__file__).resolve().parent, Path.cwd()]:
        if d is None:
            continue
        env_file = d / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


def _positive(value) -> float | None:
    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return number


def parse_store_order(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_STORE_ORDER
    parsed = tuple(p.strip() for p in raw.split(",") if p.strip())
    return parsed or DEFAULT_STORE_ORDER


def load_persisted_targets(path: str) -> dict[str, float]:
    """Read {"annual": ..., "monthly": ...}; missing or corrupt files give {}."""
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return {}
    out = {}
    for key in ("annual", "monthly"):
        value = _positive(data.get(key))
        if value is not None:
            out[key] = value
    return out


def load_settings(env_dir: str | Path | None = None) -> DashboardSettings:
    _load_env_from_project(env_dir)
    settings_path = os.getenv(ENV_SETTINGS_FILE, "").strip() or DEFAULT_SETTINGS_FILE
    annual = _positive(os.getenv(ENV_ANNUAL_TARGET)) or 0.0
    monthly = _positive(os.getenv(ENV_MONTHLY_TARGET)) or 0.0

    persisted = load_persisted_targets(settings_path)
    targets = TargetSettings(
        annual=persisted.get("annual", annual),
        monthly=persisted.get("monthly", monthly),
    )
    return DashboardSettings(
        store_order=parse_store_order(os.getenv(ENV_STORE_ORDER)),
        targets=targets,
        settings_path=settings_path,
    )


def save_targets(
    settings: DashboardSettings,
    annual: float | None = None,
    monthly: float | None = None,
) -> DashboardSettings:
    """Persist new targets. Values that are missing or not positive keep the previous target."""
    targets = TargetSettings(
        annual=_positive(annual) or settings.targets.annual,
        monthly=_positive(monthly) or settings.targets.monthly,
    )
    directory = os.path.dirname(settings.settings_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(settings.settings_path, "w", encoding="utf-8") as f:
        json.dump({"annual": targets.annual, "monthly": targets.monthly}, f, indent=2)
    logger.info("Saved targets to %s", settings.settings_path)
    return replace(settings, targets=targets)


def with_store_order(settings: DashboardSettings, store_order: list[str] | tuple[str, ...]) -> DashboardSettings:
    """Store order read from a workbook replaces the configured one when non-empty."""
    if not store_order:
        return settings
    return replace(settings, store_order=tuple(store_order))
