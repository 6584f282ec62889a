import json

import pytest

from kpi import DEFAULT_STORE_ORDER
from settings import (
    ENV_ANNUAL_TARGET,
    ENV_MONTHLY_TARGET,
    ENV_SETTINGS_FILE,
    ENV_STORE_ORDER,
    DashboardSettings,
    TargetSettings,
    load_settings,
    parse_store_order,
    save_targets,
    with_store_order,
)


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in (ENV_ANNUAL_TARGET, ENV_MONTHLY_TARGET, ENV_STORE_ORDER):
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    settings_file = tmp_path / "settings.json"
    monkeypatch.setenv(ENV_SETTINGS_FILE, str(settings_file))
    return settings_file


def test_defaults(env, tmp_path):
    settings = load_settings(tmp_path)
    assert settings.store_order == DEFAULT_STORE_ORDER
    assert settings.targets == TargetSettings(0.0, 0.0)
    assert settings.settings_path == str(env)


def test_environment_values(env, tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_STORE_ORDER, "生駒, 奈良 ,")
    monkeypatch.setenv(ENV_ANNUAL_TARGET, "12,000,000")
    monkeypatch.setenv(ENV_MONTHLY_TARGET, "not a number")
    settings = load_settings(tmp_path)
    assert settings.store_order == ("生駒", "奈良")
    assert settings.targets.annual == 12_000_000
    assert settings.targets.monthly == 0


def test_dotenv_file_is_loaded(env, tmp_path):
    (tmp_path / ".env").write_text(f"{ENV_MONTHLY_TARGET}=500000\n", encoding="utf-8")
    settings = load_settings(tmp_path)
    assert settings.targets.monthly == 500000


def test_persisted_targets_override_environment(env, tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_ANNUAL_TARGET, "100")
    env.write_text(json.dumps({"annual": 5000, "monthly": 400}), encoding="utf-8")
    settings = load_settings(tmp_path)
    assert settings.targets == TargetSettings(annual=5000, monthly=400)


def test_corrupt_settings_file_is_ignored(env, tmp_path, caplog):
    env.write_text("{not json", encoding="utf-8")
    settings = load_settings(tmp_path)
    assert settings.targets == TargetSettings()
    assert "Ignoring unreadable settings file" in caplog.text


def test_save_targets_round_trip(env, tmp_path):
    settings = load_settings(tmp_path)
    saved = save_targets(settings, annual=1_000_000, monthly=80_000)
    assert saved.targets == TargetSettings(annual=1_000_000, monthly=80_000)
    assert load_settings(tmp_path).targets == saved.targets


def test_save_targets_keeps_previous_for_non_positive(tmp_path):
    settings = DashboardSettings(targets=TargetSettings(annual=10, monthly=2), settings_path=str(tmp_path / "s.json"))
    saved = save_targets(settings, annual=0, monthly=None)
    assert saved.targets == TargetSettings(annual=10, monthly=2)


def test_parse_store_order_and_override():
    assert parse_store_order(None) == DEFAULT_STORE_ORDER
    assert parse_store_order(" , ") == DEFAULT_STORE_ORDER
    settings = DashboardSettings()
    assert with_store_order(settings, []) is settings
    assert with_store_order(settings, ["天理", "奈良"]).store_order == ("天理", "奈良")
