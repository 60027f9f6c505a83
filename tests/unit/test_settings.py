"""Tests for settings loading and RotationConfig conversion."""
import pytest
from pydantic import ValidationError

from rotator.domain.rotation.models import RotationConfig
from rotator.errors import ConfigurationError
from rotator.settings import load_settings

ENV_KEYS = [
    "TARGET_APP_ID", "VAULT_NAME", "SECRET_NAME", "ROTATE_DAYS_BEFORE",
    "NEW_SECRET_LIFETIME_DAYS", "AUTOMATION_PREFIX", "MANAGED_BY", "VAULT_URL", "DEV_MODE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def set_required(monkeypatch):
    monkeypatch.setenv("TARGET_APP_ID", "app-123")
    monkeypatch.setenv("VAULT_NAME", "kv-prod")
    monkeypatch.setenv("SECRET_NAME", "billing-client-secret")


def test_defaults(monkeypatch):
    set_required(monkeypatch)

    config = load_settings().to_rotation_config()

    assert config.target_app_id == "app-123"
    assert config.rotate_days_before == 30
    assert config.new_secret_lifetime_days == 180
    assert config.automation_prefix == "auto-rotated"


def test_env_overrides(monkeypatch):
    set_required(monkeypatch)
    monkeypatch.setenv("ROTATE_DAYS_BEFORE", "14")
    monkeypatch.setenv("NEW_SECRET_LIFETIME_DAYS", "90")
    monkeypatch.setenv("AUTOMATION_PREFIX", "kv-rotation")
    monkeypatch.setenv("MANAGED_BY", "platform")

    config = load_settings().to_rotation_config()

    assert (config.rotate_days_before, config.new_secret_lifetime_days) == (14, 90)
    assert config.automation_prefix == "kv-rotation"
    assert config.managed_by == "platform"


def test_env_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("TARGET_APP_ID=from-file\nVAULT_NAME=kv\nSECRET_NAME=s\n")

    assert load_settings().to_rotation_config().target_app_id == "from-file"


def test_missing_required_settings(monkeypatch):
    monkeypatch.setenv("TARGET_APP_ID", "app-123")

    with pytest.raises(ConfigurationError) as exc_info:
        load_settings().to_rotation_config()

    assert exc_info.value.details["missing"] == ["VAULT_NAME", "SECRET_NAME"]


@pytest.mark.parametrize("key,value", [
    ("ROTATE_DAYS_BEFORE", "-1"),
    ("NEW_SECRET_LIFETIME_DAYS", "0"),
    ("ROTATE_DAYS_BEFORE", "soon"),
])
def test_out_of_range_values(monkeypatch, key, value):
    set_required(monkeypatch)
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError):
        load_settings()


def test_vault_url_derived_from_name(monkeypatch):
    set_required(monkeypatch)
    assert load_settings().resolved_vault_url == "https://kv-prod.vault.azure.net"

    monkeypatch.setenv("VAULT_URL", "https://custom.vault.azure.net/")
    assert load_settings().resolved_vault_url == "https://custom.vault.azure.net"


def test_rotation_config_is_frozen(monkeypatch):
    set_required(monkeypatch)
    config = load_settings().to_rotation_config()

    with pytest.raises(ValidationError):
        config.rotate_days_before = 1


def test_rotation_config_rejects_empty_prefix():
    with pytest.raises(ValidationError):
        RotationConfig(target_app_id="a", vault_name="v", secret_name="s", automation_prefix="")
