"""Tests for the rotation executor."""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from rotator.adapters.memory_store.stores import MemoryRegistry, MemorySecretStore
from rotator.domain.rotation.executor import credential_display_name, execute
from rotator.domain.rotation.models import Application, Decision, DecisionKind, RotationConfig
from rotator.errors import PreconditionError, SecretCreationError, StoreWriteError

NOW = datetime(2024, 1, 1, 6, 30, tzinfo=timezone.utc)
NEW_END = NOW + timedelta(days=180)


@pytest.fixture
def config():
    return RotationConfig(
        target_app_id="app-123",
        vault_name="kv-test",
        secret_name="app-client-secret",
        automation_prefix="auto-rotated",
        managed_by="platform-team",
    )


@pytest.fixture
def registry():
    return MemoryRegistry()


@pytest.fixture
def store():
    return MemorySecretStore()


@pytest.fixture
def application(registry):
    return registry.add_application("app-123", object_id="obj-1")


def test_noop_touches_nothing(config, application):
    registry = MagicMock()
    store = MagicMock()

    outcome = execute(Decision.noop(), config, application, registry, store, NOW)

    assert outcome.branch is DecisionKind.NOOP
    assert outcome.key_id is None
    registry.create_credential.assert_not_called()
    store.write_secret.assert_not_called()


def test_rotate_creates_credential_and_writes_store(config, registry, store, application):
    outcome = execute(Decision.rotate(NEW_END), config, application, registry, store, NOW)

    assert outcome.branch is DecisionKind.ROTATE
    created = registry.created[0]
    assert created.display_name == "auto-rotated 2024-01-01"
    assert created.end_date_time == NEW_END
    assert outcome.key_id == created.key_id

    record = store.read_secret("app-client-secret")
    assert record.value
    assert record.tags == {
        "keyId": created.key_id,
        "endDateTime": "2024-06-29T06:30:00Z",
        "managedBy": "platform-team",
        "purpose": "clientSecret",
    }
    assert outcome.tags == record.tags


def test_bootstrap_uses_bootstrap_display_name(config, registry, store, application):
    outcome = execute(Decision.bootstrap(NEW_END), config, application, registry, store, NOW)

    assert outcome.branch is DecisionKind.BOOTSTRAP
    assert registry.created[0].display_name == "auto-rotated bootstrap 2024-01-01"


def test_display_names():
    cfg = RotationConfig(target_app_id="a", vault_name="v", secret_name="s", automation_prefix="rot")
    assert credential_display_name(cfg, DecisionKind.ROTATE, NOW) == "rot 2024-01-01"
    assert credential_display_name(cfg, DecisionKind.BOOTSTRAP, NOW) == "rot bootstrap 2024-01-01"


def test_empty_object_id_fails_before_any_mutation(config):
    registry = MagicMock()
    store = MagicMock()
    application = Application(object_id="", app_id="app-123")

    with pytest.raises(PreconditionError):
        execute(Decision.rotate(NEW_END), config, application, registry, store, NOW)

    registry.create_credential.assert_not_called()
    store.write_secret.assert_not_called()


def test_withheld_secret_text_fails_without_store_write(config, store, application):
    registry = MemoryRegistry(withhold_secret_text=True)
    application = registry.add_application("app-123", object_id="obj-1")

    with pytest.raises(SecretCreationError) as exc_info:
        execute(Decision.rotate(NEW_END), config, application, registry, store, NOW)

    # Left in place, not rolled back
    assert len(registry.created) == 1
    assert exc_info.value.details["key_id"] == registry.created[0].key_id
    assert store.read_secret("app-client-secret") is None


def test_store_failure_surfaces_orphaned_key(config, registry, store, application):
    store.fail_writes = RuntimeError("vault unavailable")

    with pytest.raises(StoreWriteError) as exc_info:
        execute(Decision.rotate(NEW_END), config, application, registry, store, NOW)

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.details["key_id"] == registry.created[0].key_id
    assert exc_info.value.code == "STORE_WRITE_FAILED"
    assert len(registry.list_credentials("obj-1")) == 1
