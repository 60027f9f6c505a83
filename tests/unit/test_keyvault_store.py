import pytest
from unittest.mock import MagicMock

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError

from rotator.adapters.keyvault.secret_store import KeyVaultSecretStore
from rotator.errors import SecretStoreError


def test_read_secret_returns_value_and_tags():
    client = MagicMock()
    client.get_secret.return_value.value = "current-secret"
    client.get_secret.return_value.properties.tags = {"keyId": "K1", "purpose": "clientSecret"}

    record = KeyVaultSecretStore(client).read_secret("app-client-secret")

    client.get_secret.assert_called_once_with("app-client-secret")
    assert record.value == "current-secret"
    assert record.active_key_id == "K1"


def test_read_secret_without_tags_has_no_active_key():
    client = MagicMock()
    client.get_secret.return_value.value = "current-secret"
    client.get_secret.return_value.properties.tags = None

    record = KeyVaultSecretStore(client).read_secret("app-client-secret")

    assert record.tags == {}
    assert record.active_key_id is None


def test_missing_secret_reads_as_none():
    client = MagicMock()
    client.get_secret.side_effect = ResourceNotFoundError("SecretNotFound")

    assert KeyVaultSecretStore(client).read_secret("app-client-secret") is None


def test_disabled_secret_reads_as_none():
    client = MagicMock()
    client.get_secret.side_effect = HttpResponseError("Operation get is not allowed on a disabled secret.")

    assert KeyVaultSecretStore(client).read_secret("app-client-secret") is None


def test_transport_read_failures_propagate():
    client = MagicMock()
    client.get_secret.side_effect = ServiceRequestError("connection reset")

    with pytest.raises(SecretStoreError):
        KeyVaultSecretStore(client).read_secret("app-client-secret")


def test_write_secret_sets_tags():
    client = MagicMock()
    tags = {"keyId": "K2", "endDateTime": "2024-06-29T00:00:00Z", "managedBy": "ops", "purpose": "clientSecret"}

    KeyVaultSecretStore(client).write_secret("app-client-secret", "new-secret", tags)

    client.set_secret.assert_called_once_with("app-client-secret", "new-secret", tags=tags, content_type="text/plain")


def test_write_failure_is_wrapped():
    client = MagicMock()
    client.set_secret.side_effect = HttpResponseError("throttled")

    with pytest.raises(SecretStoreError):
        KeyVaultSecretStore(client).write_secret("app-client-secret", "v", {})
