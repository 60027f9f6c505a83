"""Azure Key Vault secret store adapter."""
import logging
from typing import Any, Dict, Optional

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError
from azure.keyvault.secrets import SecretClient

from rotator.domain.rotation.models import StoredSecretRecord
from rotator.domain.rotation.ports import SecretStoreClient
from rotator.errors import SecretStoreError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain"


class KeyVaultSecretStore(SecretStoreClient):
    """Reads and writes the latest version of a named Key Vault secret."""

    def __init__(self, client: SecretClient):
        self._client = client

    @classmethod
    def from_vault_url(cls, vault_url: str, credential: Any) -> "KeyVaultSecretStore":
        return cls(SecretClient(vault_url=vault_url, credential=credential))

    def read_secret(self, name: str) -> Optional[StoredSecretRecord]:
        try:
            secret = self._client.get_secret(name)
        except ResourceNotFoundError:
            logger.info(f"Secret '{name}' does not exist yet")
            return None
        except HttpResponseError as e:
            # Disabled or forbidden record: read as absent. Transport failures stay fatal.
            logger.warning(f"Secret '{name}' is unreadable (status {e.status_code}): {e.message}")
            return None
        except AzureError as e:
            raise SecretStoreError(f"Failed to read secret '{name}': {e}") from e

        tags = secret.properties.tags if secret.properties else None
        return StoredSecretRecord(value=secret.value, tags=dict(tags or {}))

    def write_secret(self, name: str, value: str, tags: Dict[str, str]) -> None:
        try:
            secret = self._client.set_secret(name, value, tags=tags, content_type=CONTENT_TYPE)
        except AzureError as e:
            raise SecretStoreError(f"Failed to write secret '{name}': {e}") from e
        version = secret.properties.version if secret.properties else None
        logger.info(f"Wrote secret '{name}' version {version}")
