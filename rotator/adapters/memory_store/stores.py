"""Memory Store Implementations."""
from typing import Dict, List, Optional
from datetime import datetime
import logging
import secrets
import uuid

from rotator.domain.rotation.models import Application, Credential, StoredSecretRecord
from rotator.domain.rotation.ports import RegistryClient, SecretStoreClient
from rotator.errors import NotFoundError

logger = logging.getLogger(__name__)


class MemoryRegistry(RegistryClient):
    def __init__(self, withhold_secret_text: bool = False):
        self._applications: Dict[str, Application] = {}
        self.withhold_secret_text = withhold_secret_text
        self.created: List[Credential] = []

    def add_application(
        self,
        app_id: str,
        object_id: Optional[str] = None,
        display_name: Optional[str] = None,
        credentials: Optional[List[Credential]] = None
    ) -> Application:
        app = Application(
            object_id=object_id if object_id is not None else str(uuid.uuid4()),
            app_id=app_id,
            display_name=display_name,
            credentials=list(credentials or [])
        )
        self._applications[app.object_id] = app
        return app

    def find_application(self, app_id: str) -> Application:
        for app in self._applications.values():
            if app.app_id == app_id:
                return app.model_copy(deep=True)
        raise NotFoundError(f"Application with appId {app_id} not found", details={"app_id": app_id})

    def list_credentials(self, object_id: str) -> List[Credential]:
        app = self._applications.get(object_id)
        if app is None:
            raise NotFoundError(f"Application {object_id} not found")
        return list(app.credentials)

    def create_credential(self, object_id: str, display_name: str, end_date: datetime) -> Credential:
        app = self._applications.get(object_id)
        if app is None:
            raise NotFoundError(f"Application {object_id} not found")

        stored = Credential(key_id=str(uuid.uuid4()), display_name=display_name, end_date_time=end_date)
        app.credentials.append(stored)
        self.created.append(stored)

        secret_value = None if self.withhold_secret_text else secrets.token_urlsafe(30)
        return stored.model_copy(update={"secret_value": secret_value})


class MemorySecretStore(SecretStoreClient):
    def __init__(self):
        self._versions: Dict[str, List[StoredSecretRecord]] = {}
        self.fail_writes: Optional[Exception] = None

    def read_secret(self, name: str) -> Optional[StoredSecretRecord]:
        versions = self._versions.get(name)
        if not versions:
            return None
        return versions[-1]

    def write_secret(self, name: str, value: str, tags: Dict[str, str]) -> None:
        if self.fail_writes is not None:
            raise self.fail_writes
        self._versions.setdefault(name, []).append(StoredSecretRecord(value=value, tags=dict(tags)))
        logger.debug(f"Memory store wrote version {len(self._versions[name])} of '{name}'")

    def versions(self, name: str) -> List[StoredSecretRecord]:
        return list(self._versions.get(name, []))
