"""Rotation Domain Ports (Interfaces)."""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
from .models import Application, Credential, StoredSecretRecord, ensure_utc


class RegistryClient(ABC):
    """Abstract Port for the identity registry holding applications."""

    @abstractmethod
    def find_application(self, app_id: str) -> Application:
        """Look up an application by its public client id. Raises NotFoundError."""
        ...

    @abstractmethod
    def list_credentials(self, object_id: str) -> List[Credential]:
        """List password credentials on the application (no secret values)."""
        ...

    @abstractmethod
    def create_credential(self, object_id: str, display_name: str, end_date: datetime) -> Credential:
        """Mint a new password credential. The result carries the secret value."""
        ...


class SecretStoreClient(ABC):
    """Abstract Port for the vault holding the current secret."""

    @abstractmethod
    def read_secret(self, name: str) -> Optional[StoredSecretRecord]:
        """Return the latest version of the record, or None if it does not exist."""
        ...

    @abstractmethod
    def write_secret(self, name: str, value: str, tags: Dict[str, str]) -> None:
        """Write a new version of the record."""
        ...


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    def __init__(self, instant: datetime):
        self._instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self._instant
