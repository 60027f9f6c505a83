"""Settings and configuration."""
from typing import Optional
from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from rotator.domain.rotation.models import RotationConfig
from rotator.errors import ConfigurationError

# Load .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    # Target
    target_app_id: str = ""
    vault_name: str = ""
    secret_name: str = ""

    # Rotation policy
    rotate_days_before: int = Field(default=30, ge=0)
    new_secret_lifetime_days: int = Field(default=180, gt=0)
    automation_prefix: str = "auto-rotated"
    managed_by: str = "secret-rotator"

    # Endpoints
    vault_url: Optional[str] = None
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_scope: str = "https://graph.microsoft.com/.default"
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Runtime
    dev_mode: bool = False
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }

    @property
    def resolved_vault_url(self) -> str:
        if self.vault_url:
            return self.vault_url.rstrip("/")
        return f"https://{self.vault_name}.vault.azure.net"

    def to_rotation_config(self) -> RotationConfig:
        """Freeze the rotation-relevant settings. Raises ConfigurationError."""
        missing = [
            name.upper() for name in ("target_app_id", "vault_name", "secret_name")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}",
                details={"missing": missing}
            )
        try:
            return RotationConfig(
                target_app_id=self.target_app_id,
                vault_name=self.vault_name,
                secret_name=self.secret_name,
                rotate_days_before=self.rotate_days_before,
                new_secret_lifetime_days=self.new_secret_lifetime_days,
                automation_prefix=self.automation_prefix,
                managed_by=self.managed_by,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid rotation settings: {e}") from e


def load_settings(**overrides) -> Settings:
    """Read settings from the environment / .env. Raises ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
