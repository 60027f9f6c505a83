"""Rotation Executor.

Applies a non-NoOp decision: mints a credential in the registry and records
it in the secret store. At most one registry write and one store write.
"""
import logging
from datetime import datetime

from rotator.domain.rotation.models import (
    Application,
    Decision,
    DecisionKind,
    RotationConfig,
    RotationOutcome,
    build_secret_tags,
)
from rotator.domain.rotation.ports import RegistryClient, SecretStoreClient
from rotator.errors import PreconditionError, SecretCreationError, StoreWriteError

logger = logging.getLogger(__name__)


def credential_display_name(config: RotationConfig, kind: DecisionKind, now: datetime) -> str:
    """e.g. 'auto-rotated 2024-01-01' or 'auto-rotated bootstrap 2024-01-01'."""
    parts = [config.automation_prefix]
    if kind is DecisionKind.BOOTSTRAP:
        parts.append("bootstrap")
    parts.append(now.strftime("%Y-%m-%d"))
    return " ".join(parts)


def execute(
    decision: Decision,
    config: RotationConfig,
    application: Application,
    registry: RegistryClient,
    store: SecretStoreClient,
    now: datetime
) -> RotationOutcome:
    if not decision.requires_rotation:
        return RotationOutcome(branch=DecisionKind.NOOP)

    if not application.object_id:
        raise PreconditionError(
            "Application reference has no object id; refusing to mint a credential",
            details={"app_id": application.app_id}
        )

    display_name = credential_display_name(config, decision.kind, now)
    logger.info(f"Creating credential '{display_name}' on application {application.object_id}")

    created = registry.create_credential(application.object_id, display_name, decision.new_end_date)
    if not created.secret_value:
        # The credential now exists in the registry; nothing here can recover its value.
        raise SecretCreationError(
            "Registry did not return secret text for the new credential",
            details={"key_id": created.key_id, "display_name": display_name}
        )

    tags = build_secret_tags(created.key_id, decision.new_end_date, config.managed_by)

    try:
        store.write_secret(config.secret_name, created.secret_value, tags)
    except Exception as e:
        # No rollback: the registry credential stays for manual reconciliation.
        raise StoreWriteError(
            f"Failed to write secret '{config.secret_name}' to vault '{config.vault_name}': {e}",
            details={"key_id": created.key_id, "vault_name": config.vault_name, "secret_name": config.secret_name}
        ) from e

    return RotationOutcome(
        branch=decision.kind,
        key_id=created.key_id,
        end_date_time=decision.new_end_date,
        tags=tags
    )
