"""Rotation Decision Engine.

Decides, from one consistent snapshot of the registry and the secret store,
whether a new client secret must be minted. Pure: no I/O, no clock reads.
"""
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from rotator.domain.rotation.models import Credential, Decision, RotationConfig

# Added to rotate_days_before when computing the healthy threshold.
BUFFER_DAYS = 2

REASON_NO_CREDENTIALS = "no_credentials"
REASON_ACTIVE_KEY_HEALTHY = "active_key_healthy"
REASON_ACTIVE_KEY_EXPIRING = "active_key_expiring"
REASON_AUTOMATION_CREDENTIAL_HEALTHY = "automation_credential_healthy"
REASON_ACTIVE_KEY_MISSING = "active_key_missing"
REASON_ACTIVE_KEY_DRIFT = "active_key_drift"


def min_good_end(now: datetime, config: RotationConfig) -> datetime:
    """Earliest expiry that still counts as healthy (exclusive)."""
    return now + timedelta(days=config.rotate_days_before + BUFFER_DAYS)


def new_end_date(now: datetime, config: RotationConfig) -> datetime:
    return now + timedelta(days=config.new_secret_lifetime_days)


def days_left(end: datetime, now: datetime) -> int:
    """Whole days until `end`, truncated toward zero. Informational only."""
    return int((end - now).total_seconds() / 86400)


def find_credential(credentials: Iterable[Credential], key_id: str) -> Optional[Credential]:
    for c in credentials:
        if c.key_id == key_id:
            return c
    return None


def find_healthy_automation_credential(
    credentials: Iterable[Credential],
    prefix: str,
    threshold: datetime
) -> Optional[Credential]:
    """Newest credential this system created that expires after `threshold`."""
    candidates = [
        c for c in credentials
        if (c.display_name or "").startswith(prefix) and c.end_date_time > threshold
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda c: c.end_date_time)


def decide(
    now: datetime,
    config: RotationConfig,
    active_key_id: Optional[str],
    credentials: Sequence[Credential]
) -> Decision:
    """Evaluate the rotation rules in order; the first match wins.

    1. No credentials at all: bootstrap one.
    2. Active key found and expiring after the threshold: nothing to do.
    3. Active key found but expiring at or before the threshold: rotate.
    4. Active key absent or unknown to the registry: a healthy credential
       carrying the automation prefix means nothing to do.
    5. Otherwise rotate.

    Comparisons are strict, so an expiry exactly on the threshold rotates.
    """
    if not credentials:
        return Decision.bootstrap(new_end_date(now, config), reason=REASON_NO_CREDENTIALS)

    threshold = min_good_end(now, config)

    active = find_credential(credentials, active_key_id) if active_key_id else None
    if active is not None:
        if active.end_date_time > threshold:
            return Decision.noop(reason=REASON_ACTIVE_KEY_HEALTHY, matched_key_id=active.key_id)
        return Decision.rotate(
            new_end_date(now, config),
            reason=REASON_ACTIVE_KEY_EXPIRING,
            matched_key_id=active.key_id
        )

    healthy = find_healthy_automation_credential(credentials, config.automation_prefix, threshold)
    if healthy is not None:
        return Decision.noop(reason=REASON_AUTOMATION_CREDENTIAL_HEALTHY, matched_key_id=healthy.key_id)

    reason = REASON_ACTIVE_KEY_DRIFT if active_key_id else REASON_ACTIVE_KEY_MISSING
    return Decision.rotate(new_end_date(now, config), reason=reason)
