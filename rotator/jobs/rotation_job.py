import logging
from typing import Optional

from uuid6 import uuid7

from rotator.domain.rotation.engine import decide, days_left, find_credential, min_good_end
from rotator.domain.rotation.executor import execute
from rotator.domain.rotation.models import RotationConfig, RotationOutcome, format_instant
from rotator.domain.rotation.ports import Clock, RegistryClient, SecretStoreClient, SystemClock
from rotator.domain.sink import EventSink, RunReporter, StdOutSink

logger = logging.getLogger(__name__)


def run_rotation(
    config: RotationConfig,
    registry: RegistryClient,
    store: SecretStoreClient,
    clock: Optional[Clock] = None,
    sink: Optional[EventSink] = None,
    run_id: Optional[str] = None,
    dry_run: bool = False
) -> RotationOutcome:
    """One rotation run: read both sides, decide, then apply at most one rotation.

    All reads finish before the decision and the decision is final before any
    write. Failures are reported as ERROR events and re-raised.
    """
    reporter = RunReporter(sink or StdOutSink(), run_id or str(uuid7()))
    now = (clock or SystemClock()).now()

    reporter.info(
        "config_loaded", "Rotation run started",
        targetAppId=config.target_app_id,
        vaultName=config.vault_name,
        secretName=config.secret_name,
        rotateDaysBefore=config.rotate_days_before,
        newSecretLifetimeDays=config.new_secret_lifetime_days,
        automationPrefix=config.automation_prefix,
        dryRun=dry_run,
        now=format_instant(now)
    )

    with reporter.timed("registry_lookup", "Registry lookup") as info:
        application = registry.find_application(config.target_app_id)
        credentials = registry.list_credentials(application.object_id)
        info.update(objectId=application.object_id, credentialCount=len(credentials))

    with reporter.timed("store_read", "Secret store read") as info:
        record = store.read_secret(config.secret_name)
        active_key_id = record.active_key_id if record else None
        info.update(recordFound=record is not None, activeKeyId=active_key_id)

    if record is None:
        reporter.warn("store_read", "Secret not found in store; treating as bootstrap lookup miss",
                      secretName=config.secret_name)

    decision = decide(now, config, active_key_id, credentials)

    decision_data = {
        "decision": decision.kind.value,
        "reason": decision.reason,
        "minGoodEnd": format_instant(min_good_end(now, config)),
    }
    if decision.matched_key_id:
        matched = find_credential(credentials, decision.matched_key_id)
        decision_data["matchedKeyId"] = decision.matched_key_id
        if matched is not None:
            decision_data["daysLeft"] = days_left(matched.end_date_time, now)
    if decision.new_end_date is not None:
        decision_data["newEndDate"] = format_instant(decision.new_end_date)
    reporter.info("decision", f"Decision: {decision.kind.value}", **decision_data)

    if dry_run:
        reporter.info("plan", "Dry run; no changes applied", **decision_data)
        return RotationOutcome(branch=decision.kind, end_date_time=decision.new_end_date, dry_run=True)

    with reporter.timed("execute", f"Execute {decision.kind.value}") as info:
        outcome = execute(decision, config, application, registry, store, now)
        if outcome.key_id:
            info.update(keyId=outcome.key_id, endDateTime=format_instant(outcome.end_date_time))

    reporter.info("completed", "Rotation run completed", branch=outcome.branch.value, keyId=outcome.key_id)
    return outcome
