"""CLI for the client-secret rotator."""
import click
import json
import logging
from typing import Optional, Tuple

from uuid6 import uuid7

from rotator.domain.rotation.models import parse_instant
from rotator.domain.rotation.ports import Clock, FixedClock, RegistryClient, SecretStoreClient, SystemClock
from rotator.domain.sink import EventSink, RunReporter, StdOutSink
from rotator.errors import ConfigurationError, RotatorError
from rotator.jobs.rotation_job import run_rotation
from rotator.logging_hardening import configure_logging
from rotator.settings import Settings, load_settings

logger = logging.getLogger(__name__)


def build_clients(settings: Settings) -> Tuple[RegistryClient, SecretStoreClient]:
    """Graph + Key Vault in production, in-memory stores in dev mode."""
    if settings.dev_mode:
        from rotator.adapters.memory_store.stores import MemoryRegistry, MemorySecretStore
        registry = MemoryRegistry()
        registry.add_application(settings.target_app_id, display_name="dev application")
        logger.warning("DEV_MODE: using in-memory registry and secret store")
        return registry, MemorySecretStore()

    from azure.identity import DefaultAzureCredential
    from rotator.adapters.graph.registry import GraphRegistryClient, azure_token_provider
    from rotator.adapters.keyvault.secret_store import KeyVaultSecretStore

    credential = DefaultAzureCredential(exclude_interactive_browser_credential=True)
    registry = GraphRegistryClient(
        azure_token_provider(credential, settings.graph_scope),
        base_url=settings.graph_base_url,
        timeout=settings.http_timeout_seconds
    )
    store = KeyVaultSecretStore.from_vault_url(settings.resolved_vault_url, credential)
    return registry, store


def _run(dry_run: bool, now: Optional[str], sink: Optional[EventSink] = None) -> int:
    run_id = str(uuid7())
    reporter = RunReporter(sink or StdOutSink(), run_id)

    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        config = settings.to_rotation_config()
        clock: Clock = FixedClock(parse_instant(now)) if now else SystemClock()
    except (RotatorError, ValueError) as e:
        error = e.to_dict() if isinstance(e, RotatorError) else {"code": ConfigurationError.code, "message": str(e)}
        reporter.error("config_loaded", f"Configuration failed: {e}", error=error)
        return 1

    try:
        registry, store = build_clients(settings)
        outcome = run_rotation(config, registry, store, clock=clock, sink=reporter.sink,
                               run_id=run_id, dry_run=dry_run)
    except Exception as e:
        # Step-level ERROR events are already emitted by the job; this one marks the run.
        reporter.error("run", f"Rotation run failed: {e}", errorType=type(e).__name__)
        return 1

    click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
    return 0


@click.group()
def cli():
    """Application client-secret rotator."""
    pass


@cli.command("run")
@click.option("--dry-run", is_flag=True, default=False, help="Decide and report without changing anything")
@click.option("--now", default=None, help="Override the current instant (ISO-8601, UTC)")
@click.pass_context
def run_cmd(ctx: click.Context, dry_run: bool, now: Optional[str]):
    """Run one rotation check, rotating the secret if required."""
    ctx.exit(_run(dry_run, now))


@cli.command("plan")
@click.option("--now", default=None, help="Override the current instant (ISO-8601, UTC)")
@click.pass_context
def plan_cmd(ctx: click.Context, now: Optional[str]):
    """Show what a run would do."""
    ctx.exit(_run(True, now))


@cli.command("show-config")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
def show_config(fmt: str):
    """Print the effective rotation configuration."""
    try:
        settings = load_settings()
        config = settings.to_rotation_config()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    values = config.model_dump()
    values["vault_url"] = settings.resolved_vault_url
    values["dev_mode"] = settings.dev_mode

    if fmt == "json":
        click.echo(json.dumps(values, indent=2))
    else:
        click.echo(f"\n{'Setting':<28} {'Value':<50}")
        click.echo("-" * 78)
        for key, value in values.items():
            click.echo(f"{key:<28} {str(value):<50}")


if __name__ == "__main__":
    cli()
