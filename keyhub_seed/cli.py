"""CLI commands for keyhub-seed."""

import functools
import logging
import sys
import time
from pathlib import Path

import click

from keyhub_seed.config import CONFIG_FILENAME, Config
from keyhub_seed.models import OrchestratorConfig, OrchestratorResult, SeederResult, SeedOptions
from keyhub_seed.orchestrator import Orchestrator
from keyhub_seed.store import PostgresStore

# Seeders each command runs first ("ensure-then-proceed"); seed() is idempotent
PREREQUISITES: dict[str, list[str]] = {
    "PermissionsSeeder": [],
    "RolesSeeder": ["PermissionsSeeder"],
    "AdminSeeder": [],
    "OrganizationSeeder": ["AdminSeeder"],
    "UserSeeder": ["AdminSeeder", "OrganizationSeeder"],
    "LicenseSeeder": ["AdminSeeder", "OrganizationSeeder", "UserSeeder"],
    "AccessLogSeeder": [],
}


def _configure_logging(verbose: bool, silent: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if silent else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_config(config_path: str | None, database_url: str | None) -> Config:
    if config_path:
        config = Config.from_toml(config_path)
    else:
        try:
            config = Config.find_and_load()
        except FileNotFoundError:
            config = Config()

    if database_url:
        config.database.url = database_url
    return config


def _orchestrator(ctx: click.Context) -> Orchestrator:
    obj = ctx.obj
    if "store" not in obj:
        config: Config = obj["config"]
        obj["store"] = PostgresStore(
            config.database.url,
            min_size=config.database.min_size,
            max_size=config.database.max_size,
            timeout=config.factory.transaction_timeout,
            max_wait=config.factory.max_wait,
        )
        ctx.call_on_close(obj["store"].close)
    return Orchestrator(obj["store"], obj["config"])


def _print_results(results: dict[str, SeederResult]) -> None:
    if not results:
        return

    click.echo()
    click.echo(f"{'Seeder':<20} {'Status':<8} {'Created':>8} {'Existing':>9}  Message")
    click.echo("-" * 72)
    for name, result in results.items():
        status = "ok" if result.success else "FAILED"
        created = result.data.created if result.data else "-"
        existing = result.data.existing if result.data else "-"
        click.echo(f"{name:<20} {status:<8} {created!s:>8} {existing!s:>9}  {result.message}")
        if result.error:
            click.echo(f"{'':<20} error: {result.error}")


def _finish(result: OrchestratorResult, action: str) -> None:
    _print_results(result.results)
    click.echo()
    if result.success:
        click.echo(f"✓ {action} finished in {result.duration:.2f}s")
        return

    click.echo(f"✗ {action} failed after {result.duration:.2f}s", err=True)
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
    sys.exit(1)


def seed_options(func):
    """Options shared by the seeding commands, collected into SeedOptions."""

    @click.option("--count", type=int, help="Number of random records")
    @click.option("--force", is_flag=True, help="Skip pre-validation")
    @click.option("--no-presets", is_flag=True, help="Do not create preset records")
    @click.option("--realistic", is_flag=True, help="Generate realistic access patterns")
    @click.option("--logs-per-license", type=int, help="Access logs per license")
    @click.option("--realistic-days", type=int, help="Days covered by realistic patterns")
    @functools.wraps(func)
    def wrapper(
        count, force, no_presets, realistic, logs_per_license, realistic_days, **kwargs
    ):
        options = SeedOptions(
            force=force,
            count=count,
            include_presets=not no_presets,
            logs_per_license=logs_per_license,
            realistic_days=realistic_days,
            generate_realistic=realistic,
        )
        return func(options=options, **kwargs)

    return wrapper


@click.group()
@click.version_option(package_name="keyhub-seed")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to keyhub-seed.toml")
@click.option("--database-url", help="PostgreSQL URL (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--silent", "-s", is_flag=True, help="Only warnings and errors")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    database_url: str | None,
    verbose: bool,
    silent: bool,
) -> None:
    """keyhub-seed - seed fixture data for the license management backend."""
    _configure_logging(verbose, silent)
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = _load_config(config_path, database_url)


@cli.command()
@click.option("--quick", is_flag=True, help="Quick development dataset")
@click.option("--parallel", is_flag=True, help="Request parallel execution")
@click.option("--skip-validation", is_flag=True, help="Skip post-validation")
@click.option("--multiplier", type=float, help="Volume multiplier for --quick")
@click.option(
    "--env",
    "environment",
    type=click.Choice(["development", "test", "production"]),
    help="Target environment",
)
@seed_options
@click.pass_context
def full(
    ctx: click.Context,
    options: SeedOptions,
    quick: bool,
    parallel: bool,
    skip_validation: bool,
    multiplier: float | None,
    environment: str | None,
) -> None:
    """Run the complete seeding flow."""
    orchestrator = _orchestrator(ctx)
    environment = environment or ctx.obj["config"].defaults.environment
    options.skip_validation = skip_validation
    options.multiplier = multiplier

    if environment == "production":
        result = orchestrator.minimal()
    elif quick:
        result = orchestrator.quick_dev(options)
    else:
        result = orchestrator.execute_all(
            OrchestratorConfig(
                environment=environment,
                parallel=parallel,
                skip_validation=skip_validation,
                options=options,
            )
        )

    _finish(result, "Seeding")


def _seed_command(name: str, seeder: str, help_text: str) -> None:
    @seed_options
    @click.pass_context
    def command(ctx: click.Context, options: SeedOptions) -> None:
        orchestrator = _orchestrator(ctx)
        start = time.perf_counter()
        results: dict[str, SeederResult] = {}

        for prerequisite in PREREQUISITES[seeder]:
            results[prerequisite] = orchestrator.execute_single(prerequisite, options)

        results[seeder] = orchestrator.execute_single(seeder, options)
        _finish(
            OrchestratorResult(
                # Only the requested seeder decides the exit code
                success=results[seeder].success,
                duration=time.perf_counter() - start,
                results=results,
            ),
            seeder,
        )

    command.__doc__ = help_text
    cli.command(name)(command)


_seed_command("admin", "AdminSeeder", "Create the bootstrap admin account.")
_seed_command("organization", "OrganizationSeeder", "Create organizations and departments.")
_seed_command("user", "UserSeeder", "Create test users.")
_seed_command("license", "LicenseSeeder", "Create test licenses.")
_seed_command("access-log", "AccessLogSeeder", "Create access logs.")
_seed_command("permissions", "PermissionsSeeder", "Create the permission catalog.")
_seed_command("roles", "RolesSeeder", "Create system roles.")


@cli.command()
@click.option(
    "--preserve-admin/--no-preserve-admin",
    default=True,
    help="Keep the admin account and system rows (default: keep)",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clean(ctx: click.Context, preserve_admin: bool, yes: bool) -> None:
    """Remove seeded data."""
    scope = "all test data (keeping the admin)" if preserve_admin else "ALL data"
    if not yes and not click.confirm(f"Remove {scope}? This cannot be undone."):
        click.echo("Cancelled")
        return

    result = _orchestrator(ctx).clean_all(preserve_admin=preserve_admin)
    _finish(result, "Cleaning")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show record counts per seeder."""
    for name, values in _orchestrator(ctx).get_all_stats().items():
        click.echo(name)
        if not values:
            click.echo("  (unavailable)")
        for key, value in values.items():
            click.echo(f"  {key}: {value}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check integrity of seeded data."""
    results = _orchestrator(ctx).validate_all()
    for name, valid in results.items():
        click.echo(f"{'✓' if valid else '✗'} {name}")

    if not all(results.values()):
        sys.exit(1)


@cli.command()
@click.option("--path", default=CONFIG_FILENAME, help="Where to write the config file")
@click.option("--overwrite", is_flag=True, help="Replace an existing file")
@click.pass_context
def init(ctx: click.Context, path: str, overwrite: bool) -> None:
    """Write a keyhub-seed.toml with the current settings."""
    target = Path(path)
    if target.exists() and not overwrite:
        click.echo(f"Error: {target} already exists (use --overwrite)", err=True)
        sys.exit(1)

    ctx.obj["config"].to_toml(target)
    click.echo(f"✓ Wrote {target}")


if __name__ == "__main__":
    cli()
