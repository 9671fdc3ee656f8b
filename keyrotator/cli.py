"""Main CLI entry point for keyrotator.

keyrotator rotates cloud service-account keys and propagates every new key
to the systems that depend on it before the old key is deleted.
"""

from typing import Optional

import click

from keyrotator import __version__
from keyrotator.utils.errors import ErrorHandler
from keyrotator.utils.logging import setup_logging


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--dry-run", is_flag=True, help="Report key ages without rotating, even in rotation mode")
@click.option("--log-file", help="Log to file in addition to console")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, dry_run: bool, log_file: Optional[str]) -> None:
    """keyrotator - cloud service-account key rotation.

    Args:
        ctx: Click context object containing shared state
        verbose: Enable verbose output for detailed logging
        dry_run: Report only
        log_file: Optional path to log file for additional logging
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["dry_run"] = dry_run
    ctx.obj["log_file"] = log_file
    ctx.obj["error_handler"] = ErrorHandler(verbose=verbose)

    setup_logging(verbose=verbose, log_file=log_file)


@cli.command()
@click.option("--account", "-a", help="Only rotate keys of this account (requires --provider)")
@click.option("--provider", "-p", type=click.Choice(["aws", "gcp"]), help="Only inventory this provider")
@click.option("--project", "-j", help="GCP project of the provider (required for gcp)")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), help="Path to configuration file")
@click.pass_context
def rotate(
    ctx: click.Context,
    account: Optional[str],
    provider: Optional[str],
    project: Optional[str],
    config_path: Optional[str],
) -> None:
    """Rotate keys that are older than their threshold.

    Outside rotation mode (or with --dry-run) keys are inventoried and
    reported, and nothing is changed.
    """
    try:
        from keyrotator.config import ConfigManager, provision_ambient_credentials
        from keyrotator.rotation import RotationManager, validate_flags

        validate_flags(account, provider, project)
        config = ConfigManager().load_config(config_path)
        ambient = provision_ambient_credentials(config.requires_google_credentials())

        manager = RotationManager(config, ambient=ambient, dry_run=ctx.obj["dry_run"])
        report = manager.run(account=account, provider=provider, project=project)

        if not report.rotation_mode:
            click.echo(f"Found {len(report.keys)} key(s); rotation mode is off, nothing rotated")
            if ctx.obj["verbose"]:
                for key in report.keys:
                    click.echo(f"  - {key.provider.provider} {key.full_account}: {key.age:.0f} min")
            return

        if not report.results:
            click.echo("No keys are due for rotation")
            return

        click.echo(f"✓ Rotated {len(report.results)} key(s)")
        for result in report.results:
            locations = ", ".join(f"{u.location_type}:{u.location_uri}" for u in result.updated_locations)
            click.echo(f"  - {result.provider} {result.account} → {locations or 'no locations'}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Key rotation")


@cli.command()
def version() -> None:
    """Show the keyrotator version."""
    click.echo(f"keyrotator {__version__}")


if __name__ == "__main__":
    cli()
