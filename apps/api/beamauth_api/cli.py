"""CLI commands for the Beam Authorization API."""

import logging
import sys

import click

from beamauth_api.db.seed import seed_all
from beamauth_api.db.session import SessionLocal
from beamauth_api.expiration.scanner import ExpirationScanner
from beamauth_api.routes.deps import get_dispatcher
from beamauth_api.settings import get_settings


@click.group()
def cli():
    """Beam Authorization CLI."""
    logging.basicConfig(
        level=get_settings().log_level,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
        handlers=[logging.StreamHandler(sys.stderr)],
    )


@cli.command()
def seed():
    """Seed initial data."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
    finally:
        db.close()


@cli.command("check-expirations")
@click.option("--upcoming", is_flag=True, help="Also report upcoming expirations.")
def check_expirations(upcoming):
    """Revoke expired permissions and send notifications."""
    db = SessionLocal()
    try:
        scanner = ExpirationScanner.build(db, get_settings(), get_dispatcher())
        report = scanner.perform_expiration_check(upcoming)
        click.echo(
            f"✓ Expired authorizations: {len(report.expired_authorizations)}, "
            f"expired verifications: {len(report.expired_verifications)}"
        )
        if upcoming:
            click.echo(
                f"  Upcoming authorizations: {len(report.upcoming_authorizations)}, "
                f"upcoming verifications: {len(report.upcoming_verifications)}"
            )
        for authorization_id in report.new_authorization_ids:
            click.echo(f"  New authorization version: {authorization_id}")
    except Exception as e:
        click.echo(f"✗ Expiration check failed: {e}", err=True)
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
