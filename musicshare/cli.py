"""
Operator commands for MusicShare.

    musicshare init-db
    musicshare reconcile [--delete-orphans] [--grace-minutes N]
"""

import click

from musicshare.core.logging import setup_logging


def _build_store():
    from musicshare.core.storage import S3ObjectStore
    return S3ObjectStore.from_settings()


def _open_session():
    from musicshare.db.session import SessionLocal
    return SessionLocal()


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """MusicShare maintenance commands."""
    setup_logging()


@cli.command("init-db")
def init_db():
    """Create missing database tables."""
    from musicshare.db.base import Base
    from musicshare.db.session import engine
    import musicshare.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    click.echo("Database tables created")


@cli.command()
@click.option("--delete-orphans", is_flag=True, help="Remove blobs that no song references.")
@click.option("--grace-minutes", default=60, show_default=True,
              help="Ignore blobs younger than this (uploads in flight).")
def reconcile(delete_orphans, grace_minutes):
    """Compare song rows with stored blobs and report divergence."""
    from musicshare.services.reconcile_service import ReconcileService

    service = ReconcileService(_build_store(), grace_seconds=grace_minutes * 60)
    db = _open_session()
    try:
        report = service.scan(db)
    finally:
        db.close()

    click.echo(f"Songs with missing blobs: {len(report.missing_blobs)}")
    for song_id in report.missing_blobs:
        click.echo(f"  song {song_id}")
    click.echo(f"Songs with unrecognised URLs: {len(report.unparseable_urls)}")
    for song_id in report.unparseable_urls:
        click.echo(f"  song {song_id}")
    click.echo(f"Orphaned blobs: {len(report.orphaned_keys)}")
    for key in report.orphaned_keys:
        click.echo(f"  {key}")
    if report.skipped_recent:
        click.echo(f"Skipped {report.skipped_recent} recent blob(s)")

    remaining_orphans = len(report.orphaned_keys)
    if delete_orphans and report.orphaned_keys:
        removed = service.remove_orphans(report)
        remaining_orphans -= removed
        click.echo(f"Removed {removed} orphaned blob(s)")

    if report.missing_blobs or report.unparseable_urls or remaining_orphans:
        raise SystemExit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
