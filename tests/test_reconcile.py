import time

import pytest
from click.testing import CliRunner

from musicshare import cli as cli_module
from musicshare.db.models import Song
from musicshare.services.catalog_service import CatalogService
from musicshare.services.reconcile_service import ReconcileService, key_timestamp

HOUR = 3600


def _song(db, user, url):
    song = Song(title="T", artist="A", file_url=url, user_id=user.id)
    db.add(song)
    db.commit()
    return song


def _old_key(name, age=2 * HOUR):
    stamp = int((time.time() - age) * 1e9)
    return f"music/{stamp}-1-{name}"


@pytest.mark.unit
def test_key_timestamp_parses_upload_keys():
    catalog_key = CatalogService(store=None).build_storage_key("a.mp3")
    assert abs(key_timestamp(catalog_key) - time.time()) < 60
    assert key_timestamp("music/legacy.mp3") is None


@pytest.mark.unit
def test_consistent_catalog(store, db_session, make_user):
    user = make_user()
    catalog = CatalogService(store)
    upload = catalog.validate_upload("T", "A", filename="a.mp3", content_type="audio/mpeg", data=b"abc")
    catalog.upload_song(db_session, user.id, upload)

    report = ReconcileService(store).scan(db_session)
    assert report.consistent


@pytest.mark.unit
def test_scan_reports_missing_orphaned_and_foreign(store, db_session, make_user):
    user = make_user()
    kept = _old_key("kept.mp3")
    orphan = _old_key("orphan.mp3")
    store.put(kept, b"1", "audio/mpeg")
    store.put(orphan, b"2", "audio/mpeg")
    store.put("covers/x.png", b"3", "image/png")

    _song(db_session, user, store.url_for(kept))
    gone = _song(db_session, user, store.url_for(_old_key("gone.mp3")))
    foreign = _song(db_session, user, "https://elsewhere.example.com/x.mp3")

    report = ReconcileService(store).scan(db_session)

    assert report.missing_blobs == [gone.id]
    assert report.orphaned_keys == [orphan]
    assert report.unparseable_urls == [foreign.id]
    assert not report.consistent


@pytest.mark.unit
def test_recent_blobs_are_not_orphans(store, db_session):
    fresh = _old_key("fresh.mp3", age=5)
    store.put(fresh, b"1", "audio/mpeg")

    report = ReconcileService(store, grace_seconds=HOUR).scan(db_session)

    assert report.orphaned_keys == []
    assert report.skipped_recent == 1


@pytest.mark.unit
def test_remove_orphans_counts_successes(store, db_session):
    orphan = _old_key("orphan.mp3")
    store.put(orphan, b"1", "audio/mpeg")
    service = ReconcileService(store)

    report = service.scan(db_session)
    assert service.remove_orphans(report) == 1
    assert store.blobs == {}

    store.put(orphan, b"1", "audio/mpeg")
    store.fail_delete = True
    assert service.remove_orphans(service.scan(db_session)) == 0


@pytest.mark.unit
def test_cli_reconcile(monkeypatch, store, session_factory, make_user, db_session):
    user = make_user()
    orphan = _old_key("orphan.mp3")
    kept = _old_key("kept.mp3")
    store.put(orphan, b"1", "audio/mpeg")
    store.put(kept, b"2", "audio/mpeg")
    _song(db_session, user, store.url_for(kept))

    monkeypatch.setattr(cli_module, "_build_store", lambda: store)
    monkeypatch.setattr(cli_module, "_open_session", session_factory)
    runner = CliRunner()

    result = runner.invoke(cli_module.cli, ["reconcile"])
    assert result.exit_code == 1
    assert "Orphaned blobs: 1" in result.output
    assert orphan in result.output

    result = runner.invoke(cli_module.cli, ["reconcile", "--delete-orphans"])
    assert result.exit_code == 0
    assert "Removed 1 orphaned blob(s)" in result.output
    assert list(store.blobs) == [kept]


@pytest.mark.unit
def test_cli_init_db_creates_tables():
    from sqlalchemy import inspect
    from musicshare.db.session import engine

    result = CliRunner().invoke(cli_module.cli, ["init-db"])

    assert result.exit_code == 0
    assert {"users", "songs"} <= set(inspect(engine).get_table_names())


def _run_during_listing(monkeypatch, store, action):
    """Perform `action` when the scan lists blobs, as a concurrent request would."""
    original = store.list_keys

    def _list_keys(prefix):
        action()
        return original(prefix)

    monkeypatch.setattr(store, "list_keys", _list_keys)


@pytest.mark.unit
def test_upload_during_scan_is_not_reported(monkeypatch, store, db_session, session_factory, make_user):
    user = make_user()
    catalog = CatalogService(store)
    upload = catalog.validate_upload("T", "A", filename="new.mp3", content_type="audio/mpeg", data=b"abc")

    def _concurrent_upload():
        other = session_factory()
        try:
            catalog.upload_song(other, user.id, upload)
        finally:
            other.close()

    _run_during_listing(monkeypatch, store, _concurrent_upload)
    report = ReconcileService(store).scan(db_session)

    assert report.missing_blobs == []
    assert report.orphaned_keys == []
    assert report.skipped_recent == 1


@pytest.mark.unit
def test_delete_during_scan_is_not_reported(monkeypatch, store, db_session, session_factory, make_user):
    user = make_user()
    key = _old_key("doomed.mp3")
    store.put(key, b"1", "audio/mpeg")
    song_id = _song(db_session, user, store.url_for(key)).id

    def _concurrent_delete():
        other = session_factory()
        try:
            CatalogService(store).delete_song(other, song_id, user.id)
        finally:
            other.close()

    _run_during_listing(monkeypatch, store, _concurrent_delete)
    report = ReconcileService(store).scan(db_session)

    assert report.consistent
