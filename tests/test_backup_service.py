import re

import pytest
from sqlalchemy import create_engine

from inventory.database import Database
from inventory.exceptions import NotFound, StorageFailure
from inventory.services import backup_service
from inventory.services.backup_service import BackupService


def test_backup_and_restore(ledger, database, create_product, tmp_path):
    backups = BackupService(database, tmp_path / "backups")
    pid = create_product(name="Bolt", quantity=10)

    backup = backups.create_backup()
    assert backup.is_file()
    assert re.fullmatch(r"inventory_backup_\d{8}_\d{6}_\d{6}\.db", backup.name)
    assert database.is_open

    ledger.register_output(pid, 4, "sale")
    create_product(name="Later")
    assert ledger.get_product(pid).quantity == 6

    backups.restore_from_backup(backup)

    assert database.is_open
    assert [p.name for p in ledger.get_products()] == ["Bolt"]
    assert ledger.get_product(pid).quantity == 10
    assert len(ledger.get_all_movements()) == 1


def test_restore_missing_file_leaves_connection_open(database, tmp_path):
    backups = BackupService(database, tmp_path / "backups")
    with pytest.raises(NotFound):
        backups.restore_from_backup(tmp_path / "missing.db")
    assert database.is_open


def test_backup_requires_file_database(tmp_path):
    db = Database("sqlite://")
    try:
        with pytest.raises(StorageFailure):
            BackupService(db, tmp_path).create_backup()
    finally:
        db.close()


def _live_database_survives(ledger, database, pid):
    assert database.is_open
    assert [p.name for p in ledger.get_products()] == ["Bolt"]
    assert ledger.get_product(pid).quantity == 10


def test_restore_rejects_non_database_file(ledger, database, create_product, tmp_path):
    pid = create_product(name="Bolt", quantity=10)
    bogus = tmp_path / "notes.db"
    bogus.write_text("this is not a database\n" * 50)

    with pytest.raises(StorageFailure):
        BackupService(database, tmp_path / "backups").restore_from_backup(bogus)

    _live_database_survives(ledger, database, pid)


def test_restore_rejects_database_without_inventory_tables(ledger, database, create_product, tmp_path):
    pid = create_product(name="Bolt", quantity=10)
    other = tmp_path / "other.db"
    engine = create_engine(f"sqlite:///{other}")
    with engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE customers (id INTEGER PRIMARY KEY)")
    engine.dispose()

    with pytest.raises(StorageFailure, match="missing tables"):
        BackupService(database, tmp_path / "backups").restore_from_backup(other)

    _live_database_survives(ledger, database, pid)


def test_restore_puts_previous_file_back_when_reopen_fails(ledger, database, create_product, tmp_path, monkeypatch):
    pid = create_product(name="Bolt", quantity=10)
    bogus = tmp_path / "broken.db"
    bogus.write_bytes(b"\x00garbage" * 100)
    # Let the file through the pre-check so the reopen itself fails
    monkeypatch.setattr(backup_service, "check_database_file", lambda path: None)

    with pytest.raises(StorageFailure, match="Restore failed"):
        BackupService(database, tmp_path / "backups").restore_from_backup(bogus)

    _live_database_survives(ledger, database, pid)
    assert not (tmp_path / "inventory.db.pre-restore").exists()
