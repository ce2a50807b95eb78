import logging
import pathlib
import shutil
from datetime import datetime

from inventory.database import Database, check_database_file
from inventory.exceptions import NotFound, StorageFailure

logger = logging.getLogger(__name__)


class BackupService:
    """File-level copies of the live database.

    Copies run while the connection is closed so no transaction is held open
    and the file on disk is consistent.
    """

    def __init__(self, database: Database, backup_dir: str | pathlib.Path):
        self.database = database
        self.backup_dir = pathlib.Path(backup_dir)

    def _database_file(self) -> pathlib.Path:
        path = self.database.path
        if path is None:
            raise StorageFailure("Backup requires a file-backed SQLite database")
        return pathlib.Path(path)

    def create_backup(self) -> pathlib.Path:
        source = self._database_file()
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        dest = self.backup_dir / f"inventory_backup_{datetime.now():%Y%m%d_%H%M%S_%f}.db"

        self.database.close()
        try:
            shutil.copy2(source, dest)
        except OSError as e:
            raise StorageFailure(f"Backup failed: {e}") from e
        finally:
            self.database.reopen()

        logger.info("Created database backup %s", dest)
        return dest

    def restore_from_backup(self, backup_path: str | pathlib.Path) -> None:
        source = pathlib.Path(backup_path)
        if not source.is_file():
            raise NotFound(f"Backup file {source} not found")
        target = self._database_file()
        check_database_file(str(source))

        # Keep the live file until the restored one has opened cleanly
        safety = target.with_name(f"{target.name}.pre-restore")
        self.database.close()
        overwritten = False
        try:
            shutil.copy2(target, safety)
            overwritten = True
            shutil.copy2(source, target)
            self.database.reopen()
        except (OSError, StorageFailure) as e:
            if overwritten:
                shutil.copy2(safety, target)
            self.database.reopen()
            logger.error("Restore from %s aborted, kept the previous database", source)
            raise StorageFailure(f"Restore failed: {e}") from e
        finally:
            safety.unlink(missing_ok=True)

        logger.info("Restored database from %s", source)
