import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from inventory.exceptions import ConnectionClosed, InventoryError, StorageFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


def init_db(engine: Engine) -> None:
    # Import all models so Base.metadata knows about them
    import inventory.models.product  # noqa: F401
    import inventory.models.product_movement  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_database_file(path: str) -> None:
    """Raise ``StorageFailure`` unless ``path`` is an intact SQLite file holding both tables."""
    engine = create_engine(f"sqlite:///{path}")
    try:
        with engine.connect() as conn:
            result = conn.exec_driver_sql("PRAGMA quick_check").scalar()
            if result != "ok":
                raise StorageFailure(f"{path} failed integrity check: {result}")
            tables = set(inspect(conn).get_table_names())
    except SQLAlchemyError as e:
        raise StorageFailure(f"{path} is not a usable database: {e}") from e
    finally:
        engine.dispose()

    missing = {"products", "product_movements"} - tables
    if missing:
        raise StorageFailure(f"{path} is missing tables: {', '.join(sorted(missing))}")


class Storage:
    """Record-level primitives over one session. Created by ``Database.transaction``."""

    def __init__(self, session: Session):
        self.session = session

    def insert(self, row: Any) -> int:
        self.session.add(row)
        self.session.flush()
        return row.id

    def update(self, row: Any) -> int:
        if self.session.get(type(row), row.id) is None:
            return 0
        self.session.merge(row)
        self.session.flush()
        return 1

    def delete(self, row: Any) -> int:
        stored = self.session.get(type(row), row.id)
        if stored is None:
            return 0
        self.session.delete(stored)
        self.session.flush()
        return 1

    def get(self, model: type[T], row_id: int) -> T | None:
        return self.session.get(model, row_id)

    def query_all(self, model: type[T], order_by: tuple = ()) -> list[T]:
        return list(self.session.scalars(select(model).order_by(*order_by)))

    def query_where(self, model: type[T], *criteria, order_by: tuple = ()) -> list[T]:
        return list(self.session.scalars(select(model).where(*criteria).order_by(*order_by)))


class Database:
    """Process-wide handle on one database.

    Writes are serialized through a single lock (one local writer). ``close``
    waits for in-flight operations before disposing the engine, and any
    operation issued while closed raises ``ConnectionClosed``.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._state = threading.Condition()
        self._active = 0
        self._closing = False
        self._write_lock = threading.RLock()
        self.open()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def path(self) -> str | None:
        """Filesystem path of the SQLite database file, or None if not file-backed."""
        url = make_url(self.url)
        if not url.drivername.startswith("sqlite"):
            return None
        if not url.database or url.database == ":memory:":
            return None
        return url.database

    def open(self) -> None:
        with self._state:
            if self._engine is not None:
                return
            connect_args = {}
            if self.url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
            engine = create_engine(self.url, connect_args=connect_args)
            try:
                init_db(engine)
            except SQLAlchemyError as e:
                engine.dispose()
                raise StorageFailure(f"Could not open database: {e}") from e
            self._engine = engine
            self._session_factory = sessionmaker(
                autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
            )
        logger.info("Opened database %s", self.url)

    def close(self) -> None:
        with self._state:
            # New work is refused while in-flight operations drain
            self._closing = True
            try:
                while self._active:
                    self._state.wait()
                if self._engine is None:
                    return
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
            finally:
                self._closing = False
        logger.info("Closed database %s", self.url)

    def reopen(self) -> None:
        if not self.is_open:
            self.open()

    def _enter(self) -> Session:
        with self._state:
            if self._session_factory is None or self._closing:
                raise ConnectionClosed()
            self._active += 1
            return self._session_factory()

    def _leave(self, session: Session) -> None:
        session.close()
        with self._state:
            self._active -= 1
            self._state.notify_all()

    @contextmanager
    def read(self) -> Iterator[Storage]:
        """Read-only access; sees the last committed transaction."""
        session = self._enter()
        try:
            yield Storage(session)
        except SQLAlchemyError as e:
            logger.error("Read failed on %s: %s", self.url, e)
            raise StorageFailure(str(e)) from e
        finally:
            self._leave(session)

    @contextmanager
    def transaction(self) -> Iterator[Storage]:
        """All-or-nothing unit of work: commit on success, roll back on any error."""
        with self._write_lock:
            session = self._enter()
            try:
                yield Storage(session)
                session.commit()
            except InventoryError:
                session.rollback()
                raise
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Transaction rolled back on %s: %s", self.url, e)
                raise StorageFailure(str(e)) from e
            except Exception:
                session.rollback()
                raise
            finally:
                self._leave(session)

    def run_in_transaction(self, fn: Callable[[Storage], T]) -> T:
        with self.transaction() as storage:
            return fn(storage)
