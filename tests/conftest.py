from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from inventory.database import Database
from inventory.main import create_app
from inventory.schemas.product import ProductSave
from inventory.services.ledger_service import LedgerService


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'inventory.db'}"


@pytest.fixture
def database(database_url):
    db = Database(database_url)
    yield db
    db.close()


@pytest.fixture
def ledger(database):
    return LedgerService(database, clock=TickingClock())


@pytest.fixture
def create_product(ledger):
    def _create(name="Bolt", quantity=100, price="0.50", category=None, description=None) -> int:
        return ledger.save_product(
            ProductSave(
                name=name,
                description=description,
                quantity=quantity,
                price=Decimal(price),
                category=category,
            )
        )

    return _create


@pytest.fixture
def client(database_url, tmp_path):
    app = create_app(database_url, backup_dir=str(tmp_path / "backups"))
    with TestClient(app) as c:
        yield c
