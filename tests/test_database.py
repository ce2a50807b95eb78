import threading
import time
from datetime import datetime

import pytest

from inventory.database import Database
from inventory.exceptions import ConnectionClosed, NotFound
from inventory.models.product import Product
from inventory.models.product_movement import MovementType, ProductMovement


def _product(name="Bolt", quantity=1, category=None):
    return Product(name=name, quantity=quantity, price=0, category=category, created_at=datetime(2024, 1, 1))


def test_insert_assigns_identity(database):
    with database.transaction() as storage:
        first = storage.insert(_product("A"))
        second = storage.insert(_product("B"))
    assert first > 0 and second == first + 1


def test_update_and_delete_report_affected_rows(database):
    with database.transaction() as storage:
        pid = storage.insert(_product())

    with database.transaction() as storage:
        product = storage.get(Product, pid)
        product.quantity = 9
        assert storage.update(product) == 1
        assert storage.update(Product(id=999, name="x", quantity=0, created_at=datetime(2024, 1, 1))) == 0

    with database.read() as storage:
        assert storage.get(Product, pid).quantity == 9

    with database.transaction() as storage:
        assert storage.delete(Product(id=pid)) == 1
        assert storage.delete(Product(id=pid)) == 0


def test_query_where(database):
    with database.transaction() as storage:
        storage.insert(_product("A", category="Tools"))
        storage.insert(_product("B", category="Paint"))
        storage.insert(_product("C", category="Tools"))

    with database.read() as storage:
        tools = storage.query_where(Product, Product.category == "Tools", order_by=(Product.name,))
        assert [p.name for p in tools] == ["A", "C"]
        assert len(storage.query_all(Product)) == 3


def test_run_in_transaction_rolls_back_on_error(database):
    def _work(storage):
        storage.insert(_product("Doomed"))
        storage.insert(
            ProductMovement(product_id=1, quantity=1, date=datetime(2024, 1, 1), type=MovementType.INCOMING)
        )
        raise NotFound("nope")

    with pytest.raises(NotFound):
        database.run_in_transaction(_work)

    with database.read() as storage:
        assert storage.query_all(Product) == []
        assert storage.query_all(ProductMovement) == []


def test_run_in_transaction_returns_result(database):
    assert database.run_in_transaction(lambda storage: storage.insert(_product())) == 1


def test_close_and_reopen(database):
    database.run_in_transaction(lambda storage: storage.insert(_product()))

    database.close()
    assert not database.is_open
    with pytest.raises(ConnectionClosed):
        with database.read():
            pass
    with pytest.raises(ConnectionClosed):
        database.run_in_transaction(lambda storage: None)

    database.reopen()
    database.reopen()
    assert database.is_open
    with database.read() as storage:
        assert len(storage.query_all(Product)) == 1


def test_path(database, tmp_path):
    assert database.path == str(tmp_path / "inventory.db")


def test_in_memory_database_has_no_path():
    db = Database("sqlite://")
    try:
        assert db.path is None
    finally:
        db.close()


def test_close_refuses_new_work_while_draining(database):
    database.run_in_transaction(lambda storage: storage.insert(_product()))

    closer = threading.Thread(target=database.close)
    with database.read() as storage:
        closer.start()
        deadline = time.monotonic() + 5
        while not database._closing and time.monotonic() < deadline:
            time.sleep(0.01)
        assert database._closing

        # The in-flight read still works; new work is turned away
        assert len(storage.query_all(Product)) == 1
        with pytest.raises(ConnectionClosed):
            with database.read():
                pass
        assert closer.is_alive()

    closer.join(timeout=5)
    assert not closer.is_alive()
    assert not database.is_open

    database.reopen()
    with database.read() as storage:
        assert len(storage.query_all(Product)) == 1
