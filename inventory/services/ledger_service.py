import logging
from datetime import datetime, timezone
from typing import Callable

from inventory.database import Database, Storage
from inventory.exceptions import InsufficientStock, NotFound, ValidationFailed
from inventory.models.product import Product
from inventory.models.product_movement import MovementType, ProductMovement
from inventory.schemas.product import ProductSave

logger = logging.getLogger(__name__)

INITIAL_STOCK_NOTE = "Initial stock entry"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _adjustment_note(units: int) -> str:
    return f"Stock adjusted by {units} units"


def _parse_movement_type(value: MovementType | str | None) -> MovementType | None:
    if value is None or value == "":
        return None
    try:
        return MovementType(value.upper() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationFailed(
            f"Unknown movement type '{value}'",
            errors={"type": "Expected one of: " + ", ".join(t.value for t in MovementType)},
        ) from None


class LedgerService:
    """Keeps product quantities and the movement ledger in step.

    Every quantity change goes through here and produces exactly one
    movement row, written in the same transaction as the product row.
    """

    def __init__(self, database: Database, clock: Callable[[], datetime] = _utcnow):
        self.database = database
        self.clock = clock

    # --- Connection lifecycle ---

    def close_connection(self) -> None:
        self.database.close()

    def reopen_connection(self) -> None:
        self.database.reopen()

    # --- Products ---

    def get_product(self, product_id: int) -> Product | None:
        with self.database.read() as storage:
            return storage.get(Product, product_id)

    def get_products(self) -> list[Product]:
        """Full product snapshot, newest first."""
        with self.database.read() as storage:
            return storage.query_all(Product, order_by=(Product.created_at.desc(), Product.id.desc()))

    def save_product(self, data: ProductSave) -> int:
        if data.is_new:
            return self.database.run_in_transaction(lambda storage: self._create(storage, data))
        return self.database.run_in_transaction(lambda storage: self._update(storage, data))

    def _create(self, storage: Storage, data: ProductSave) -> int:
        now = self.clock()
        product = Product(
            name=data.name,
            description=data.description,
            quantity=data.quantity,
            price=data.price,
            category=data.category,
            created_at=now,
        )
        product_id = storage.insert(product)

        # A zero opening balance has nothing to record
        if data.quantity > 0:
            self._append_movement(
                storage, product_id, MovementType.INCOMING, data.quantity, INITIAL_STOCK_NOTE, now
            )
        logger.info("Created product %d '%s' with opening stock %d", product_id, data.name, data.quantity)
        return product_id

    def _update(self, storage: Storage, data: ProductSave) -> int:
        product = storage.get(Product, data.id)
        if product is None:
            raise NotFound.product(data.id)

        difference = data.quantity - product.quantity
        if difference != 0:
            self._append_movement(
                storage,
                product.id,
                MovementType.INCOMING if difference > 0 else MovementType.OUTGOING,
                abs(difference),
                _adjustment_note(abs(difference)),
                self.clock(),
            )

        product.name = data.name
        product.description = data.description
        product.quantity = data.quantity
        product.price = data.price
        product.category = data.category
        storage.update(product)
        logger.info("Updated product %d (quantity change %+d)", product.id, difference)
        return product.id

    def register_output(self, product_id: int, quantity: int, notes: str = "") -> Product:
        """Take ``quantity`` units out of stock, recording why in ``notes``."""
        if quantity <= 0:
            raise ValidationFailed("Output quantity must be greater than 0", errors={"quantity": "must be > 0"})

        def _output(storage: Storage) -> Product:
            product = storage.get(Product, product_id)
            if product is None:
                raise NotFound.product(product_id)
            if product.quantity < quantity:
                logger.warning(
                    "Rejected output of %d from product %d: only %d in stock",
                    quantity, product_id, product.quantity,
                )
                raise InsufficientStock(product_id, product.quantity, quantity)

            product.quantity -= quantity
            storage.update(product)
            self._append_movement(storage, product_id, MovementType.OUTGOING, quantity, notes, self.clock())
            return product

        product = self.database.run_in_transaction(_output)
        logger.info("Registered output of %d from product %d, %d left", quantity, product_id, product.quantity)
        return product

    def delete_product(self, product_id: int) -> int:
        """Delete the product row. Its movements stay in the ledger as history."""

        def _delete(storage: Storage) -> int:
            product = storage.get(Product, product_id)
            if product is None:
                raise NotFound.product(product_id)
            return storage.delete(product)

        deleted = self.database.run_in_transaction(_delete)
        logger.info("Deleted product %d", product_id)
        return deleted

    def duplicate_product(self, product_id: int) -> ProductSave:
        """Unsaved copy of a product, to be edited and saved as a new one."""
        product = self.get_product(product_id)
        if product is None:
            raise NotFound.product(product_id)
        return ProductSave(
            name=f"{product.name} (Copy)",
            description=product.description,
            quantity=product.quantity,
            price=product.price,
            category=product.category,
        )

    # --- Movements ---

    def _append_movement(
        self,
        storage: Storage,
        product_id: int,
        movement_type: MovementType,
        quantity: int,
        notes: str,
        when: datetime,
    ) -> ProductMovement:
        movement = ProductMovement(
            product_id=product_id,
            quantity=quantity,
            date=when,
            type=movement_type,
            notes=notes or "",
        )
        storage.insert(movement)
        return movement

    def get_movements_for_product(self, product_id: int) -> list[ProductMovement]:
        with self.database.read() as storage:
            return storage.query_where(
                ProductMovement,
                ProductMovement.product_id == product_id,
                order_by=(ProductMovement.date.desc(), ProductMovement.id.desc()),
            )

    def get_all_movements(self, type_filter: MovementType | str | None = None) -> list[ProductMovement]:
        movement_type = _parse_movement_type(type_filter)
        order_by = (ProductMovement.date.desc(), ProductMovement.id.desc())
        with self.database.read() as storage:
            if movement_type is None:
                return storage.query_all(ProductMovement, order_by=order_by)
            return storage.query_where(ProductMovement, ProductMovement.type == movement_type, order_by=order_by)

    def ledger_balance(self, product_id: int) -> int:
        """Signed sum of a product's movements (INCOMING +, OUTGOING -)."""
        return sum(m.signed_quantity for m in self.get_movements_for_product(product_id))
