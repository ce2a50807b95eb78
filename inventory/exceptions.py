"""
Typed errors raised by the inventory core.

Every error carries a machine-readable ``code`` so the HTTP layer (or any
other caller) can map it to a response without parsing messages:

    InventoryError
    +-- NotFound             product id does not exist
    +-- InsufficientStock    output quantity exceeds current quantity
    +-- ValidationFailed     caller input rejected before reaching the ledger
    +-- ConnectionClosed     storage used while the connection is closed
    +-- StorageFailure       underlying database / file error (wraps the cause)
"""


class InventoryError(Exception):
    code: str = "INVENTORY_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFound(InventoryError):
    code = "NOT_FOUND"

    def __init__(self, message: str = "Product not found", product_id: int | None = None):
        self.product_id = product_id
        super().__init__(message)

    @classmethod
    def product(cls, product_id: int) -> "NotFound":
        return cls(f"Product {product_id} not found", product_id=product_id)


class InsufficientStock(InventoryError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock. Current: {available}, requested: {requested}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(product_id=self.product_id, available=self.available, requested=self.requested)
        return data


class ValidationFailed(InventoryError):
    code = "VALIDATION_FAILED"

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        self.errors = errors or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class ConnectionClosed(InventoryError):
    code = "CONNECTION_CLOSED"

    def __init__(self, message: str = "Database connection is closed"):
        super().__init__(message)


class StorageFailure(InventoryError):
    code = "STORAGE_FAILURE"
