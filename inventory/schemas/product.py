from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from inventory.models.product_movement import MovementType

CENT = Decimal("0.01")
# Largest price that fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")


# --- Product schemas ---

class ProductFields(BaseModel):
    name: str
    description: str | None = None
    quantity: int = 0
    price: Decimal = Decimal("0")
    category: str | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Quantity must be a whole number >= 0")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def price_single_separator(cls, v):
        if isinstance(v, str) and v.count(".") > 1:
            raise ValueError("Price may contain at most one decimal point")
        return v

    @field_validator("price")
    @classmethod
    def price_in_range(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price must be >= 0")
        if v > MAX_PRICE:
            raise ValueError("Price is too large")
        if v != v.quantize(CENT):
            raise ValueError("Price may have at most two decimal places")
        return v


class ProductSave(ProductFields):
    """A product as submitted for saving. ``id == 0`` creates a new product."""

    id: int = 0

    @property
    def is_new(self) -> bool:
        return not self.id


class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None
    quantity: int
    price: Decimal
    category: str | None
    display_category: str
    total_value: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


# --- Movement schemas ---

class MovementOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    date: datetime
    type: MovementType
    notes: str

    model_config = {"from_attributes": True}


class OutputRegister(BaseModel):
    quantity: int
    notes: str = ""


class ProductMovementsOut(BaseModel):
    product: ProductOut
    movements: list[MovementOut]


# --- Listing schemas ---

class ProductListingOut(BaseModel):
    items: list[ProductOut]
    categories: list[str]
    search: str
    category: str
    current_page: int
    total_pages: int
    page_size: int
    total_count: int
    has_previous: bool
    has_next: bool
    page_label: str


class RestoreRequest(BaseModel):
    path: str
