"""Field rules applied to raw product input before it reaches the ledger."""
from decimal import Decimal, InvalidOperation

from pydantic import ValidationError

from inventory.exceptions import ValidationFailed
from inventory.schemas.product import CENT, MAX_PRICE, ProductSave


def _parse_quantity(text: str | int | None) -> int:
    if isinstance(text, int):
        value = text
    else:
        raw = (text or "").strip()
        if not raw:
            raise ValueError("Quantity is required")
        try:
            value = int(raw)
        except ValueError:
            raise ValueError("Quantity must be a whole number >= 0") from None
    if value < 0:
        raise ValueError("Quantity must be a whole number >= 0")
    return value


def _parse_price(text: str | Decimal | None) -> Decimal:
    if isinstance(text, Decimal):
        value = text
    else:
        raw = (text or "").strip()
        if not raw:
            raise ValueError("Price is required")
        if raw.count(".") > 1:
            raise ValueError("Price may contain at most one decimal point")
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise ValueError("Price must be a number >= 0") from None
    if not value.is_finite() or value < 0:
        raise ValueError("Price must be a number >= 0")
    if value > MAX_PRICE:
        raise ValueError("Price is too large")
    if value != value.quantize(CENT):
        raise ValueError("Price may have at most two decimal places")
    return value


def parse_product_form(
    name: str | None,
    description: str | None,
    quantity: str | int | None,
    price: str | Decimal | None,
    category: str | None,
    product_id: int = 0,
) -> ProductSave:
    """Build a ``ProductSave`` from form text, reporting every bad field at once."""
    errors: dict[str, str] = {}

    if not name or not name.strip():
        errors["name"] = "Name is required"

    parsed_quantity = 0
    try:
        parsed_quantity = _parse_quantity(quantity)
    except ValueError as e:
        errors["quantity"] = str(e)

    parsed_price = Decimal("0")
    try:
        parsed_price = _parse_price(price)
    except ValueError as e:
        errors["price"] = str(e)

    if errors:
        raise ValidationFailed("Please correct the invalid fields", errors=errors)

    return ProductSave(
        id=product_id,
        name=name,
        description=description,
        quantity=parsed_quantity,
        price=parsed_price,
        category=category,
    )


def validate_product(data: dict) -> ProductSave:
    """Validate a mapping of typed fields, converting pydantic errors to ``ValidationFailed``."""
    try:
        return ProductSave.model_validate(data)
    except ValidationError as e:
        errors = {".".join(str(p) for p in err["loc"]) or "product": err["msg"] for err in e.errors()}
        raise ValidationFailed("Invalid product data", errors=errors) from e
