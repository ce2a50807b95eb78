from decimal import Decimal
from typing import Sequence

from inventory.models.product import Product
from inventory.models.product_movement import MovementType, ProductMovement


def inventory_summary(
    products: Sequence[Product], movements: Sequence[ProductMovement], low_stock_threshold: int = 5
) -> dict:
    total_units = sum(p.quantity for p in products)
    total_value = sum((p.total_value for p in products), Decimal("0"))
    low_stock = [p for p in products if p.quantity <= low_stock_threshold]

    return {
        "total_products": len(products),
        "total_units_in_stock": total_units,
        "total_inventory_value": round(float(total_value), 2),
        "low_stock_threshold": low_stock_threshold,
        "low_stock_count": len(low_stock),
        "low_stock_items": [
            {"id": p.id, "name": p.name, "quantity": p.quantity} for p in low_stock
        ],
        "by_category": _group_by_category(products),
        "movements": _movement_totals(movements),
    }


def _group_by_category(products: Sequence[Product]) -> list[dict]:
    cats: dict[str, dict] = {}
    for p in products:
        cat = p.display_category
        if cat not in cats:
            cats[cat] = {"category": cat, "product_count": 0, "total_units": 0, "total_value": Decimal("0")}
        cats[cat]["product_count"] += 1
        cats[cat]["total_units"] += p.quantity
        cats[cat]["total_value"] += p.total_value
    for v in cats.values():
        v["total_value"] = round(float(v["total_value"]), 2)
    return sorted(cats.values(), key=lambda c: c["category"])


def _movement_totals(movements: Sequence[ProductMovement]) -> dict:
    incoming = sum(m.quantity for m in movements if m.type == MovementType.INCOMING)
    outgoing = sum(m.quantity for m in movements if m.type == MovementType.OUTGOING)
    return {
        "count": len(movements),
        "incoming_units": incoming,
        "outgoing_units": outgoing,
        "net_units": incoming - outgoing,
    }


def inventory_movement(
    movements: Sequence[ProductMovement], product_id: int | None = None, limit: int = 50
) -> list[dict]:
    """Most recent movements first (input is already ordered by date)."""
    if product_id is not None:
        movements = [m for m in movements if m.product_id == product_id]

    return [
        {
            "id": m.id,
            "product_id": m.product_id,
            "type": m.type.value,
            "quantity": m.quantity,
            "change": m.signed_quantity,
            "notes": m.notes,
            "date": m.date.isoformat() if m.date else None,
        }
        for m in movements[:limit]
    ]
