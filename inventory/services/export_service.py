import csv
import io
from typing import Sequence

from inventory.models.product import Product

EXPORT_COLUMNS = ["id", "name", "description", "quantity", "price", "category", "created_at"]


def export_rows(products: Sequence[Product]) -> list[list]:
    """Every product, unfiltered, in the order given. Blank fields export as empty cells."""
    return [
        [
            p.id,
            p.name,
            p.description or "",
            p.quantity,
            f"{p.price:.2f}",
            p.category or "",
            p.created_at.isoformat() if p.created_at else "",
        ]
        for p in products
    ]


def export_csv(products: Sequence[Product]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(export_rows(products))
    return buf.getvalue()


def export_filename(now) -> str:
    return f"Inventory_{now:%Y%m%d_%H%M%S}.csv"
