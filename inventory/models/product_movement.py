from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory.database import Base


class MovementType(str, PyEnum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"


class ProductMovement(Base):
    """Append-only ledger entry for one stock change."""

    __tablename__ = "product_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: movements outlive the product they belong to
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)  # always > 0
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    notes: Mapped[str] = mapped_column(Text, default="")

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.type == MovementType.INCOMING else -self.quantity
