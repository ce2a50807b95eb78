from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory.database import Base

NO_CATEGORY = "No category"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    category: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @property
    def total_value(self) -> Decimal:
        return self.quantity * Decimal(self.price or 0)

    @property
    def display_category(self) -> str:
        # Blank categories are shown with a label that is never stored
        return self.category if self.category and self.category.strip() else NO_CATEGORY
