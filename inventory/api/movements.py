from fastapi import APIRouter, Depends, Query

from inventory.api.deps import get_ledger
from inventory.schemas.product import MovementOut
from inventory.services.ledger_service import LedgerService

router = APIRouter(prefix="/movements", tags=["Movements"])


@router.get("", response_model=list[MovementOut])
def list_movements(
    type: str | None = Query(None, description="INCOMING or OUTGOING; empty for all"),
    product_id: int | None = None,
    ledger: LedgerService = Depends(get_ledger),
):
    movements = ledger.get_all_movements(type)
    # Also works for deleted products, whose movements are kept
    if product_id is not None:
        movements = [m for m in movements if m.product_id == product_id]
    return movements
