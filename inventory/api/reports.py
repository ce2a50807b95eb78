from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from inventory.api.deps import get_ledger
from inventory.config import settings
from inventory.services import export_service, report_service
from inventory.services.ledger_service import LedgerService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory")
def inventory_report(ledger: LedgerService = Depends(get_ledger)):
    return report_service.inventory_summary(
        ledger.get_products(),
        ledger.get_all_movements(),
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
    )


@router.get("/inventory-movement")
def inventory_movement_report(
    product_id: int | None = None,
    limit: int = 50,
    ledger: LedgerService = Depends(get_ledger),
):
    return report_service.inventory_movement(ledger.get_all_movements(), product_id=product_id, limit=limit)


@router.get("/export")
def export_products(ledger: LedgerService = Depends(get_ledger)):
    """Full product list as CSV, regardless of any listing filter."""
    content = export_service.export_csv(ledger.get_products())
    filename = export_service.export_filename(datetime.now())
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
