from fastapi import APIRouter, Depends, Response

from inventory.api.deps import get_ledger
from inventory.config import settings
from inventory.exceptions import NotFound
from inventory.schemas.product import (
    MovementOut,
    OutputRegister,
    ProductFields,
    ProductListingOut,
    ProductMovementsOut,
    ProductOut,
    ProductSave,
)
from inventory.services.catalog_service import ListingState, build_listing, derive_categories
from inventory.services.ledger_service import LedgerService

router = APIRouter(prefix="/products", tags=["Products"])


def _load(ledger: LedgerService, product_id: int):
    product = ledger.get_product(product_id)
    if not product:
        raise NotFound.product(product_id)
    return product


@router.post("", response_model=ProductOut, status_code=201)
def create_product(data: ProductFields, ledger: LedgerService = Depends(get_ledger)):
    product_id = ledger.save_product(ProductSave(**data.model_dump()))
    return _load(ledger, product_id)


@router.get("", response_model=ProductListingOut)
def list_products(
    search: str = "",
    category: str = "",
    page: int = 1,
    page_size: int | None = None,
    ledger: LedgerService = Depends(get_ledger),
):
    snapshot = ledger.get_products()
    state = ListingState(
        search=search,
        category=category,
        page_size=settings.DEFAULT_PAGE_SIZE if page_size is None else page_size,
        current_page=page,
    )
    listing = build_listing(snapshot, state)
    return ProductListingOut(
        items=[ProductOut.model_validate(p) for p in listing.items],
        categories=listing.categories,
        search=listing.state.search,
        category=listing.state.category,
        current_page=listing.page.current_page,
        total_pages=listing.page.total_pages,
        page_size=listing.page.page_size,
        total_count=listing.page.total_count,
        has_previous=listing.page.has_previous,
        has_next=listing.page.has_next,
        page_label=listing.page.label,
    )


@router.get("/categories", response_model=list[str])
def list_categories(ledger: LedgerService = Depends(get_ledger)):
    return derive_categories(ledger.get_products())


@router.get("/page-sizes", response_model=list[int])
def page_sizes():
    return settings.PAGE_SIZE_OPTIONS


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, ledger: LedgerService = Depends(get_ledger)):
    return _load(ledger, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, data: ProductFields, ledger: LedgerService = Depends(get_ledger)):
    ledger.save_product(ProductSave(id=product_id, **data.model_dump()))
    return _load(ledger, product_id)


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, ledger: LedgerService = Depends(get_ledger)):
    ledger.delete_product(product_id)
    return Response(status_code=204)


@router.post("/{product_id}/duplicate", response_model=ProductSave)
def duplicate_product(product_id: int, ledger: LedgerService = Depends(get_ledger)):
    """Draft copy for the create form; nothing is saved."""
    return ledger.duplicate_product(product_id)


@router.post("/{product_id}/output", response_model=ProductOut)
def register_output(product_id: int, data: OutputRegister, ledger: LedgerService = Depends(get_ledger)):
    return ledger.register_output(product_id, data.quantity, data.notes)


@router.get("/{product_id}/movements", response_model=ProductMovementsOut)
def product_movements(product_id: int, ledger: LedgerService = Depends(get_ledger)):
    product = _load(ledger, product_id)
    return ProductMovementsOut(
        product=ProductOut.model_validate(product),
        movements=[MovementOut.model_validate(m) for m in ledger.get_movements_for_product(product_id)],
    )
