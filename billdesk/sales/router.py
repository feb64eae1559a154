from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from billdesk.config import settings
from billdesk.database import DocumentStore
from billdesk.dependencies import get_store, get_terminal, get_terminals
from billdesk.sales import schemas, service
from billdesk.sales.terminal import Terminal, TerminalRegistry
from billdesk.stock.products import service as product_service

router = APIRouter()


# ==============================
# ---------- Cart ----------
# ==============================
@router.get("/terminals/{terminal_id}/cart", response_model=schemas.CartOut)
async def view_cart(terminal: Terminal = Depends(get_terminal)):
    return service.cart_view(terminal)


@router.get("/gst-rates", response_model=List[float])
def list_gst_rates():
    """
    Rates offered at the counter. Any non-negative rate is still accepted.
    """
    return settings.ALLOWED_GST_RATES


@router.post("/terminals/{terminal_id}/cart/scan", response_model=schemas.CartOut)
async def scan_product(
    payload: schemas.ScanRequest,
    terminal: Terminal = Depends(get_terminal),
):
    """
    Add one unit by product code (barcode scan or typed code).
    """
    terminal.cart.add_by_code(payload.product_code.strip())
    return service.cart_view(terminal)


@router.post("/terminals/{terminal_id}/cart/items", response_model=schemas.CartOut)
async def add_product(
    payload: schemas.AddProductRequest,
    terminal: Terminal = Depends(get_terminal),
):
    """
    Add one unit of a product picked from search / quick select.
    """
    product = await product_service.get_product_by_id(terminal.store, payload.product_id)
    terminal.cart.add_by_product(product)
    return service.cart_view(terminal)


@router.patch("/terminals/{terminal_id}/cart/items/{product_code}/delta", response_model=schemas.CartOut)
async def change_quantity(
    product_code: str,
    payload: schemas.QuantityDelta,
    terminal: Terminal = Depends(get_terminal),
):
    warning = terminal.cart.set_quantity_delta(product_code, payload.delta)
    return service.cart_view(terminal, warning)


@router.put("/terminals/{terminal_id}/cart/items/{product_code}", response_model=schemas.CartOut)
async def set_quantity(
    product_code: str,
    payload: schemas.QuantitySet,
    terminal: Terminal = Depends(get_terminal),
):
    terminal.cart.set_quantity(product_code, payload.quantity)
    return service.cart_view(terminal)


@router.delete("/terminals/{terminal_id}/cart/items/{product_code}", response_model=schemas.CartOut)
async def remove_item(product_code: str, terminal: Terminal = Depends(get_terminal)):
    terminal.cart.remove(product_code)
    return service.cart_view(terminal)


@router.delete("/terminals/{terminal_id}/cart", response_model=schemas.CartOut)
async def clear_cart(terminal: Terminal = Depends(get_terminal)):
    terminal.cart.clear()
    return service.cart_view(terminal)


@router.put("/terminals/{terminal_id}/cart/gst", response_model=schemas.CartOut)
async def set_gst(
    payload: schemas.GstUpdate,
    terminal: Terminal = Depends(get_terminal),
):
    terminal.cart.set_gst_percentage(payload.gst_percentage)
    return service.cart_view(terminal)


@router.post("/terminals/{terminal_id}/catalog/refresh", response_model=schemas.CartOut)
async def refresh_catalog(terminal: Terminal = Depends(get_terminal)):
    await terminal.catalog.refresh()
    return service.cart_view(terminal)


@router.delete("/terminals/{terminal_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_terminal(terminal_id: str, terminals: TerminalRegistry = Depends(get_terminals)):
    terminals.drop(terminal_id)


@router.post(
    "/terminals/{terminal_id}/checkout",
    response_model=schemas.CheckoutOut,
    status_code=status.HTTP_201_CREATED,
)
async def checkout(
    payload: schemas.CheckoutRequest,
    terminal: Terminal = Depends(get_terminal),
):
    """
    Create the bill for the terminal's cart, then deduct stock.
    A stock update failure does not undo the bill; it is reported in failedCodes.
    """
    return await service.checkout(
        terminal,
        schemas.CustomerInfo(
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
        ),
        payload.payment_method,
    )


# ==============================
# ---------- Bills ----------
# ==============================
@router.get("/bills", response_model=List[schemas.Bill])
async def list_bills(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_return: Optional[bool] = None,
    customer_name: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    store: DocumentStore = Depends(get_store),
):
    return await service.list_bills(
        store,
        start_date=start_date,
        end_date=end_date,
        is_return=is_return,
        customer_name=customer_name,
        skip=skip,
        limit=limit,
    )


@router.get("/bills/{bill_id}", response_model=schemas.Bill)
async def get_bill(bill_id: str, store: DocumentStore = Depends(get_store)):
    return await service.get_bill(store, bill_id)


@router.get("/bills/{bill_id}/returns", response_model=List[schemas.Bill])
async def list_bill_returns(bill_id: str, store: DocumentStore = Depends(get_store)):
    return await service.returns_for_bill(store, bill_id)


@router.post(
    "/bills/{bill_id}/returns",
    response_model=schemas.Bill,
    status_code=status.HTTP_201_CREATED,
)
async def create_return(
    bill_id: str,
    payload: schemas.ReturnRequest,
    terminal_id: str = "returns",
    terminals: TerminalRegistry = Depends(get_terminals),
):
    """
    Return part or all of a sale bill. Stock is restocked before the
    return bill is written; if restocking fails no return bill exists.
    """
    return await service.process_return(terminals.get(terminal_id), bill_id, payload.quantities)
