from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from billdesk.database import DocumentStore
from billdesk.dependencies import get_store
from billdesk.stock.products import schemas, service

router = APIRouter()


@router.post(
    "/",
    response_model=schemas.Product,
    status_code=status.HTTP_201_CREATED
)
async def create_product(
    product: schemas.ProductCreate,
    store: DocumentStore = Depends(get_store)
):
    return await service.create_product(store, product)


@router.get("/", response_model=List[schemas.Product])
async def list_products(
    category: Optional[str] = None,
    name: Optional[str] = None,
    stock_status: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    """
    stock_status: all / out / low / normal
    """
    return await service.get_products(store, category=category, name=name, status=stock_status)


@router.get("/categories", response_model=List[schemas.CategoryOption])
def list_categories():
    return schemas.PRODUCT_CATEGORIES


@router.post("/import", response_model=schemas.ProductImportResult)
async def import_products(
    file: UploadFile = File(...),
    store: DocumentStore = Depends(get_store)
):
    return await service.import_products_from_excel(store, file)


@router.get("/{product_id}", response_model=schemas.Product)
async def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return await service.get_product_by_id(store, product_id)


@router.put("/{product_id}", response_model=schemas.Product)
async def update_product(
    product_id: str,
    product: schemas.ProductUpdate,
    store: DocumentStore = Depends(get_store)
):
    return await service.update_product(store, product_id, product)


@router.delete("/{product_id}")
async def delete_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return await service.delete_product(store, product_id)
