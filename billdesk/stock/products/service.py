import random
import re
import uuid
from datetime import datetime
from typing import List, Optional

import pandas as pd
import pytz
from fastapi import HTTPException, UploadFile
from loguru import logger
from pydantic import ValidationError

from billdesk.config import settings
from billdesk.database import DocumentStore, decode, encode
from billdesk.errors import DuplicateProduct, InvalidUpdate, NotFound
from billdesk.stock.products import schemas
from billdesk.stock.products.schemas import Product

PRODUCTS = "products"

PRODUCT_CODE_LENGTH = 12


def generate_product_code() -> str:
    return "".join(random.choice("0123456789") for _ in range(PRODUCT_CODE_LENGTH))


def generate_product_id() -> str:
    return uuid.uuid4().hex


def stock_status(quantity: int, threshold: Optional[int] = None) -> str:
    threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    if quantity <= 0:
        return "out"
    if quantity <= threshold:
        return "low"
    return "normal"


async def _code_taken(store: DocumentStore, code: str, exclude_id: Optional[str] = None) -> bool:
    matches = await store.query(PRODUCTS, [("productCode", "==", code)])
    return any(m.get("productId") != exclude_id for m in matches)


async def create_product(store: DocumentStore, product: schemas.ProductCreate) -> Product:
    code = product.product_code.strip() if product.product_code else None

    if code:
        if await _code_taken(store, code):
            raise DuplicateProduct(code)
    else:
        code = generate_product_code()
        while await _code_taken(store, code):
            code = generate_product_code()

    db_product = Product(
        product_id=generate_product_id(),
        product_code=code,
        name=product.name.strip(),
        selling_price=product.selling_price,
        cost_price=product.cost_price,
        mrp_price=product.mrp_price,
        category=product.category,
        quantity=product.quantity,
        dealer_name=product.dealer_name.strip(),
        size=product.size,
        color=product.color,
        created_at=datetime.now(pytz.timezone(settings.TIMEZONE)),
    )

    await store.set(PRODUCTS, db_product.product_id, encode(db_product))
    logger.info(f"Product created: {db_product.product_code} ({db_product.name})")

    return db_product


async def get_products(
    store: DocumentStore,
    category: Optional[str] = None,
    name: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Product]:
    docs = await store.query(PRODUCTS, order_by="createdAt", descending=True)
    products = [decode(Product, d, PRODUCTS) for d in docs]

    if category:
        wanted = category.lower().strip()
        products = [p for p in products if p.category.name.lower() == wanted]

    if name:
        term = name.lower().strip()
        products = [
            p for p in products
            if term in p.name.lower() or term in p.product_code.lower()
        ]

    if status and status != "all":
        products = [p for p in products if stock_status(p.quantity) == status]

    return products


async def get_product_by_id(store: DocumentStore, product_id: str) -> Product:
    doc = await store.get(PRODUCTS, product_id)
    if doc is None:
        raise NotFound(f"Product {product_id} not found")
    return decode(Product, doc, PRODUCTS)


async def update_product(
    store: DocumentStore,
    product_id: str,
    product: schemas.ProductUpdate,
) -> Product:
    db_product = await get_product_by_id(store, product_id)

    update_data = product.model_dump(exclude_unset=True)

    # -----------------------
    # Duplicate protection
    # -----------------------
    new_code = update_data.get("product_code")
    if new_code and new_code != db_product.product_code:
        if await _code_taken(store, new_code, exclude_id=product_id):
            raise DuplicateProduct(new_code)

    try:
        updated = Product.model_validate({**db_product.model_dump(), **update_data})
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise InvalidUpdate(f"Invalid value for: {', '.join(fields)}") from e

    await store.set(PRODUCTS, product_id, encode(updated))
    return updated


async def delete_product(store: DocumentStore, product_id: str):
    deleted = await store.delete(PRODUCTS, product_id)
    if not deleted:
        raise NotFound(f"Product {product_id} not found")
    logger.info(f"Product deleted: {product_id}")
    return {"message": "Product deleted successfully"}


# --------------------------------------------------
# Helper: Clean price values from Excel
# --------------------------------------------------
def clean_price(value):
    """
    Accepts: int, float, str (₹1,200.50), or NaN
    Returns: float
    """
    if value is None or pd.isna(value):
        return 0.0

    if isinstance(value, (int, float)):
        return float(value)

    # If string → remove currency symbols & commas
    value = str(value)
    value = re.sub(r"[^\d.]", "", value)

    try:
        return float(value)
    except ValueError:
        return 0.0


def _text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


async def import_products_from_excel(store: DocumentStore, file: UploadFile):
    if not file.filename or not file.filename.lower().endswith((".xlsx", ".xls")):
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Upload .xlsx or .xls"
        )

    try:
        df = pd.read_excel(file.file)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Could not read Excel file: {e}")

    required_columns = {"name", "category", "selling_price"}

    # Normalize column names (important!)
    df.columns = [str(c).strip().lower() for c in df.columns]

    if not required_columns.issubset(df.columns):
        raise HTTPException(
            status_code=400,
            detail=f"Excel must contain columns: {sorted(required_columns)}"
        )

    existing_codes = {
        d.get("productCode") for d in await store.query(PRODUCTS)
    }

    imported = 0
    skipped = 0

    for _, row in df.iterrows():
        name = _text(row["name"])
        category = _text(row["category"])
        if not name or not category:
            skipped += 1
            continue

        code = _text(row.get("product_code")) if "product_code" in df.columns else None
        if code and code in existing_codes:
            skipped += 1
            continue

        quantity = row.get("quantity") if "quantity" in df.columns else 0
        quantity = 0 if quantity is None or pd.isna(quantity) else max(0, int(quantity))

        product = await create_product(
            store,
            schemas.ProductCreate(
                product_code=code,
                name=name,
                selling_price=clean_price(row["selling_price"]),
                cost_price=clean_price(row.get("cost_price")) if "cost_price" in df.columns else 0,
                mrp_price=clean_price(row.get("mrp_price")) if "mrp_price" in df.columns else 0,
                category=schemas.ProductCategory(name=category),
                quantity=quantity,
                dealer_name=(_text(row.get("dealer_name")) if "dealer_name" in df.columns else None) or "",
            ),
        )
        existing_codes.add(product.product_code)
        imported += 1

    if not imported:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Import unsuccessful",
                "imported": 0,
                "skipped": skipped,
                "reason": "All rows were invalid or duplicated"
            }
        )

    logger.info(f"Imported {imported} products from {file.filename} ({skipped} skipped)")

    return schemas.ProductImportResult(
        message="Import completed successfully",
        imported=imported,
        skipped=skipped,
    )
