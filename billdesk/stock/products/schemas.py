from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # documents and API payloads use camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------------
# Category
# -------------------------------
class ProductCategory(CamelModel):
    name: str
    sub_categories: List[str] = []


class CategoryOption(CamelModel):
    category: str
    subcategory: List[str]
    prefix: str


PRODUCT_CATEGORIES: List[CategoryOption] = [
    CategoryOption(
        category="Etables",
        subcategory=[
            "Staple Foods", "Spices and Condiments", "Edible Oils and Ghee",
            "Beverages", "Snacks and Namkeen", "Dairy Products", "Packaged Foods",
        ],
        prefix="EAT",
    ),
    CategoryOption(
        category="Clothes & Garments",
        subcategory=["Men's Wear", "Women's Wear", "Kids' Wear", "Winter Wear", "Traditional Wear"],
        prefix="CLO",
    ),
    CategoryOption(
        category="Electronics",
        subcategory=["Mobile Phones", "Laptops", "Televisions", "Cameras", "Audio Systems"],
        prefix="TEC",
    ),
    CategoryOption(
        category="Werables",
        subcategory=["Watches", "Fitness Bands", "Smartwatches", "Jewelry", "Accessories"],
        prefix="WER",
    ),
    CategoryOption(
        category="Furniture",
        subcategory=[
            "Living Room Furniture", "Bedroom Furniture", "Office Furniture",
            "Outdoor Furniture", "Storage Furniture",
        ],
        prefix="FUR",
    ),
    CategoryOption(
        category="Kitchenware",
        subcategory=[
            "Household Cleaning Items", "Cookware", "Bakeware",
            "Kitchen Tools", "Tableware", "Storage Containers",
        ],
        prefix="KIT",
    ),
    CategoryOption(
        category="Hardware & Bathware",
        subcategory=[
            "Toiletries", "Household Supplies", "Stationery", "Gardening Tools",
            "Bathroom Accessories", "Plumbing Supplies", "Electrical Supplies",
            "Paint and Painting Supplies",
        ],
        prefix="HAR",
    ),
    CategoryOption(
        category="Personal Care Products",
        subcategory=[
            "Cosmetics", "Skin Care Products", "Hair Care Products", "Oral Care Products",
            "Fragrances", "Bath and Body Products", "Health and Wellness Products",
        ],
        prefix="PER",
    ),
]


# -------------------------------
# Product record (as stored)
# -------------------------------
class Product(CamelModel):
    product_id: str
    product_code: str
    name: str
    selling_price: float
    cost_price: float = 0
    mrp_price: float = 0
    category: ProductCategory
    quantity: int = 0
    dealer_name: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None


# -------------------------------
# Create
# -------------------------------
class ProductCreate(CamelModel):
    product_code: Optional[str] = None   # generated when omitted
    name: str = Field(min_length=1)
    selling_price: float = Field(ge=0)
    cost_price: float = Field(default=0, ge=0)
    mrp_price: float = Field(default=0, ge=0)
    category: ProductCategory
    quantity: int = Field(default=0, ge=0)
    dealer_name: str = ""
    size: Optional[str] = None
    color: Optional[str] = None


# -------------------------------
# Update
# -------------------------------
class ProductUpdate(CamelModel):
    product_code: Optional[str] = None
    name: Optional[str] = None
    selling_price: Optional[float] = Field(default=None, ge=0)
    cost_price: Optional[float] = Field(default=None, ge=0)
    mrp_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[ProductCategory] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    dealer_name: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ProductImportResult(BaseModel):
    message: str
    imported: int
    skipped: int
