from typing import Optional, List
from uuid import uuid4
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

LANDING_SETTINGS_ID = "landing_page_config"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_row_id() -> str:
    return str(uuid4())


class ProductRow(SQLModel, table=True):
    __tablename__ = "products"

    id: str = Field(default_factory=new_row_id, primary_key=True)
    name: str
    price: int  # paise
    original_price: Optional[int] = None  # paise
    category: str = Field(index=True)
    description: str = ""
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    sizes: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    colors: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    stock: int = 0
    featured: bool = False
    rating: float = 4.5
    review_count: int = 0
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    supports_feeding_friendly: bool = False
    is_stitched_dress: bool = False
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class LandingSettingsRow(SQLModel, table=True):
    __tablename__ = "landing_settings"

    id: str = Field(default=LANDING_SETTINGS_ID, primary_key=True)
    page_title: str = ""
    page_subtitle: Optional[str] = None
    banner_image_url: Optional[str] = None
    categories_list: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    hero_description: Optional[str] = None
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    show_featured_products: Optional[bool] = None
    show_categories: Optional[bool] = None
    top_banner_text: Optional[str] = None
    top_banner_active: Optional[bool] = None
    site_logo_url: Optional[str] = None
    site_name: Optional[str] = None
    best_selling_title: Optional[str] = None
    best_selling_product_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    trending_title: Optional[str] = None
    trending_product_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    popular_categories_title: Optional[str] = None
    popular_category_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    created_at: Optional[datetime] = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = Field(default_factory=utcnow)


class AdminUser(SQLModel, table=True):
    __tablename__ = "admin_users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow)
