"""
View models for looom.shop

These are the shapes the storefront and the admin panel work with. Python
attributes are snake_case; JSON uses camelCase (``inStock``, ``sortOrder``).
Database rows live in ``models.py`` and are mapped by the services.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

OrderStatus = Literal["pending", "confirmed", "packed", "shipped", "delivered", "cancelled"]
PaymentMethodType = Literal["cod", "upi", "card", "netbanking", "wallet", "razorpay"]
PaymentStatus = Literal["pending", "processing", "completed", "failed", "refunded"]
LinkType = Literal["category", "collection", "external", "none"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Catalog ----------

class ProductFields(CamelModel):
    original_price: Optional[float] = Field(None, gt=0, description="Price before discount, in rupees")
    description: str = ""
    images: List[str] = Field(default_factory=list, description="Ordered image URLs")
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    in_stock: bool = True
    featured: bool = False
    rating: float = Field(4.5, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    tags: List[str] = Field(default_factory=list)
    supports_feeding_friendly: bool = False
    is_stitched_dress: bool = False


class ProductDraft(ProductFields):
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, description="Price in rupees")
    category: str = Field(..., min_length=1, description="Category name, not an id")


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    original_price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    images: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)
    tags: Optional[List[str]] = None
    supports_feeding_friendly: Optional[bool] = None
    is_stitched_dress: Optional[bool] = None


class Product(ProductDraft):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Category(CamelModel):
    id: str = ""
    name: str = Field(..., min_length=1)
    slug: str = ""
    description: str = ""
    auto_description: Optional[str] = Field(None, description="Template text for new products in this category")
    image: str = ""
    icon: str = ""
    color: str = ""
    is_active: bool = True
    level: int = Field(0, ge=0)
    parent_id: Optional[str] = None
    sort_order: int = 1
    product_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryNode(Category):
    children: List["CategoryNode"] = Field(default_factory=list)


CategoryNode.model_rebuild()


class ThemeColors(CamelModel):
    primary: str = "#8B5CF6"
    secondary: str = "#EC4899"
    accent: str = "#F59E0B"
    background: str = "#FFFFFF"
    text: str = "#1F2937"


class ThemeSettings(CamelModel):
    show_banner: bool = True
    show_countdown: bool = False
    enable_special_offers: bool = False
    custom_css: Optional[str] = None


class Theme(CamelModel):
    id: str = ""
    name: str = Field(..., min_length=1)
    slug: str = ""
    description: str = ""
    image: str = ""
    banner_image: Optional[str] = None
    icon: str = ""
    colors: ThemeColors = Field(default_factory=ThemeColors)
    is_active: bool = False
    is_default: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_order: int = 0
    settings: ThemeSettings = Field(default_factory=ThemeSettings)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Story(CamelModel):
    id: str = ""
    title: str = Field(..., min_length=1)
    subtitle: Optional[str] = None
    image: str = ""
    gradient: str = Field("from-purple-600 to-pink-600", description="Named visual style")
    is_active: bool = True
    sort_order: int = 0
    link_type: LinkType = "none"
    link_value: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BannerDiscount(CamelModel):
    percentage: int = Field(..., ge=0, le=100)
    original_text: str = ""
    highlight_text: str = ""


class Banner(Story):
    description: Optional[str] = None
    background_image: Optional[str] = None
    text_color: str = "text-white"
    button_text: str = "Shop Now"
    button_color: str = "bg-white text-purple-600"
    banner_type: Literal["hero", "promotional", "seasonal", "announcement"] = "promotional"
    height: Literal["small", "medium", "large"] = "medium"
    position: Literal["top", "middle", "bottom"] = "top"
    show_icon: bool = False
    icon: Optional[str] = None
    discount: Optional[BannerDiscount] = None


class LandingSettings(CamelModel):
    id: str = "landing_page_config"
    page_title: str = ""
    page_subtitle: Optional[str] = None
    banner_image_url: Optional[str] = None
    categories_list: List[str] = Field(default_factory=list)
    hero_description: Optional[str] = None
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    show_featured_products: bool = True
    show_categories: bool = True
    top_banner_text: Optional[str] = None
    top_banner_active: bool = False
    site_logo_url: Optional[str] = None
    site_name: Optional[str] = None
    best_selling_title: Optional[str] = None
    best_selling_product_ids: List[str] = Field(default_factory=list)
    trending_title: Optional[str] = None
    trending_product_ids: List[str] = Field(default_factory=list)
    popular_categories_title: Optional[str] = None
    popular_category_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LandingSettingsUpdate(CamelModel):
    page_title: Optional[str] = None
    page_subtitle: Optional[str] = None
    banner_image_url: Optional[str] = None
    categories_list: Optional[List[str]] = None
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
    best_selling_product_ids: Optional[List[str]] = None
    trending_title: Optional[str] = None
    trending_product_ids: Optional[List[str]] = None
    popular_categories_title: Optional[str] = None
    popular_category_ids: Optional[List[str]] = None


class Filter(CamelModel):
    category: List[str] = Field(default_factory=list)
    price_range: Tuple[float, float] = (0, 10000)
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    in_stock: bool = False


# ---------- Cart & orders ----------

class CartItem(CamelModel):
    product: Product
    quantity: int = Field(1, ge=1)
    selected_size: str = ""
    selected_color: str = ""

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.product.id, self.selected_size, self.selected_color)


class Address(CamelModel):
    id: Optional[str] = None
    type: Optional[Literal["home", "office", "other"]] = None
    name: Optional[str] = None
    street: str
    city: str
    state: str
    pincode: str
    landmark: Optional[str] = None
    phone: Optional[str] = None
    is_default: bool = False


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    timestamp: datetime
    location: Optional[str] = None
    notes: Optional[str] = None


class OrderDraft(CamelModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: str = ""
    items: List[CartItem] = Field(..., min_length=1, description="Snapshot of the cart at purchase time")
    total: float = Field(..., ge=0)
    status: OrderStatus = "pending"
    address: Address
    payment_method: PaymentMethodType = "cod"
    payment_status: PaymentStatus = "pending"
    payment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class Order(OrderDraft):
    id: str
    created_at: datetime
    updated_at: datetime
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    status_history: List[OrderStatusUpdate] = Field(default_factory=list)


class CheckoutSummary(CamelModel):
    subtotal: float
    shipping: float
    tax: float
    total: float


class PaymentDraft(CamelModel):
    amount: float = Field(..., ge=0)
    currency: str = "INR"
    method: PaymentMethodType
    status: Literal["created", "authorized", "captured", "refunded", "failed"] = "created"
    transaction_id: Optional[str] = None
    error_description: Optional[str] = None


class PaymentRecord(PaymentDraft):
    id: str = ""
    order_id: str
    created_at: Optional[datetime] = None


# ---------- Customers ----------

class UserPreferences(CamelModel):
    newsletter: bool = True
    sms_updates: bool = True
    email_updates: bool = True
    favorite_categories: List[str] = Field(default_factory=list)


class User(CamelModel):
    id: str
    name: str
    email: str
    phone: str = ""
    addresses: List[Address] = Field(default_factory=list)
    role: Literal["customer", "admin"] = "customer"
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    loyalty_points: int = 0
    total_orders: int = 0
    total_spent: float = 0
    joined_at: datetime
    last_login_at: Optional[datetime] = None
    is_verified: bool = False
    wishlist: List[str] = Field(default_factory=list, description="Product ids")


class SignupData(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = ""
    password: str = Field(..., min_length=1)
    confirm_password: str


class NotificationDraft(CamelModel):
    type: Literal["order", "promotion", "system", "delivery", "payment"] = "system"
    title: str
    message: str
    is_read: bool = False
    action_url: Optional[str] = None
    order_id: Optional[str] = None


class Notification(NotificationDraft):
    id: str
    created_at: datetime


# ---------- Admin ----------

class DashboardStats(CamelModel):
    today_orders: int = 0
    today_revenue: float = 0
    total_products: int = 0
    low_stock_items: int = 0
    recent_orders: List[Order] = Field(default_factory=list)
    orders_by_status: Dict[str, int] = Field(default_factory=dict)
    total_payments: int = 0
    today_payments: int = 0
    successful_payments: int = 0
    failed_payments: int = 0
    total_refunds: int = 0
