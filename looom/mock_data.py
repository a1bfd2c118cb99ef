"""Static catalog used in demo mode and whenever the backend cannot be read."""
from datetime import datetime, timezone

from .schemas import (
    Banner,
    BannerDiscount,
    Category,
    LandingSettings,
    Product,
    Story,
    Theme,
    ThemeColors,
    ThemeSettings,
)

PLACEHOLDER_IMAGE = "https://images.pexels.com/photos/8193085/pexels-photo-8193085.jpeg"

_SEEDED = datetime(2024, 1, 1, tzinfo=timezone.utc)

_PRODUCTS = [
    dict(
        id="1",
        name="Pochampally Ikkat Silk Saree",
        price=4599,
        original_price=6999,
        category="Sarees",
        description="Double ikkat silk saree handwoven in Pochampally with a contrast pallu.",
        images=[
            "https://images.pexels.com/photos/8193085/pexels-photo-8193085.jpeg",
            "https://images.pexels.com/photos/7679720/pexels-photo-7679720.jpeg",
        ],
        sizes=["Free Size"],
        colors=["Maroon", "Mustard"],
        featured=True,
        rating=4.8,
        review_count=124,
        tags=["silk", "ikkat", "festive"],
    ),
    dict(
        id="2",
        name="Cotton Ikkat Daily Wear Saree",
        price=1899,
        original_price=2499,
        category="Sarees",
        description="Breathable handloom cotton saree with geometric ikkat borders.",
        images=["https://images.pexels.com/photos/7679720/pexels-photo-7679720.jpeg"],
        sizes=["Free Size"],
        colors=["Indigo", "White"],
        featured=False,
        rating=4.5,
        review_count=86,
        tags=["cotton", "ikkat", "everyday"],
    ),
    dict(
        id="3",
        name="Ikkat Feeding Friendly Frock",
        price=1299,
        original_price=1799,
        category="Frocks",
        description="Knee length frock in handwoven cotton ikkat with concealed feeding zips.",
        images=["https://images.pexels.com/photos/5560021/pexels-photo-5560021.jpeg"],
        sizes=["S", "M", "L", "XL"],
        colors=["Teal", "Rust"],
        featured=True,
        rating=4.6,
        review_count=58,
        tags=["cotton", "maternity", "frock"],
        supports_feeding_friendly=True,
        is_stitched_dress=True,
    ),
    dict(
        id="4",
        name="Handloom Ikkat Straight Kurta",
        price=1499,
        category="Kurtas",
        description="Straight cut kurta in soft handloom cotton with ikkat yoke detailing.",
        images=["https://images.pexels.com/photos/8100784/pexels-photo-8100784.jpeg"],
        sizes=["S", "M", "L", "XL", "XXL"],
        colors=["Black", "Red"],
        featured=True,
        rating=4.4,
        review_count=41,
        tags=["cotton", "kurta", "office"],
        is_stitched_dress=True,
    ),
    dict(
        id="5",
        name="Ikkat Dress Material Set",
        price=2199,
        original_price=2899,
        category="Dress Materials",
        description="Unstitched three piece set: ikkat top fabric, plain bottom and cotton dupatta.",
        images=["https://images.pexels.com/photos/6766254/pexels-photo-6766254.jpeg"],
        sizes=["Unstitched"],
        colors=["Green", "Pink"],
        featured=False,
        rating=4.3,
        review_count=22,
        tags=["unstitched", "ikkat", "set"],
    ),
    dict(
        id="6",
        name="Silk Ikkat Lehenga",
        price=8999,
        original_price=12999,
        category="Lehengas",
        description="Flared silk lehenga with ikkat panels, blouse piece and organza dupatta.",
        images=["https://images.pexels.com/photos/9489076/pexels-photo-9489076.jpeg"],
        sizes=["S", "M", "L"],
        colors=["Magenta", "Gold"],
        in_stock=False,
        featured=True,
        rating=4.9,
        review_count=17,
        tags=["silk", "wedding", "festive"],
        is_stitched_dress=True,
    ),
]


def mock_products():
    return [Product(created_at=_SEEDED, updated_at=_SEEDED, **p) for p in _PRODUCTS]


def default_landing_settings(now=None):
    stamp = now or _SEEDED
    return LandingSettings(
        page_title="looom.shop - Premium Ikkat Handloom Collection",
        page_subtitle="Handwoven Heritage",
        banner_image_url=PLACEHOLDER_IMAGE,
        categories_list=["Sarees", "Frocks", "Kurtas", "Lehengas", "Dress Materials", "Blouses"],
        hero_description="Discover our exquisite collection of handwoven Ikkat textiles, "
                         "crafted with traditional techniques and modern designs.",
        cta_text="Shop Now",
        cta_link="/collection",
        show_featured_products=True,
        show_categories=True,
        top_banner_text="🎉 Grand Opening Sale - Up to 70% OFF | Free Shipping on Orders ₹1999+",
        top_banner_active=True,
        site_logo_url="/vite.svg",
        site_name="looom.shop",
        best_selling_title="Best Selling Products",
        trending_title="Trending Now",
        popular_categories_title="Popular Categories",
        created_at=stamp,
        updated_at=stamp,
    )


def default_categories():
    rows = [
        ("cat_1", "Sarees", "Traditional handwoven sarees", "👗", "#8B5CF6",
         "https://images.pexels.com/photos/8193085/pexels-photo-8193085.jpeg"),
        ("cat_2", "Frocks", "Modern ethnic frocks", "👚", "#EC4899",
         "https://images.pexels.com/photos/5560021/pexels-photo-5560021.jpeg"),
        ("cat_3", "Kurtas", "Comfortable ethnic kurtas", "👘", "#10B981",
         "https://images.pexels.com/photos/8100784/pexels-photo-8100784.jpeg"),
    ]
    return [
        Category(id=cid, name=name, slug=name.lower(), description=desc, icon=icon, color=color,
                 image=image, sort_order=i, created_at=_SEEDED, updated_at=_SEEDED)
        for i, (cid, name, desc, icon, color, image) in enumerate(rows, start=1)
    ]


def default_themes():
    return [
        Theme(
            id="theme_1",
            name="Festival Collection",
            slug="festival-collection",
            description="Vibrant colors and festive designs for celebrations",
            image=PLACEHOLDER_IMAGE,
            banner_image=PLACEHOLDER_IMAGE,
            icon="🎉",
            colors=ThemeColors(primary="#8B5CF6", secondary="#EC4899", accent="#F59E0B",
                               background="#FEF3C7", text="#1F2937"),
            is_active=True,
            is_default=True,
            sort_order=1,
            settings=ThemeSettings(show_banner=True, show_countdown=False, enable_special_offers=True),
            created_at=_SEEDED,
            updated_at=_SEEDED,
        ),
        Theme(
            id="theme_2",
            name="Summer Collection",
            slug="summer-collection",
            description="Light and breezy designs for summer comfort",
            image="https://images.pexels.com/photos/5560021/pexels-photo-5560021.jpeg",
            icon="☀️",
            colors=ThemeColors(primary="#06B6D4", secondary="#10B981", accent="#F59E0B",
                               background="#F0F9FF", text="#0F172A"),
            start_date=datetime(2024, 4, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc),
            sort_order=2,
            settings=ThemeSettings(show_banner=True, show_countdown=True, enable_special_offers=True),
            created_at=_SEEDED,
            updated_at=_SEEDED,
        ),
    ]


def default_stories():
    rows = [
        ("New Collection", "Latest Arrivals", "from-purple-600 to-pink-600", "category", "new-arrivals",
         "https://images.pexels.com/photos/8193085/pexels-photo-8193085.jpeg"),
        ("Trending Now", "Hot Picks", "from-blue-600 to-cyan-600", "collection", "trending",
         "https://images.pexels.com/photos/5560021/pexels-photo-5560021.jpeg"),
        ("Best Sellers", "Top Rated", "from-orange-600 to-red-600", "collection", "best-sellers",
         "https://images.pexels.com/photos/7679720/pexels-photo-7679720.jpeg"),
        ("Premium", "Luxury Line", "from-emerald-600 to-teal-600", "category", "premium",
         "https://images.pexels.com/photos/8100784/pexels-photo-8100784.jpeg"),
    ]
    return [
        Story(id=f"story_{i}", title=title, subtitle=subtitle, gradient=gradient, image=image,
              sort_order=i, link_type=link_type, link_value=link_value,
              created_at=_SEEDED, updated_at=_SEEDED)
        for i, (title, subtitle, gradient, link_type, link_value, image) in enumerate(rows, start=1)
    ]


def default_banners():
    return [
        Banner(
            id="banner_1",
            title="Up to 70% OFF",
            subtitle="HOT DEAL",
            description="On premium Ikkat collection",
            gradient="from-purple-600 via-pink-600 to-red-500",
            button_text="Shop Now",
            button_color="bg-white text-purple-600",
            sort_order=1,
            link_type="collection",
            link_value="sale",
            banner_type="promotional",
            show_icon=True,
            icon="🔥",
            discount=BannerDiscount(percentage=70, original_text="HOT DEAL", highlight_text="Up to 70% OFF"),
            created_at=_SEEDED,
            updated_at=_SEEDED,
        ),
        Banner(
            id="banner_2",
            title="New Arrivals",
            subtitle="FRESH COLLECTION",
            description="Latest handwoven designs just arrived",
            image=PLACEHOLDER_IMAGE,
            gradient="from-emerald-500 to-teal-600",
            button_text="Explore Now",
            button_color="bg-white text-emerald-600",
            is_active=False,
            sort_order=2,
            link_type="category",
            link_value="new-arrivals",
            banner_type="hero",
            height="large",
            show_icon=True,
            icon="✨",
            created_at=_SEEDED,
            updated_at=_SEEDED,
        ),
    ]
