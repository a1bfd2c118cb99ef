import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import Category, CategoryNode, Product

ALL_PRODUCTS = "All Products"
SORT_OPTIONS = ("featured", "price-low", "price-high", "rating", "newest")
# categories nest at most this many levels below the root
MAX_CATEGORY_LEVEL = 2


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def category_level(parent_id: Optional[str], categories: Sequence[Category]) -> int:
    if not parent_id:
        return 0
    parent = next((c for c in categories if c.id == parent_id), None)
    return (parent.level if parent else 0) + 1


def can_nest_under(parent: Category) -> bool:
    return parent.level < MAX_CATEGORY_LEVEL


def build_category_tree(categories: Sequence[Category], parent_id: Optional[str] = None) -> List[CategoryNode]:
    children = sorted((c for c in categories if c.parent_id == parent_id), key=lambda c: c.sort_order)
    return [
        CategoryNode(**c.model_dump(), children=build_category_tree(categories, c.id))
        for c in children
    ]


def _matches_category(product: Product, category: str) -> bool:
    wanted, actual = category.lower(), product.category.lower()
    return actual == wanted or (bool(actual) and actual in wanted)


def _matches_search(product: Product, query: str) -> bool:
    q = query.lower()
    return (q in product.name.lower()
            or q in product.description.lower()
            or any(q in tag.lower() for tag in product.tags))


def filter_products(
    products: Iterable[Product],
    category: str = ALL_PRODUCTS,
    search: str = "",
    price_range: Tuple[float, float] = (0, 10000),
    colors: Sequence[str] = (),
    sizes: Sequence[str] = (),
    sort_by: str = "featured",
    in_stock_only: bool = False,
) -> List[Product]:
    out = list(products)
    if category and category != ALL_PRODUCTS:
        out = [p for p in out if _matches_category(p, category)]
    if search:
        out = [p for p in out if _matches_search(p, search)]
    low, high = price_range
    out = [p for p in out if low <= p.price <= high]
    if colors:
        out = [p for p in out if any(c in colors for c in p.colors)]
    if sizes:
        out = [p for p in out if any(s in sizes for s in p.sizes)]
    if in_stock_only:
        out = [p for p in out if p.in_stock]

    if sort_by == "price-low":
        out.sort(key=lambda p: p.price)
    elif sort_by == "price-high":
        out.sort(key=lambda p: p.price, reverse=True)
    elif sort_by == "rating":
        out.sort(key=lambda p: p.rating, reverse=True)
    elif sort_by == "newest":
        out.sort(key=lambda p: p.id, reverse=True)
    else:
        out.sort(key=lambda p: not p.featured)
    return out


def featured_products(products: Iterable[Product], limit: int = 8) -> List[Product]:
    return [p for p in products if p.featured][:limit]


def curated(products: Iterable[Product], ids: Sequence[str]) -> List[Product]:
    by_id: Dict[str, Product] = {p.id: p for p in products}
    return [by_id[i] for i in ids if i in by_id]
