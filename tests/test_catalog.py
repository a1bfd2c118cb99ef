import pytest

from looom.catalog import (
    ALL_PRODUCTS,
    build_category_tree,
    can_nest_under,
    category_level,
    curated,
    featured_products,
    filter_products,
    slugify,
)
from looom.mock_data import default_categories, mock_products
from looom.recs import recommend_for_product
from looom.schemas import Category


@pytest.mark.parametrize("name,slug", [
    ("Silk Sarees", "silk-sarees"),
    ("  Kids & Baby  ", "kids--baby"),
    ("Dress\tMaterials", "dress-materials"),
    ("Ikkat 2.0!", "ikkat-20"),
])
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_slugify_is_idempotent():
    for name in ("Pochampally Ikkat", "Kids & Baby", "already-a-slug"):
        assert slugify(slugify(name)) == slugify(name)


def test_category_level_and_depth_limit():
    cats = default_categories()
    assert category_level(None, cats) == 0
    assert category_level("cat_1", cats) == 1
    assert category_level("unknown", cats) == 1
    assert can_nest_under(Category(name="a", level=1))
    assert not can_nest_under(Category(name="b", level=2))


def test_build_category_tree_orders_children():
    cats = [
        Category(id="root", name="Root"),
        Category(id="b", name="B", parent_id="root", level=1, sort_order=2),
        Category(id="a", name="A", parent_id="root", level=1, sort_order=1),
    ]
    tree = build_category_tree(cats)
    assert [n.id for n in tree] == ["root"]
    assert [n.id for n in tree[0].children] == ["a", "b"]


def test_all_products_is_everything_featured_first():
    ids = [p.id for p in filter_products(mock_products())]
    assert ids == ["1", "3", "4", "6", "2", "5"]


def test_category_filter_is_case_insensitive():
    assert {p.id for p in filter_products(mock_products(), category="sarees")} == {"1", "2"}


def test_search_matches_name_description_and_tags():
    assert {p.id for p in filter_products(mock_products(), search="MATERNITY")} == {"3"}
    assert {p.id for p in filter_products(mock_products(), search="dupatta")} == {"5", "6"}


def test_price_colour_and_size_filters():
    products = mock_products()
    assert {p.id for p in filter_products(products, price_range=(1000, 2000))} == {"2", "3", "4"}
    assert {p.id for p in filter_products(products, colors=["Indigo", "Teal"])} == {"2", "3"}
    assert {p.id for p in filter_products(products, sizes=["XXL"])} == {"4"}


def test_in_stock_only_drops_sold_out():
    ids = {p.id for p in filter_products(mock_products(), in_stock_only=True)}
    assert ids == {"1", "2", "3", "4", "5"}


@pytest.mark.parametrize("sort_by,expected", [
    ("price-low", ["3", "4", "2", "5", "1", "6"]),
    ("price-high", ["6", "1", "5", "2", "4", "3"]),
    ("rating", ["6", "1", "3", "2", "4", "5"]),
    ("newest", ["6", "5", "4", "3", "2", "1"]),
])
def test_sorting(sort_by, expected):
    assert [p.id for p in filter_products(mock_products(), category=ALL_PRODUCTS, sort_by=sort_by)] == expected


def test_featured_and_curated():
    products = mock_products()
    assert [p.id for p in featured_products(products, limit=2)] == ["1", "3"]
    assert [p.id for p in curated(products, ["5", "missing", "2"])] == ["5", "2"]


def test_recommendations_exclude_the_product():
    recs = recommend_for_product(mock_products(), "1", n=3)
    assert len(recs) == 3
    assert "1" not in [p.id for p in recs]
    # the other silk festive piece is the closest match
    assert recs[0].id == "6"


def test_recommendations_for_unknown_product():
    assert [p.id for p in recommend_for_product(mock_products(), "zzz", n=2)] == ["1", "2"]
    assert recommend_for_product([], "1") == []
