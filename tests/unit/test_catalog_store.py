"""
Unit tests for products and categories.
"""

from decimal import Decimal

import pytest

from storefront.exceptions import NotFoundError


class TestProductStore:
    """Tests for ProductStore."""

    @pytest.fixture
    def runner(self, product_store):
        return product_store.create(
            name="Trail Runner",
            price=Decimal("89.99"),
            description="Lightweight trail running shoe",
            brand="Stride",
            variants=[{"color": "red", "size": "42", "stock": 5}],
        )

    def test_create_assigns_uuid(self, runner):
        assert len(runner.id) == 36
        assert runner.price == Decimal("89.99")
        assert runner.variants == [{"color": "red", "size": "42", "stock": 5}]

    def test_get(self, product_store, runner):
        assert product_store.get(runner.id) == runner

    def test_get_missing_raises(self, product_store):
        with pytest.raises(NotFoundError):
            product_store.get("no-such-product")

    def test_update_merges_fields(self, product_store, runner):
        updated = product_store.update(runner.id, price=Decimal("79.99"), brand=None)

        assert updated.price == Decimal("79.99")
        assert updated.brand == "Stride"
        assert updated.name == "Trail Runner"

    def test_update_missing_raises(self, product_store):
        with pytest.raises(NotFoundError):
            product_store.update("no-such-product", name="x")

    def test_delete_is_unconditional(self, product_store, runner):
        product_store.delete(runner.id)
        product_store.delete(runner.id)

        assert product_store.list_all() == []

    def test_missing_ids(self, product_store, runner):
        assert product_store.missing_ids([runner.id, "ghost"]) == {"ghost"}
        assert product_store.missing_ids([]) == set()


class TestCategoryStore:
    """Tests for CategoryStore."""

    @pytest.fixture
    def categories(self, category_store):
        return [
            category_store.create("Shoes", "Running and hiking footwear"),
            category_store.create("Jackets", "Rain SHELLS and parkas"),
            category_store.create("Archive", "Retired items", is_active=False),
        ]

    def test_list_ordered_by_name(self, category_store, categories):
        names = [c.name for c in category_store.list_categories()]

        assert names == ["Archive", "Jackets", "Shoes"]

    def test_filter_active(self, category_store, categories):
        inactive = category_store.list_categories(is_active=False)

        assert [c.name for c in inactive] == ["Archive"]

    def test_search_is_case_insensitive_over_name_and_description(self, category_store, categories):
        assert [c.name for c in category_store.list_categories(search="shoe")] == ["Shoes"]
        assert [c.name for c in category_store.list_categories(search="shells")] == ["Jackets"]

    def test_search_treats_wildcards_literally(self, category_store):
        category_store.create("100% Cotton", "Natural fibres")
        category_store.create("Cotton Blend", "Mixed fibres")
        category_store.create("Kids_Wear", None)
        category_store.create("KidsXWear", None)

        assert [c.name for c in category_store.list_categories(search="%")] == ["100% Cotton"]
        assert [c.name for c in category_store.list_categories(search="s_w")] == ["Kids_Wear"]

    def test_update(self, category_store, categories):
        updated = category_store.update(categories[2].id, is_active=True)

        assert updated.is_active is True

    def test_delete_missing_raises(self, category_store):
        with pytest.raises(NotFoundError):
            category_store.delete(12345)

    def test_delete(self, category_store, categories):
        category_store.delete(categories[0].id)

        with pytest.raises(NotFoundError):
            category_store.get(categories[0].id)
