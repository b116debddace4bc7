"""
Tests for InventoryService: catalog administration and restock
"""
import pytest

from storefront.core.errors import Conflict, NotFound, ValidationError
from storefront.domain.product import CategoryCreate, ProductCreate


class TestProducts:
    def test_published_product_snapshot(self, inventory):
        product = inventory.get_product("P1")

        assert product.snapshot() == {
            "id": "P1",
            "name": "Oak Dining Table",
            "slug": "oak-dining-table",
            "price": 10000,
            "stock": 5,
            "in_stock": True,
        }

    def test_unpublished_product_is_hidden(self, inventory):
        with pytest.raises(NotFound):
            inventory.get_product("P3")

    def test_create_product(self, inventory):
        product = inventory.create_product(
            ProductCreate(name="Walnut Shelf", slug="walnut-shelf", price=4500, stock=7, category_id="C1"),
            actor="admin@example.com",
        )

        assert product.stock == 7
        assert inventory.get_product(product.id).name == "Walnut Shelf"

    def test_create_product_in_unknown_category(self, inventory):
        with pytest.raises(ValidationError):
            inventory.create_product(
                ProductCreate(name="Walnut Shelf", slug="walnut-shelf", price=4500, category_id="nope"),
                actor="admin@example.com",
            )

    def test_duplicate_product_slug(self, inventory):
        with pytest.raises(Conflict):
            inventory.create_product(
                ProductCreate(name="Another Table", slug="oak-dining-table", price=1, category_id="C1"),
                actor="admin@example.com",
            )


class TestRestock:
    def test_restock_adds_units(self, inventory, stock_of):
        product = inventory.restock("P2", 3, actor="admin@example.com")

        assert product.stock == 5
        assert stock_of("P2") == 5

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity(self, inventory, stock_of, quantity):
        with pytest.raises(ValidationError):
            inventory.restock("P2", quantity, actor="admin@example.com")
        assert stock_of("P2") == 2

    def test_unknown_product(self, inventory):
        with pytest.raises(NotFound):
            inventory.restock("missing", 1, actor="admin@example.com")


class TestCategories:
    def test_create_and_delete_empty_category(self, inventory):
        category = inventory.create_category(CategoryCreate(name="Bedroom", slug="bedroom"), actor="admin@example.com")

        inventory.delete_category(category.id, actor="admin@example.com")

        with pytest.raises(NotFound):
            inventory.delete_category(category.id, actor="admin@example.com")

    def test_duplicate_slug(self, inventory):
        with pytest.raises(Conflict):
            inventory.create_category(CategoryCreate(name="Living", slug="living-room"), actor="admin@example.com")

    def test_category_with_products_cannot_be_deleted(self, inventory):
        with pytest.raises(Conflict) as exc_info:
            inventory.delete_category("C1", actor="admin@example.com")

        assert exc_info.value.details["products"] == 3
