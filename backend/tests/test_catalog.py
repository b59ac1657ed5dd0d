# Overview: Pytest coverage for store-scoped catalog lookups.

from decimal import Decimal

from tillpoint.models import Product
from tillpoint.services import catalog_service, store_service


class TestCatalogLookups:

    def test_find_by_barcode(self, db_session, store, product_a):
        assert catalog_service.find_by_barcode(store.id, "0000000000017").id == product_a.id
        assert catalog_service.find_by_barcode(store.id, " 0000000000017 ").id == product_a.id
        assert catalog_service.find_by_barcode(store.id, "9999") is None
        assert catalog_service.find_by_barcode(store.id, "") is None

    def test_find_by_sku(self, db_session, store, product_a):
        assert catalog_service.find_by_sku(store.id, "PROD-A-001").id == product_a.id
        assert catalog_service.find_by_sku(store.id, "nope") is None

    def test_lookups_are_store_scoped(self, db_session, store, other_store, product_a):
        assert catalog_service.find_by_barcode(other_store.id, "0000000000017") is None
        assert catalog_service.get_product(other_store.id, product_a.id) is None
        assert catalog_service.list_active_products(other_store.id) == []

    def test_inactive_products_hidden(self, db_session, store, product_a, product_b):
        product_b.is_active = False
        db_session.commit()

        assert [p.id for p in catalog_service.list_active_products(store.id)] == [product_a.id]
        assert catalog_service.find_by_barcode(store.id, "0000000000024") is None
        assert catalog_service.get_product(store.id, product_b.id) is None
        assert catalog_service.get_product(store.id, product_b.id, active_only=False).id == product_b.id

    def test_search_matches_name_sku_and_barcode(self, db_session, store, product_a, product_b):
        assert [p.id for p in catalog_service.search_products(store.id, "product b")] == [product_b.id]
        assert [p.id for p in catalog_service.search_products(store.id, "prod-a")] == [product_a.id]
        assert [p.id for p in catalog_service.search_products(store.id, "24")] == [product_b.id]
        assert len(catalog_service.search_products(store.id, "")) == 2

    def test_low_stock(self, db_session, store, product_a, product_b):
        db_session.add(Product(store_id=store.id, name="Out", price=Decimal("1.00"),
                               stock_quantity=0, min_stock_level=0, is_active=True))
        db_session.commit()

        names = [p.name for p in catalog_service.low_stock_products(store.id)]
        assert names == ["Out", "Product B"]


class TestStoreConfig:

    def test_tax_rate_from_basis_points(self, db_session, store):
        assert store_service.tax_rate(store.id) == Decimal("0.08")
