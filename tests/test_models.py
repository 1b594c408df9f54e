"""Tests for the product document model and rendering of product data."""

from datetime import datetime, timezone

from product_manager.models import Product, parse_timestamp
from product_manager.ui.render import build_rows, render_notice, render_permission_panel, render_table
from product_manager.ui.state import Notice, NoticeLevel


class TestProductDocument:
    def test_from_document(self):
        product = Product.from_document(
            {
                "id": "abc",
                "name": "Desk Lamp",
                "description": "Adjustable LED desk lamp",
                "price": 40,
                "category": "Home",
                "createdAt": "2026-10-19T14:05:00+00:00",
                "updatedAt": "2026-10-19T15:00:00",
                "_etag": "ignored",
            }
        )
        assert product.price == 40.0
        assert product.created_at == datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc)
        assert product.updated_at.tzinfo == timezone.utc

    def test_round_trip_shape(self):
        stamp = datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc)
        product = Product("abc", "Lamp", "Adjustable lamp", 12.5, "Home", stamp, stamp)
        document = product.to_document()
        assert document["createdAt"] == "2026-10-19T14:05:00+00:00"
        assert Product.from_document(document) == product

    def test_mistyped_fields_are_tolerated(self):
        product = Product.from_document({"id": "x", "price": "12", "createdAt": {"seconds": 1}})
        assert product.name == ""
        assert product.price is None
        assert product.created_at is None

    def test_new_ids_are_unique(self):
        assert Product.new_id() != Product.new_id()

    def test_parse_timestamp_rejects_garbage(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None


class TestRendering:
    def test_rows_escape_html(self):
        product = Product("abc", "<b>Lamp</b>", "Adjustable lamp", 12.5, "Home", None, None)
        rows = build_rows([product])
        assert rows[0]["created_at"] == "Date unavailable"

        html = render_table([product])
        assert "<b>Lamp</b>" not in html
        assert "&lt;b&gt;Lamp&lt;/b&gt;" in html

    def test_permission_panel_for_each_backend(self):
        cosmos = render_permission_panel(
            {"backend": "cosmosdb", "database": "shop", "collection": "products", "is_configured": True}
        )
        sqlite = render_permission_panel(
            {"backend": "sqlite", "database": "products.db", "collection": "products", "is_configured": True}
        )
        assert "COSMOSDB_KEY" in cosmos
        assert "products.db" in sqlite
        assert "COSMOSDB_KEY" not in sqlite

    def test_notice_html(self):
        html = render_notice(Notice(message="Product created successfully", level=NoticeLevel.SUCCESS, duration_ms=5000))
        assert "✅" in html
        assert "toast success" in html
        assert "Product created successfully" in html
