"""HTML rendering for the product page.

render_view() is a pure function of AppState: the same state always produces
the same fragments, and every call regenerates the table, stats panel,
remediation panel and confirmation prompt in full.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from product_manager.config.configuration import UIConfig
from product_manager.errors import RenderError
from product_manager.models import Product
from product_manager.services.product_helpers import (
    aggregate,
    filter_by_category,
    format_currency,
    format_timestamp,
    search,
)
from product_manager.ui.state import AppState, Notice

logger = logging.getLogger(__name__)

NOTICE_ICONS = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
}


@dataclass(frozen=True)
class View:
    """Rendered fragments and flags pushed to the browser."""

    status: str
    mode: str
    editing_id: Optional[str]
    form_title: str
    submit_label: str
    submitting: bool
    form_values: dict[str, str]
    form_revision: int
    field_errors: dict[str, str]
    table_html: str
    stats_html: str
    permission_html: str
    confirm_html: str
    connection_failed: bool


def get_template_env() -> Environment:
    """Get Jinja2 environment for template rendering."""
    env = Environment(
        loader=PackageLoader("product_manager.ui", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["currency"] = format_currency
    return env


_env: Optional[Environment] = None


def _get_env() -> Environment:
    global _env
    if _env is None:
        _env = get_template_env()
    return _env


def render_template(template_name: str, **context: Any) -> str:
    return _get_env().get_template(template_name).render(**context)


def _row_context(product: Any, zone_name: str) -> dict[str, Any]:
    if not isinstance(product, Product) or not product.id:
        raise RenderError(f"Cannot display product record: {product!r}")
    return {
        "placeholder": False,
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": format_currency(product.price),
        "category": product.category,
        "created_at": format_timestamp(product.created_at, zone_name),
    }


def build_rows(products: list, zone_name: str = "UTC") -> list[dict[str, Any]]:
    """Row contexts for the table; undisplayable records become placeholder rows."""
    rows = []
    for product in products:
        try:
            rows.append(_row_context(product, zone_name))
        except RenderError as e:
            logger.warning(f"Rendering placeholder row: {e}")
            rows.append({"placeholder": True})
    return rows


def render_table(products: list, zone_name: str = "UTC") -> str:
    return render_template("_table_rows.html", rows=build_rows(products, zone_name))


def render_stats(products: list) -> str:
    if not products:
        return ""
    return render_template("_stats.html", stats=aggregate(products))


def render_permission_panel(store_info: dict[str, Any]) -> str:
    return render_template("_permission_panel.html", store=store_info)


def render_notice(notice: Notice) -> str:
    return render_template(
        "_notice.html",
        notice=notice,
        icon=NOTICE_ICONS.get(notice.level.value, NOTICE_ICONS["info"]),
    )


def visible_products(state: AppState) -> list:
    """Mirror narrowed by the current search text and category filter."""
    products = search(state.search_text, state.products)
    return list(filter_by_category(state.category_filter, products))


def render_view(state: AppState, ui_config: UIConfig, store_info: dict[str, Any]) -> View:
    """Render the whole page state into a View."""
    if state.is_editing:
        form_title = "✏️ Edit Product"
        submit_label = "💾 Save Changes"
    else:
        form_title = "➕ Add New Product"
        submit_label = "💾 Save Product"
    if state.submitting:
        submit_label = "⏳ Processing..."

    shown = visible_products(state)

    confirm_html = ""
    pending = state.find_product(state.pending_delete_id)
    if pending is not None:
        confirm_html = render_template("_confirm.html", product=pending)

    return View(
        status=state.status.value,
        mode=state.mode,
        editing_id=state.editing_id,
        form_title=form_title,
        submit_label=submit_label,
        submitting=state.submitting,
        form_values=dict(state.form),
        form_revision=state.form_revision,
        field_errors=dict(state.field_errors),
        table_html=render_table(shown, ui_config.display_timezone),
        stats_html=render_stats(state.products),
        permission_html=render_permission_panel(store_info) if state.permission_denied else "",
        confirm_html=confirm_html,
        connection_failed=state.connection_failed,
    )
