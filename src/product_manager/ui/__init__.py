"""Product page: state, rendering and the event controller."""

from product_manager.ui.controller import ProductController, ViewSink, parse_form
from product_manager.ui.render import View, render_notice, render_view
from product_manager.ui.state import AppState, Notice, NoticeLevel, ViewStatus

__all__ = [
    "AppState",
    "Notice",
    "NoticeLevel",
    "ProductController",
    "View",
    "ViewSink",
    "ViewStatus",
    "parse_form",
    "render_notice",
    "render_view",
]
