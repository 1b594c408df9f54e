from product_manager.api.controller.products_controller import router as products_router

__all__ = ["products_router"]
