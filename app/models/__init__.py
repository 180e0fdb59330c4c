from app.models.inventory import Product, Purchase, Sale

__all__ = [
    "Product",
    "Purchase",
    "Sale",
]
