from .sale import Sale
from .expense import Expense
from .product_return import ProductReturn
from .damage import DamageWriteOff

__all__ = [
    "Sale",
    "Expense",
    "ProductReturn",
    "DamageWriteOff",
]
