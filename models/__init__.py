from src.extensions import db

# Import all models so migrations can detect them
from products.product import Product
from stock.stock import Stock
from expiry.expired_stock import ExpiredStock, SweepMarker
from sales.sale import Sale
from sales.sale_item import SaleItem
from borrowers.borrower import Borrower
from borrowers.borrower_payment import BorrowerPayment


__all__ = [
    "db",
    "Product",
    "Stock",
    "ExpiredStock",
    "SweepMarker",
    "Sale",
    "SaleItem",
    "Borrower",
    "BorrowerPayment",
]
