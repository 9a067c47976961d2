import logging
from datetime import date
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from src.extensions import db
from src.exceptions import InvalidInputException, InsufficientStockException
from src.helpers import to_quantity, parse_date
from src.transaction import transactional
from products.product import Product
from products.product_service import ProductService
from stock.stock import Stock

logger = logging.getLogger("StockService")

class StockService:
    @staticmethod
    @transactional
    def add_stock(name, price, expiry_date, quantity, today=None):
        """
        Stock-in: resolve or create the product by (name, price, expiry_date),
        then create its stock row or increase the quantity on it.
        """
        today = today or date.today()
        quantity = to_quantity(quantity)
        expiry_date = parse_date(expiry_date, "expiry_date")
        if expiry_date < today:
            raise InvalidInputException(f"Cannot stock a product that expired on {expiry_date}")

        product, _ = ProductService.resolve_product(name, price, expiry_date)
        new_quantity = StockService._credit(product.id, quantity)

        logger.info("Stocked %s x %s (product %s), now %s", quantity, product.name, product.id, new_quantity)
        return {"product_id": product.id, "quantity": new_quantity}

    @staticmethod
    @transactional
    def reserve(product_id, quantity):
        """
        Debit stock for a sale. The check and the decrement are one
        conditional UPDATE, so two concurrent sales can never both pass the
        check against the same stale quantity.
        """
        quantity = to_quantity(quantity)
        result = db.session.execute(
            update(Stock)
            .where(Stock.product_id == product_id, Stock.quantity >= quantity)
            .values(quantity=Stock.quantity - quantity)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            product = ProductService.get_product(product_id)
            stock = Stock.query.filter_by(product_id=product_id).first()
            available = stock.quantity if stock else 0
            logger.warning("Rejected reservation of %s x %s, available %s", quantity, product.name, available)
            raise InsufficientStockException(
                f"Insufficient stock for {product.name}. Available: {available}, requested: {quantity}"
            )

    @staticmethod
    @transactional
    def release(product_id, quantity):
        """Credit stock back, e.g. when a sale line is reversed."""
        quantity = to_quantity(quantity)
        ProductService.get_product(product_id)
        return StockService._credit(product_id, quantity)

    @staticmethod
    def _credit(product_id, quantity):
        result = db.session.execute(
            update(Stock)
            .where(Stock.product_id == product_id)
            .values(quantity=Stock.quantity + quantity)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            try:
                with db.session.begin_nested():
                    db.session.add(Stock(product_id=product_id, quantity=quantity))
            except IntegrityError:
                # Another transaction created the row first
                db.session.execute(
                    update(Stock)
                    .where(Stock.product_id == product_id)
                    .values(quantity=Stock.quantity + quantity)
                    .execution_options(synchronize_session="evaluate")
                )
        stock = Stock.query.filter_by(product_id=product_id).one()
        return stock.quantity

    @staticmethod
    def get_quantity(product_id):
        stock = Stock.query.filter_by(product_id=product_id).first()
        return stock.quantity if stock else 0

    @staticmethod
    def list_sellable(as_of=None):
        """
        Products with quantity > 0, ordered by name. With as_of, products
        already past their expiry date are left out (checkout picker).
        """
        query = (
            db.session.query(Product, Stock.quantity)
            .join(Stock, Stock.product_id == Product.id)
            .filter(Stock.quantity > 0)
        )
        if as_of is not None:
            query = query.filter(Product.expiry_date >= as_of)
        rows = query.order_by(Product.name.asc(), Product.id.asc()).all()
        return [{"product": product.to_dict(), "quantity": quantity} for product, quantity in rows]
