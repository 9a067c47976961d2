import logging
from sqlalchemy.exc import IntegrityError
from src.extensions import db
from src.exceptions import InvalidInputException, ResourceNotFoundException
from src.helpers import to_decimal, to_text, parse_date
from products.product import Product

logger = logging.getLogger("ProductService")

class ProductService:
    @staticmethod
    def get_product(product_id):
        product = db.session.get(Product, product_id)
        if not product:
            raise ResourceNotFoundException(f"Product {product_id} not found")
        return product

    @staticmethod
    def find_product(name, price, expiry_date):
        return Product.query.filter_by(name=name, price=price, expiry_date=expiry_date).first()

    @staticmethod
    def resolve_product(name, price, expiry_date):
        """
        Get or create the product identified by (name, price, expiry_date).
        Returns (product, created). Safe against a concurrent insert of the
        same triple: the losing insert is rolled back to its savepoint and the
        winner's row is returned.
        """
        name = to_text(name, "name")
        if not name:
            raise InvalidInputException("name is required")
        price = to_decimal(price, "price")
        if price <= 0:
            raise InvalidInputException("price must be greater than 0")
        expiry_date = parse_date(expiry_date, "expiry_date")

        product = ProductService.find_product(name, price, expiry_date)
        if product:
            return product, False

        try:
            with db.session.begin_nested():
                product = Product(name=name, price=price, expiry_date=expiry_date)
                db.session.add(product)
        except IntegrityError:
            product = ProductService.find_product(name, price, expiry_date)
            if not product:
                raise
            return product, False

        logger.info("Created product %s (%s @ %s, expires %s)", product.id, name, price, expiry_date)
        return product, True
