# sales/sales_service.py
import logging
from datetime import datetime
from src.extensions import db
from src.exceptions import InvalidInputException, ResourceNotFoundException
from src.helpers import to_decimal, to_quantity, to_id, to_text, parse_datetime, day_bounds, CENTS, ZERO
from src.transaction import transactional
from products.product import Product
from products.product_service import ProductService
from stock.stock_service import StockService
from sales.sale import Sale, PAYMENT_TYPES
from sales.sale_item import SaleItem
from borrowers.borrower_service import BorrowerService

logger = logging.getLogger("SalesService")

class SalesService:
    @staticmethod
    @transactional
    def create_sale(customer_name=None, payment_type=None, items=None, paid_amount=None, discount_amount=None, sale_date=None):
        """
        Checkout a bill in one transaction: reserve stock for every line,
        insert the sale and its items, and update the customer's credit.
        items = [{"product_id": 1, "price": "10.00", "quantity": 2}, ...]
        A line may instead name a product by name, price and expiry_date.
        """
        header = SalesService._validate_header(customer_name, payment_type, paid_amount, discount_amount)
        lines = SalesService._normalize_items(items)

        sale = Sale(
            sale_date=parse_datetime(sale_date, "sale_date") if sale_date else datetime.now(),
            customer_name=header["customer_name"],
            payment_type=header["payment_type"],
            paid_amount=header["paid_amount"],
            total_amount=ZERO,
            discount_amount=ZERO,
            borrow_amount=ZERO,
        )
        db.session.add(sale)

        total = SalesService._apply_items(sale, lines)
        SalesService._apply_amounts(sale, total, header["discount_amount"])
        db.session.flush()

        if sale.customer_name:
            BorrowerService.sync_outstanding(sale.customer_name)

        logger.info("Created sale %s (%s) total %s borrow %s", sale.id, sale.payment_type, sale.total_amount, sale.borrow_amount)
        return {
            "sale_id": sale.id,
            "total_amount": sale.total_amount,
            "discount_amount": sale.discount_amount,
            "borrow_amount": sale.borrow_amount,
        }

    @staticmethod
    @transactional
    def edit_sale(sale_id, customer_name=None, payment_type=None, paid_amount=None, discount_amount=None, items=None):
        """
        Replace a bill's header and item set. Stock for the old items is put
        back before the new items are reserved, and both the old and the new
        customer's outstanding amounts are recomputed.
        """
        sale = SalesService._get_sale_for_update(sale_id)
        header = SalesService._validate_header(customer_name, payment_type, paid_amount, discount_amount)
        lines = SalesService._normalize_items(items)
        old_customer = sale.customer_name

        SalesService._reverse_items(sale)

        sale.customer_name = header["customer_name"]
        sale.payment_type = header["payment_type"]
        sale.paid_amount = header["paid_amount"]
        total = SalesService._apply_items(sale, lines)
        SalesService._apply_amounts(sale, total, header["discount_amount"])
        db.session.flush()

        if old_customer and old_customer != sale.customer_name:
            BorrowerService.sync_outstanding(old_customer)
        if sale.customer_name:
            BorrowerService.sync_outstanding(sale.customer_name)

        logger.info("Edited sale %s (%s) total %s borrow %s", sale.id, sale.payment_type, sale.total_amount, sale.borrow_amount)
        return {
            "sale_id": sale.id,
            "total_amount": sale.total_amount,
            "discount_amount": sale.discount_amount,
            "borrow_amount": sale.borrow_amount,
        }

    @staticmethod
    @transactional
    def delete_sale(sale_id):
        sale = SalesService._get_sale_for_update(sale_id)
        customer = sale.customer_name

        SalesService._reverse_items(sale)
        db.session.delete(sale)
        db.session.flush()

        if customer:
            BorrowerService.sync_outstanding(customer)
        logger.info("Deleted sale %s", sale_id)

    @staticmethod
    def list_sales(start_date=None, end_date=None, payment_type=None):
        query = Sale.query
        if start_date:
            query = query.filter(Sale.sale_date >= day_bounds(start_date)[0])
        if end_date:
            query = query.filter(Sale.sale_date < day_bounds(end_date)[1])
        if payment_type:
            query = query.filter(Sale.payment_type == SalesService._payment_type(payment_type))
        sales = query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()
        return [s.to_dict() for s in sales]

    @staticmethod
    def get_sale_detail(sale_id):
        sale = db.session.get(Sale, to_id(sale_id, "sale_id"))
        if not sale:
            raise ResourceNotFoundException(f"Sale {sale_id} not found")

        rows = (
            db.session.query(SaleItem, Product.name)
            .join(Product, Product.id == SaleItem.product_id)
            .filter(SaleItem.sale_id == sale.id)
            .order_by(SaleItem.id.asc())
            .all()
        )
        items = [
            {
                "id": item.id,
                "product_id": item.product_id,
                "name": name,
                "price": item.price,
                "expiry_date": item.expiry_date,
                "quantity": item.quantity,
                "line_total": item.line_total,
            }
            for item, name in rows
        ]
        return {"sale": sale.to_dict(), "items": items}

    # -------------------------
    # Internal helpers (run inside the caller's transaction)
    # -------------------------
    @staticmethod
    def _get_sale_for_update(sale_id):
        sale = Sale.query.filter_by(id=to_id(sale_id, "sale_id")).with_for_update().first()
        if not sale:
            raise ResourceNotFoundException(f"Sale {sale_id} not found")
        return sale

    @staticmethod
    def _payment_type(payment_type):
        value = str(payment_type or "").strip().upper()
        if value not in PAYMENT_TYPES:
            raise InvalidInputException(f"payment_type must be one of {', '.join(PAYMENT_TYPES)}")
        return value

    @staticmethod
    def _validate_header(customer_name, payment_type, paid_amount, discount_amount):
        payment_type = SalesService._payment_type(payment_type)
        customer_name = to_text(customer_name, "customer_name") or None
        if payment_type == "BORROW" and not customer_name:
            raise InvalidInputException("customer_name is required for BORROW sales")

        paid = to_decimal(paid_amount, "paid_amount")
        if paid < 0:
            raise InvalidInputException("paid_amount must not be negative")
        discount = to_decimal(discount_amount, "discount_amount", allow_none=True)
        if discount is not None and discount < 0:
            raise InvalidInputException("discount_amount must not be negative")

        return {
            "customer_name": customer_name,
            "payment_type": payment_type,
            "paid_amount": paid,
            "discount_amount": discount,
        }

    @staticmethod
    def _normalize_items(items):
        """Resolve each line to a product and merge repeated products."""
        if not items or not isinstance(items, (list, tuple)):
            raise InvalidInputException("No sale items")

        lines = {}
        for idx, item in enumerate(items, 1):
            if not isinstance(item, dict):
                raise InvalidInputException(f"items[{idx}] must be an object")
            quantity = to_quantity(item.get("quantity"), f"items[{idx}].quantity")

            if item.get("product_id") is not None:
                product = ProductService.get_product(to_id(item["product_id"], f"items[{idx}].product_id"))
            elif item.get("name"):
                product, _ = ProductService.resolve_product(item.get("name"), item.get("price"), item.get("expiry_date"))
            else:
                raise InvalidInputException(f"items[{idx}] needs product_id, or name, price and expiry_date")

            price = to_decimal(item.get("price"), f"items[{idx}].price", allow_none=True)
            if price is None:
                price = to_decimal(product.price, "price")
            if price <= 0:
                raise InvalidInputException(f"items[{idx}].price must be greater than 0")

            line = lines.get(product.id)
            if line:
                if line["price"] != price:
                    raise InvalidInputException(f"{product.name} appears twice with different prices")
                line["quantity"] += quantity
            else:
                lines[product.id] = {"product": product, "price": price, "quantity": quantity}
        return list(lines.values())

    @staticmethod
    def _apply_items(sale, lines):
        total = ZERO
        for line in lines:
            product = line["product"]
            StockService.reserve(product.id, line["quantity"])
            line_total = (line["price"] * line["quantity"]).quantize(CENTS)
            sale.items.append(SaleItem(
                product_id=product.id,
                price=line["price"],
                expiry_date=product.expiry_date,
                quantity=line["quantity"],
                line_total=line_total,
            ))
            total += line_total
        return total

    @staticmethod
    def _reverse_items(sale):
        for item in list(sale.items):
            StockService.release(item.product_id, item.quantity)
        sale.items.clear()
        db.session.flush()

    @staticmethod
    def _apply_amounts(sale, total, discount_amount):
        """
        BORROW bills carry the unpaid part as borrow_amount. Any other bill
        never borrows; a shortfall between total and paid is a discount.
        Paying more than the bill total is rejected.
        """
        paid = to_decimal(sale.paid_amount, "paid_amount")
        if paid > total:
            raise InvalidInputException(f"paid_amount {paid} exceeds bill total {total}")
        gap = total - paid
        sale.total_amount = total
        if sale.payment_type == "BORROW":
            sale.borrow_amount = gap if gap > 0 else ZERO
            sale.discount_amount = discount_amount if discount_amount is not None else ZERO
        else:
            sale.borrow_amount = ZERO
            sale.discount_amount = gap if gap > 0 else ZERO
