import logging
from datetime import datetime
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from src.extensions import db
from src.exceptions import InvalidInputException, ResourceNotFoundException, OverPaymentException
from src.helpers import to_decimal, to_text, CENTS, ZERO
from src.transaction import transactional
from sales.sale import Sale
from borrowers.borrower import Borrower
from borrowers.borrower_payment import BorrowerPayment

logger = logging.getLogger("BorrowerService")

class BorrowerService:
    @staticmethod
    def total_borrowed(customer_name):
        total = (
            db.session.query(func.coalesce(func.sum(Sale.borrow_amount), 0))
            .filter(Sale.customer_name == customer_name)
            .scalar()
        )
        total = Decimal(str(total or 0)).quantize(CENTS)
        return total if total > 0 else ZERO

    @staticmethod
    @transactional
    def sync_outstanding(customer_name):
        """
        Recompute a customer's outstanding amount as the sum of borrow_amount
        over all of their sales and store it. The borrower row is created on
        first exposure. Returns the Borrower, or None for a customer who has
        never owed anything.
        """
        name = to_text(customer_name, "customer_name")
        if not name:
            return None

        total = BorrowerService.total_borrowed(name)
        borrower = Borrower.query.filter_by(name=name).with_for_update().first()
        if not borrower:
            if total <= 0:
                return None
            try:
                with db.session.begin_nested():
                    borrower = Borrower(name=name, outstanding_amount=total)
                    db.session.add(borrower)
            except IntegrityError:
                borrower = Borrower.query.filter_by(name=name).with_for_update().one()
            logger.info("Opened credit account for %s", name)

        if borrower.outstanding_amount != total:
            logger.info("Outstanding for %s: %s -> %s", name, borrower.outstanding_amount, total)
        borrower.outstanding_amount = total
        db.session.flush()
        return borrower

    @staticmethod
    @transactional
    def record_payment(borrower_id, amount, payment_date=None):
        """
        Record a borrower payment and apply it to their oldest open sales
        first. A payment larger than the outstanding amount is rejected.
        """
        amount = to_decimal(amount, "amount")
        if amount <= 0:
            raise InvalidInputException("amount must be greater than 0")

        borrower = Borrower.query.filter_by(id=borrower_id).with_for_update().first()
        if not borrower:
            raise ResourceNotFoundException(f"Borrower {borrower_id} not found")

        BorrowerService.sync_outstanding(borrower.name)
        if amount > borrower.outstanding_amount:
            logger.warning("Rejected payment of %s from %s, outstanding %s", amount, borrower.name, borrower.outstanding_amount)
            raise OverPaymentException(
                f"Payment {amount} exceeds outstanding amount {borrower.outstanding_amount} for {borrower.name}"
            )

        payment = BorrowerPayment(
            borrower_id=borrower.id,
            amount_paid=amount,
            payment_date=payment_date or datetime.now(),
        )
        db.session.add(payment)

        remaining = amount
        open_sales = (
            Sale.query
            .filter(Sale.customer_name == borrower.name, Sale.borrow_amount > 0)
            .order_by(Sale.sale_date.asc(), Sale.id.asc())
            .with_for_update()
            .all()
        )
        for sale in open_sales:
            if remaining <= 0:
                break
            applied = min(remaining, Decimal(sale.borrow_amount))
            sale.paid_amount = Decimal(sale.paid_amount) + applied
            sale.borrow_amount = Decimal(sale.borrow_amount) - applied
            remaining -= applied

        BorrowerService.sync_outstanding(borrower.name)
        logger.info("Payment %s from %s applied, outstanding now %s", amount, borrower.name, borrower.outstanding_amount)
        return {
            "payment_id": payment.id,
            "borrower_id": borrower.id,
            "amount_paid": amount,
            "outstanding_amount": borrower.outstanding_amount,
        }

    @staticmethod
    def list_outstanding():
        borrowers = (
            Borrower.query
            .filter(Borrower.outstanding_amount > 0)
            .order_by(Borrower.name.asc())
            .all()
        )
        return [b.to_dict() for b in borrowers]

    @staticmethod
    def get_borrower(borrower_id):
        borrower = db.session.get(Borrower, borrower_id)
        if not borrower:
            raise ResourceNotFoundException(f"Borrower {borrower_id} not found")

        open_sales = (
            Sale.query
            .filter(Sale.customer_name == borrower.name, Sale.borrow_amount > 0)
            .order_by(Sale.sale_date.asc(), Sale.id.asc())
            .all()
        )
        data = borrower.to_dict()
        data["open_sales"] = [s.to_dict() for s in open_sales]
        data["payments"] = BorrowerService.list_payments(borrower_id)
        return data

    @staticmethod
    def list_payments(borrower_id):
        payments = (
            BorrowerPayment.query
            .filter_by(borrower_id=borrower_id)
            .order_by(BorrowerPayment.payment_date.desc(), BorrowerPayment.id.desc())
            .all()
        )
        return [p.to_dict() for p in payments]
