from decimal import Decimal
from sqlalchemy import func
from src.extensions import db
from src.helpers import day_bounds, CENTS
from sales.sale import Sale
from borrowers.borrower_payment import BorrowerPayment

class ReportService:
    @staticmethod
    def _sum(column, *criteria):
        value = db.session.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
        return Decimal(str(value or 0)).quantize(CENTS)

    @staticmethod
    def get_dashboard(day):
        """
        Rollups for one day:
         - daily_total / monthly_total: bill totals of CASH and ONLINE sales
           (month to date for monthly_total)
         - daily_cash / daily_online: amounts actually paid by those methods
         - daily_borrow: credit extended on BORROW sales
         - borrower_payments: repayments received from borrowers
        """
        day_start, day_end = day_bounds(day)
        month_start = day_bounds(day.replace(day=1))[0]
        on_day = (Sale.sale_date >= day_start, Sale.sale_date < day_end)
        settled = Sale.payment_type.in_(("CASH", "ONLINE"))

        return {
            "date": day,
            "daily_total": ReportService._sum(Sale.total_amount, settled, *on_day),
            "monthly_total": ReportService._sum(
                Sale.total_amount, settled, Sale.sale_date >= month_start, Sale.sale_date < day_end
            ),
            "daily_cash": ReportService._sum(Sale.paid_amount, Sale.payment_type == "CASH", *on_day),
            "daily_online": ReportService._sum(Sale.paid_amount, Sale.payment_type == "ONLINE", *on_day),
            "daily_borrow": ReportService._sum(Sale.borrow_amount, Sale.payment_type == "BORROW", *on_day),
            "borrower_payments": ReportService._sum(
                BorrowerPayment.amount_paid,
                BorrowerPayment.payment_date >= day_start,
                BorrowerPayment.payment_date < day_end,
            ),
        }
