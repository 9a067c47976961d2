from datetime import datetime
from src.extensions import db
from sqlalchemy.orm import relationship

PAYMENT_TYPES = ("CASH", "ONLINE", "BORROW")

class Sale(db.Model):
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("payment_type IN ('CASH', 'ONLINE', 'BORROW')", name="ck_sales_payment_type"),
        db.CheckConstraint("total_amount >= 0", name="ck_sales_total_amount"),
        db.CheckConstraint("paid_amount >= 0", name="ck_sales_paid_amount"),
        db.CheckConstraint("discount_amount >= 0", name="ck_sales_discount_amount"),
        db.CheckConstraint("borrow_amount >= 0", name="ck_sales_borrow_amount"),
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_date = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)
    customer_name = db.Column(db.String(255), nullable=True, index=True)
    payment_type = db.Column(db.String(20), nullable=False)  # CASH / ONLINE / BORROW
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    borrow_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "sale_date": self.sale_date,
            "customer_name": self.customer_name,
            "payment_type": self.payment_type,
            "total_amount": self.total_amount,
            "discount_amount": self.discount_amount,
            "paid_amount": self.paid_amount,
            "borrow_amount": self.borrow_amount,
        }
