from datetime import datetime
from src.extensions import db

class BorrowerPayment(db.Model):
    __tablename__ = "borrower_payments"
    __table_args__ = (
        db.CheckConstraint("amount_paid > 0", name="ck_borrower_payments_amount"),
    )

    id = db.Column(db.Integer, primary_key=True)
    borrower_id = db.Column(db.Integer, db.ForeignKey("borrowers.id", ondelete="CASCADE"), nullable=False)
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False)
    payment_date = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)

    borrower = db.relationship("Borrower", back_populates="payments")

    def to_dict(self):
        return {
            "payment_id": self.id,
            "borrower_id": self.borrower_id,
            "amount_paid": self.amount_paid,
            "payment_date": self.payment_date,
        }
