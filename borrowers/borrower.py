from src.extensions import db

class Borrower(db.Model):
    __tablename__ = "borrowers"
    __table_args__ = (
        db.CheckConstraint("outstanding_amount >= 0", name="ck_borrowers_outstanding"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Customer name as entered on BORROW bills
    name = db.Column(db.String(255), unique=True, nullable=False)

    # Always the sum of borrow_amount over this customer's sales
    outstanding_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    payments = db.relationship("BorrowerPayment", back_populates="borrower", cascade="all, delete-orphan",
                               order_by="BorrowerPayment.payment_date")

    def to_dict(self):
        return {
            "borrower_id": self.id,
            "name": self.name,
            "outstanding_amount": self.outstanding_amount,
        }
