from datetime import date
from src.extensions import db

class ExpiredStock(db.Model):
    __tablename__ = "expired_stock"
    __table_args__ = (
        # One row per product per sweep day; a repeated sweep merges into it
        db.UniqueConstraint("product_id", "expired_date", name="uq_expired_product_date"),
        db.CheckConstraint("quantity >= 0", name="ck_expired_stock_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    expired_date = db.Column(db.Date, nullable=False, default=date.today)

    product = db.relationship("Product")


class SweepMarker(db.Model):
    """Single row remembering the last day the expiry sweep ran."""
    __tablename__ = "sweep_markers"

    id = db.Column(db.Integer, primary_key=True)
    last_swept_on = db.Column(db.Date, nullable=True)
