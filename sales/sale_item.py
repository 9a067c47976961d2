from src.extensions import db
from sqlalchemy.orm import relationship

class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "product_id", name="uq_sale_items_sale_product"),
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity"),
        db.CheckConstraint("line_total >= 0", name="ck_sale_items_line_total"),
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot at sale time, not the live product price
    expiry_date = db.Column(db.Date, nullable=False)  # snapshot of the batch sold
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(10, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
