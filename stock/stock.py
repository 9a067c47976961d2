from src.extensions import db

class Stock(db.Model):
    __tablename__ = "stock"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # At most one stock row per product
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, unique=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", back_populates="stock")
