from datetime import datetime
from src.extensions import db

class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        # A name reappearing at another price or expiry is a different product
        db.UniqueConstraint("name", "price", "expiry_date", name="uq_products_name_price_expiry"),
        db.CheckConstraint("price >= 0", name="ck_products_price"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Product Name
    name = db.Column(db.String(255), nullable=False)

    # Unit Price
    price = db.Column(db.Numeric(10, 2), nullable=False)

    # Expiry Date of this batch
    expiry_date = db.Column(db.Date, nullable=False)

    # Date Added (automate)
    created_at = db.Column(db.DateTime, default=datetime.now)

    stock = db.relationship("Stock", back_populates="product", uselist=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "expiry_date": self.expiry_date,
        }
