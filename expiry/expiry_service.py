import logging
from sqlalchemy.exc import IntegrityError
from src.extensions import db
from src.helpers import parse_date
from src.transaction import transactional
from products.product import Product
from stock.stock import Stock
from expiry.expired_stock import ExpiredStock, SweepMarker

logger = logging.getLogger("ExpiryService")

MARKER_ID = 1

class ExpiryService:
    @staticmethod
    @transactional
    def sweep(as_of):
        """
        Move every stock row whose product expired before as_of into
        expired_stock, dated as_of, and delete the stock row.

        The stock rows are locked for the duration of the transaction and
        deleted in the same unit of work that records them, so a second sweep
        for the same day finds nothing left to move. Quantities landing on an
        existing (product, day) record are merged into it.
        Returns [(product_id, quantity), ...] for what was moved.
        """
        as_of = parse_date(as_of, "as_of")
        rows = (
            Stock.query
            .join(Product, Product.id == Stock.product_id)
            .filter(Product.expiry_date < as_of)
            .order_by(Stock.id.asc())
            .with_for_update(of=Stock)
            .all()
        )

        moved = []
        for stock in rows:
            if stock.quantity > 0:
                expired = ExpiredStock.query.filter_by(product_id=stock.product_id, expired_date=as_of).first()
                if expired:
                    expired.quantity += stock.quantity
                else:
                    db.session.add(ExpiredStock(product_id=stock.product_id, quantity=stock.quantity, expired_date=as_of))
                moved.append((stock.product_id, stock.quantity))
            db.session.delete(stock)
        db.session.flush()

        if moved:
            logger.info("Expired %s product(s) as of %s: %s", len(moved), as_of, moved)
        return moved

    @staticmethod
    @transactional
    def sweep_if_due(today):
        """
        Sweep at most once per calendar day. The last run day is kept in the
        sweep_markers table so every server instance shares it. Returns None
        when the sweep already ran for today.
        """
        today = parse_date(today, "today")
        marker = SweepMarker.query.filter_by(id=MARKER_ID).with_for_update().first()
        if marker and marker.last_swept_on and marker.last_swept_on >= today:
            return None

        moved = ExpiryService.sweep(today)

        if marker:
            marker.last_swept_on = today
        else:
            try:
                with db.session.begin_nested():
                    db.session.add(SweepMarker(id=MARKER_ID, last_swept_on=today))
            except IntegrityError:
                # Another instance wrote the marker first; the sweep itself is idempotent
                marker = SweepMarker.query.filter_by(id=MARKER_ID).one()
                marker.last_swept_on = max(marker.last_swept_on or today, today)
        return moved

    @staticmethod
    def last_swept_on():
        marker = db.session.get(SweepMarker, MARKER_ID)
        return marker.last_swept_on if marker else None

    @staticmethod
    def list_expired():
        rows = (
            db.session.query(ExpiredStock, Product)
            .join(Product, Product.id == ExpiredStock.product_id)
            .order_by(ExpiredStock.expired_date.desc(), Product.name.asc())
            .all()
        )
        return [
            {
                "product": product.to_dict(),
                "quantity": expired.quantity,
                "expired_date": expired.expired_date,
            }
            for expired, product in rows
        ]
