import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from src.main import create_app
from src.config import TestingConfig
from src.extensions import db
from src.exceptions import InvalidInputException, InsufficientStockException, ResourceNotFoundException
from products.product import Product
from products.product_service import ProductService
from stock.stock import Stock
from stock.stock_service import StockService

FAR_EXPIRY = date(2099, 1, 1)


def test_add_stock_lists_widget(app):
    StockService.add_stock("Widget", "10.00", "2099-01-01", 50)

    sellable = StockService.list_sellable()
    assert len(sellable) == 1
    assert sellable[0]["product"]["name"] == "Widget"
    assert sellable[0]["product"]["price"] == Decimal("10.00")
    assert sellable[0]["quantity"] == 50


def test_restocking_same_product_increments_single_row(app, widget):
    result = StockService.add_stock("Widget", 10, FAR_EXPIRY, 5)

    assert result["product_id"] == widget
    assert result["quantity"] == 55
    assert Product.query.count() == 1
    assert Stock.query.filter_by(product_id=widget).count() == 1


def test_same_name_at_other_price_or_expiry_is_a_new_product(app, widget):
    cheaper = StockService.add_stock("Widget", "9.50", FAR_EXPIRY, 5)
    later = StockService.add_stock("Widget", "10.00", date(2099, 6, 1), 7)

    assert len({widget, cheaper["product_id"], later["product_id"]}) == 3
    assert StockService.get_quantity(widget) == 50


@pytest.mark.parametrize("quantity", [0, -3, "abc", 1.5])
def test_add_stock_rejects_bad_quantity(app, quantity):
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Widget", "10.00", FAR_EXPIRY, quantity)
    assert Product.query.count() == 0


def test_add_stock_rejects_already_expired_goods(app):
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Milk", "2.00", date(2026, 1, 1), 5, today=date(2026, 1, 2))
    assert Product.query.count() == 0
    assert Stock.query.count() == 0


def test_add_stock_rejects_missing_name_and_bad_price(app):
    with pytest.raises(InvalidInputException):
        StockService.add_stock("  ", "10.00", FAR_EXPIRY, 1)
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Widget", "0", FAR_EXPIRY, 1)
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Widget", "10.00", "01/01/2099", 1)


def test_reserve_and_release(app, widget):
    StockService.reserve(widget, 20)
    assert StockService.get_quantity(widget) == 30

    StockService.release(widget, 5)
    assert StockService.get_quantity(widget) == 35


def test_reserve_never_drives_stock_negative(app, widget):
    StockService.reserve(widget, 30)

    with pytest.raises(InsufficientStockException) as exc:
        StockService.reserve(widget, 30)

    assert "Available: 20" in exc.value.message
    assert StockService.get_quantity(widget) == 20


def test_reserve_everything_then_nothing_left(app, widget):
    StockService.reserve(widget, 50)
    assert StockService.get_quantity(widget) == 0
    with pytest.raises(InsufficientStockException):
        StockService.reserve(widget, 1)


def test_reserve_unknown_product(app):
    with pytest.raises(ResourceNotFoundException):
        StockService.reserve(999, 1)


def test_release_recreates_removed_stock_row(app, widget):
    db.session.delete(Stock.query.filter_by(product_id=widget).one())
    db.session.commit()

    assert StockService.release(widget, 4) == 4
    assert Stock.query.filter_by(product_id=widget).count() == 1


def test_one_stock_row_per_product_is_enforced_by_the_database(app, widget):
    db.session.add(Stock(product_id=widget, quantity=1))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_list_sellable_orders_by_name_and_hides_empty_and_expired(app):
    zeta = StockService.add_stock("Zeta", "1.00", FAR_EXPIRY, 3)["product_id"]
    StockService.add_stock("Alpha", "1.00", FAR_EXPIRY, 2)
    StockService.add_stock("Soon", "1.00", date(2026, 3, 1), 4, today=date(2026, 2, 1))
    StockService.reserve(zeta, 3)

    names = [row["product"]["name"] for row in StockService.list_sellable()]
    assert names == ["Alpha", "Soon"]

    names = [row["product"]["name"] for row in StockService.list_sellable(as_of=date(2026, 3, 2))]
    assert names == ["Alpha"]


def test_add_stock_rejects_malformed_fields(app):
    with pytest.raises(InvalidInputException):
        StockService.add_stock(42, "1.00", FAR_EXPIRY, 1)
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Widget", "1e30", FAR_EXPIRY, 1)
    with pytest.raises(InvalidInputException):
        StockService.add_stock("Widget", "1.00", FAR_EXPIRY, 2 ** 31)
    assert Product.query.count() == 0


def test_zero_price_is_rejected_when_resolving_a_product(app):
    with pytest.raises(InvalidInputException):
        ProductService.resolve_product("Freebie", "0", FAR_EXPIRY)
    assert Product.query.count() == 0


@pytest.fixture()
def shared_db_app(tmp_path):
    """An app on a file database so several threads can open their own connections."""

    class FileConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'ledger.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

    app = create_app(FileConfig)
    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "connect")
        def _no_implicit_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _write_lock_on_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        db.create_all()
        try:
            yield app
        finally:
            db.session.remove()
            db.drop_all()
            engine.dispose()


def test_concurrent_reservations_cannot_oversell(shared_db_app):
    product_id = StockService.add_stock("Widget", "10.00", FAR_EXPIRY, 50)["product_id"]
    start = threading.Barrier(2)
    outcomes = []

    def checkout():
        with shared_db_app.app_context():
            start.wait()
            try:
                StockService.reserve(product_id, 30)
                outcomes.append("reserved")
            except InsufficientStockException:
                outcomes.append("short")

    workers = [threading.Thread(target=checkout) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=60)

    assert sorted(outcomes) == ["reserved", "short"]
    assert StockService.get_quantity(product_id) == 20
