# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets a fresh app on in-memory SQLite with the full schema
# - pysqlite is switched to explicit BEGIN so SAVEPOINT/ROLLBACK behave
#   the way they do on PostgreSQL
# - Handy fixtures for a stocked product and the HTTP test client
# ---------------------------------------------------------------------
from datetime import date

import pytest
from sqlalchemy import event

from src.main import create_app
from src.config import TestingConfig
from src.extensions import db
from stock.stock_service import StockService

FAR_EXPIRY = date(2099, 1, 1)


@pytest.fixture()
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "connect")
        def _no_implicit_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _explicit_begin(conn):
            conn.exec_driver_sql("BEGIN")

        db.create_all()
        try:
            yield app
        finally:
            db.session.remove()
            db.drop_all()
            engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def widget(app):
    """Widget @ 10.00, expiring 2099-01-01, 50 in stock."""
    result = StockService.add_stock("Widget", "10.00", FAR_EXPIRY, 50)
    return result["product_id"]


@pytest.fixture()
def gadget(app):
    """Gadget @ 25.00, expiring 2099-01-01, 10 in stock."""
    result = StockService.add_stock("Gadget", "25.00", FAR_EXPIRY, 10)
    return result["product_id"]
