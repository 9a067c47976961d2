import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date
from flask import Flask, jsonify
from flask_cors import CORS
from src.config import Config
from src.extensions import db, migrate
from src.exceptions import LedgerException

# register blueprints dynamically
from routes import register_routes

logger = logging.getLogger("StoreLedger")

def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Enable CORS for all routes
    CORS(app, origins="*", methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"], allow_headers=["Content-Type"])

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import all models within app context to resolve relationships
    with app.app_context():
        import models  # noqa: F401

    # register routes/blueprints
    register_routes(app)

    @app.before_request
    def sweep_expired_stock():
        if not app.config.get("EXPIRY_SWEEP_ON_REQUEST", True):
            return None
        from expiry.expiry_service import ExpiryService
        try:
            ExpiryService.sweep_if_due(date.today())
        except LedgerException as e:
            logger.error("Expiry sweep failed: %s", e.message)
            return jsonify(e.to_dict()), e.status_code
        return None

    @app.get("/")
    def index():
        return jsonify({"message": "Store Ledger API"}), 200

    @app.route('/api/test')
    def test():
        return jsonify({"message": "Backend Connected Successfully"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=app.config["DEBUG"])
