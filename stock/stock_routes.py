from datetime import date
from flask import Blueprint, request, jsonify
from src.exceptions import LedgerException
from src.helpers import serialize_for_json
from stock.stock_service import StockService

bp = Blueprint("stock", __name__)

# -------------------------
# Stock-in (creates the product on first sight)
# -------------------------
@bp.route("/", methods=["POST"])
def add_stock():
    data = request.get_json(silent=True) or {}

    required = ["name", "price", "expiry_date", "quantity"]
    for r in required:
        if data.get(r) in (None, ""):
            return jsonify({"error": "INVALID_INPUT", "message": f"{r} is required"}), 400

    try:
        result = StockService.add_stock(
            name=data["name"],
            price=data["price"],
            expiry_date=data["expiry_date"],
            quantity=data["quantity"],
            today=date.today(),
        )
        return jsonify(serialize_for_json(result)), 201
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


# -------------------------
# Everything with quantity on hand
# -------------------------
@bp.route("/", methods=["GET"])
def list_stock():
    return jsonify(serialize_for_json(StockService.list_sellable())), 200


# -------------------------
# Products that can still be sold today (checkout picker)
# -------------------------
@bp.route("/sale-products", methods=["GET"])
def list_sale_products():
    return jsonify(serialize_for_json(StockService.list_sellable(as_of=date.today()))), 200
