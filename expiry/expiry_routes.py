from datetime import date
from flask import Blueprint, request, jsonify
from src.exceptions import LedgerException
from src.helpers import serialize_for_json, parse_date
from expiry.expiry_service import ExpiryService

bp = Blueprint("expired", __name__)

@bp.route("/", methods=["GET"])
def list_expired():
    return jsonify(serialize_for_json(ExpiryService.list_expired())), 200

@bp.route("/sweep", methods=["POST"])
def run_sweep():
    """Sweep immediately, ignoring the once-per-day marker."""
    data = request.get_json(silent=True) or {}
    try:
        as_of = parse_date(data["as_of"], "as_of") if data.get("as_of") else date.today()
        moved = ExpiryService.sweep(as_of)
        return jsonify({
            "as_of": as_of.isoformat(),
            "moved": [{"product_id": pid, "quantity": qty} for pid, qty in moved],
        }), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code
