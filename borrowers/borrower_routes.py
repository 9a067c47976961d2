from flask import Blueprint, request, jsonify
from src.exceptions import LedgerException
from src.helpers import serialize_for_json
from borrowers.borrower_service import BorrowerService

bp = Blueprint("borrowers", __name__)

# -------------------------
# Borrowers who still owe money
# -------------------------
@bp.route("/", methods=["GET"])
def list_outstanding():
    return jsonify(serialize_for_json(BorrowerService.list_outstanding())), 200


@bp.route("/<int:borrower_id>", methods=["GET"])
def get_borrower(borrower_id):
    try:
        return jsonify(serialize_for_json(BorrowerService.get_borrower(borrower_id))), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


# -------------------------
# Record a repayment (applied to the oldest open bills first)
# -------------------------
@bp.route("/<int:borrower_id>/payments", methods=["POST"])
def record_payment(borrower_id):
    payload = request.get_json(silent=True) or {}
    if payload.get("amount") in (None, ""):
        return jsonify({"error": "INVALID_INPUT", "message": "amount is required"}), 400

    try:
        result = BorrowerService.record_payment(borrower_id, payload["amount"])
        return jsonify(serialize_for_json(result)), 201
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code
