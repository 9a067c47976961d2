from datetime import date
from flask import Blueprint, request, jsonify
from src.exceptions import LedgerException
from src.helpers import serialize_for_json, parse_date
from reports.report_service import ReportService

bp = Blueprint("reports", __name__)

@bp.route("/dashboard", methods=["GET"])
def get_dashboard():
    try:
        day = request.args.get('date')
        day = parse_date(day, "date") if day else date.today()
        return jsonify(serialize_for_json(ReportService.get_dashboard(day))), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code
