# sales/sales_routes.py
import io
from datetime import datetime
import pandas as pd
from flask import Blueprint, request, jsonify, send_file, make_response
from src.exceptions import LedgerException
from src.helpers import serialize_for_json, parse_date
from sales.sales_service import SalesService

bp = Blueprint("sales", __name__)

def _list_filters():
    start_date = request.args.get('start_date')
    end_date = request.args.get('end_date')
    return {
        "start_date": parse_date(start_date, "start_date") if start_date else None,
        "end_date": parse_date(end_date, "end_date") if end_date else None,
        "payment_type": request.args.get('payment_type'),
    }

# -------------------------
# Checkout a bill
# -------------------------
@bp.route("/", methods=["POST"])
def create_sale():
    payload = request.get_json(silent=True) or {}
    if not payload.get("items") or not payload.get("payment_type") or payload.get("paid_amount") is None:
        return jsonify({"error": "INVALID_INPUT", "message": "items, payment_type, paid_amount required"}), 400

    try:
        result = SalesService.create_sale(
            customer_name=payload.get("customer_name"),
            payment_type=payload["payment_type"],
            items=payload["items"],
            paid_amount=payload["paid_amount"],
            discount_amount=payload.get("discount_amount"),
        )
        return jsonify(serialize_for_json(result)), 201
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


@bp.route("/", methods=["GET"])
def list_sales():
    try:
        return jsonify(serialize_for_json(SalesService.list_sales(**_list_filters()))), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


@bp.route("/<int:sale_id>", methods=["GET"])
def get_sale_detail(sale_id):
    try:
        return jsonify(serialize_for_json(SalesService.get_sale_detail(sale_id))), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


# -------------------------
# Edit bill: full replacement of header and items
# -------------------------
@bp.route("/<int:sale_id>", methods=["PUT"])
def edit_sale(sale_id):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload.get("items"), list) or not payload.get("payment_type") or payload.get("paid_amount") is None:
        return jsonify({"error": "INVALID_INPUT", "message": "items, payment_type, paid_amount required"}), 400

    try:
        result = SalesService.edit_sale(
            sale_id,
            customer_name=payload.get("customer_name"),
            payment_type=payload["payment_type"],
            paid_amount=payload["paid_amount"],
            discount_amount=payload.get("discount_amount"),
            items=payload["items"],
        )
        return jsonify(serialize_for_json(result)), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


@bp.route("/<int:sale_id>", methods=["DELETE"])
def delete_sale(sale_id):
    try:
        SalesService.delete_sale(sale_id)
        return jsonify({"success": True}), 200
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code


# -------------------------
# Export bills to CSV / Excel
# -------------------------
@bp.route("/export", methods=["GET"])
def export_sales():
    try:
        format_type = request.args.get('format', 'csv').lower()
        sales = SalesService.list_sales(**_list_filters())
    except LedgerException as e:
        return jsonify(e.to_dict()), e.status_code

    data = []
    for s in sales:
        data.append({
            "Bill ID": s["id"],
            "Date": s["sale_date"].strftime('%Y-%m-%d %H:%M:%S'),
            "Customer": s["customer_name"] or '',
            "Payment Type": s["payment_type"],
            "Total Amount": float(s["total_amount"]),
            "Discount Amount": float(s["discount_amount"]),
            "Paid Amount": float(s["paid_amount"]),
            "Borrow Amount": float(s["borrow_amount"]),
        })
    df = pd.DataFrame(data, columns=[
        "Bill ID", "Date", "Customer", "Payment Type",
        "Total Amount", "Discount Amount", "Paid Amount", "Borrow Amount",
    ])

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if format_type == 'excel':
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='Sales', index=False)
        output.seek(0)

        return send_file(
            output,
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            as_attachment=True,
            download_name=f'sales_export_{stamp}.xlsx'
        )

    output = io.StringIO()
    df.to_csv(output, index=False)
    response = make_response(output.getvalue())
    response.headers['Content-Type'] = 'text/csv; charset=utf-8'
    response.headers['Content-Disposition'] = f'attachment; filename=sales_export_{stamp}.csv'
    return response
