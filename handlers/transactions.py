"""
handlers/transactions.py
------------------------
Dashboard API for transactions, balance and reports.
"""

from flask import Blueprint, g, jsonify, request

from handlers import get_services, unconfigured_response
from security.auth import user_required

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api")


def _money(totals: dict) -> dict:
    return {k: float(v) for k, v in totals.items()}


@transactions_bp.before_request
def _require_services():
    if get_services() is None:
        return unconfigured_response()


@transactions_bp.route("/transactions", methods=["GET"])
@user_required
def list_transactions():
    rows = get_services().transactions.list_transactions(
        g.user_id,
        month=request.args.get("month"),
        start=request.args.get("start"),
        end=request.args.get("end"),
        category=request.args.get("category"),
        search=request.args.get("search"),
    )
    return jsonify({"transactions": [t.to_dict() for t in rows]})


@transactions_bp.route("/transactions", methods=["POST"])
@user_required
def add_transaction():
    form = request.get_json(silent=True) or {}
    tx = get_services().transactions.add(g.user_id, form)
    return jsonify(tx.to_dict()), 201


@transactions_bp.route("/transactions/<int:tx_id>", methods=["PUT"])
@user_required
def update_transaction(tx_id):
    form = request.get_json(silent=True) or {}
    tx = get_services().transactions.update(g.user_id, tx_id, form)
    return jsonify(tx.to_dict())


@transactions_bp.route("/transactions/<int:tx_id>", methods=["DELETE"])
@user_required
def delete_transaction(tx_id):
    get_services().transactions.delete(g.user_id, tx_id)
    return jsonify({"success": True})


@transactions_bp.route("/transactions/balance", methods=["GET"])
@user_required
def balance():
    service = get_services().transactions
    return jsonify({
        "all_time": _money(service.get_balance(g.user_id)),
        "this_month": _money(service.get_month_summary(g.user_id)),
    })


@transactions_bp.route("/reports", methods=["GET"])
@user_required
def reports():
    """Monthly income/expense series and the expense split by category."""
    service = get_services().transactions
    params = {
        "month": request.args.get("month"),
        "start": request.args.get("start"),
        "end": request.args.get("end"),
    }
    monthly = service.monthly_report(g.user_id, **params)
    categories = service.category_report(g.user_id, **params)
    return jsonify({
        "monthly": [
            {"month": m["month"], "income": float(m["income"]), "expense": float(m["expense"])}
            for m in monthly
        ],
        "categories": [
            {"category": c["category"], "total": float(c["total"])} for c in categories
        ],
    })
