"""
handlers/bills.py
-----------------
Dashboard API for payable and receivable bills.

Routes:
    GET    /api/bills/<kind>              list (month, start, end, status)
    POST   /api/bills/<kind>              create, expanding recurrence
    PUT    /api/bills/<kind>/<id>         edit one bill
    POST   /api/bills/<kind>/<id>/paid    mark as paid
    DELETE /api/bills/<kind>/<id>         delete

`<kind>` is 'payable' or 'receivable'.
"""

from flask import Blueprint, g, jsonify, request

from handlers import get_services, unconfigured_response
from security.auth import user_required
from services.bill_service import parse_kind

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.before_request
def _require_services():
    if get_services() is None:
        return unconfigured_response()


@bills_bp.route("/<kind>", methods=["GET"])
@user_required
def list_bills(kind):
    service = get_services().bills
    bills = service.list_bills(
        g.user_id,
        parse_kind(kind),
        month=request.args.get("month"),
        start=request.args.get("start"),
        end=request.args.get("end"),
        status=request.args.get("status"),
    )
    return jsonify({
        "bills": [b.to_dict() for b in bills],
        "outstanding_total": float(service.outstanding_total(bills)),
    })


@bills_bp.route("/<kind>", methods=["POST"])
@user_required
def create_bills(kind):
    form = request.get_json(silent=True) or {}
    bills = get_services().bills.create_bills(g.user_id, parse_kind(kind), form)
    return jsonify({"bills": [b.to_dict() for b in bills], "created": len(bills)}), 201


@bills_bp.route("/<kind>/<int:bill_id>", methods=["PUT"])
@user_required
def update_bill(kind, bill_id):
    form = request.get_json(silent=True) or {}
    bill = get_services().bills.update_bill(g.user_id, parse_kind(kind), bill_id, form)
    return jsonify(bill.to_dict())


@bills_bp.route("/<kind>/<int:bill_id>/paid", methods=["POST"])
@user_required
def mark_paid(kind, bill_id):
    get_services().bills.mark_paid(g.user_id, parse_kind(kind), bill_id)
    return jsonify({"success": True})


@bills_bp.route("/<kind>/<int:bill_id>", methods=["DELETE"])
@user_required
def delete_bill(kind, bill_id):
    get_services().bills.delete_bill(g.user_id, parse_kind(kind), bill_id)
    return jsonify({"success": True})
