"""
handlers/profile.py
-------------------
Onboarding: the user's display name, timezone, currency and WhatsApp number.
"""

from flask import Blueprint, g, jsonify, request

from handlers import get_services, unconfigured_response
from security.auth import user_required
from services.errors import NotFoundError, ValidationError

profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")

_CURRENCIES = ("BRL", "USD", "EUR")


@profile_bp.before_request
def _require_services():
    if get_services() is None:
        return unconfigured_response()


@profile_bp.route("", methods=["GET"])
@user_required
def get_profile():
    user = get_services().users.get_by_id(g.user_id)
    if user is None:
        raise NotFoundError("Usuário não encontrado.")
    return jsonify(user)


@profile_bp.route("", methods=["PUT"])
@user_required
def update_profile():
    form = request.get_json(silent=True) or {}

    name = (form.get("name") or "").strip() or None
    timezone = (form.get("timezone") or "").strip() or None
    whatsapp_number = "".join(ch for ch in str(form.get("whatsapp_number") or "") if ch.isdigit()) or None
    currency = (form.get("currency") or "").strip().upper() or None
    if currency and currency not in _CURRENCIES:
        raise ValidationError(f"Moeda inválida. Use uma de: {', '.join(_CURRENCIES)}.")

    user = get_services().users.update_profile(
        g.user_id, name=name, timezone=timezone, currency=currency, whatsapp_number=whatsapp_number
    )
    if user is None:
        raise NotFoundError("Usuário não encontrado.")
    return jsonify(user)
