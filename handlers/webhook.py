"""
handlers/webhook.py
-------------------
WhatsApp Cloud API webhook: verification handshake and inbound messages.
"""

import json

from flask import Blueprint, current_app, jsonify, request

from handlers import get_services, unconfigured_response
from utils.logger import get_logger

logger = get_logger(__name__)

whatsapp_bp = Blueprint("whatsapp", __name__, url_prefix="/api/whatsapp")


@whatsapp_bp.route("/webhook", methods=["GET"])
def verify():
    """Answer Meta's subscription check by echoing `hub.challenge`."""
    mode = request.args.get("hub.mode")
    token = request.args.get("hub.verify_token")
    challenge = request.args.get("hub.challenge", "")
    expected = current_app.config.get("META_VERIFY_TOKEN", "")

    if mode == "subscribe" and expected and token == expected:
        return challenge, 200
    return "Forbidden", 403


@whatsapp_bp.route("/webhook", methods=["POST"])
def receive():
    """Hand a delivery to MessageService. Always 200 unless something broke."""
    payload = request.get_json(silent=True) or {}
    logger.debug(f"[WA webhook] payload: {json.dumps(payload, ensure_ascii=False)}")

    services = get_services()
    if services is None:
        logger.warning("Webhook received but the database is not configured")
        return unconfigured_response()

    try:
        services.messages.handle_inbound(payload)
    except Exception as e:
        logger.exception(f"Error processing webhook: {e}")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True}), 200
